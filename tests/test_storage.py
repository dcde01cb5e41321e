import json
import logging
import os

from basil_pos.repositories import (
    CreditRepository,
    CurrentUserRepository,
    ICategoryRepository,
    ICreditRepository,
    IInventoryRepository,
    IListRepository,
    IRestockRepository,
    ISalesRepository,
    InventoryRepository,
    RestockRepository,
    IKeyValueStorage,
    IObjectRepository,
    JSONStorage,
    SalesRepository,
    CategoryRepository,
)


def test_storage_get_set_raw_blob(tmp_path):
    storage = JSONStorage(str(tmp_path / 'store'))
    assert storage.get('sales') is None

    storage.set('sales', '[{"id": "sale_1"}]')
    assert storage.get('sales') == '[{"id": "sale_1"}]'
    assert os.path.exists(storage.path_for('sales'))
    assert not os.path.exists(storage.path_for('sales') + '.tmp')


def test_storage_corrupt_json_falls_back_to_default(tmp_path, caplog):
    storage = JSONStorage(str(tmp_path))
    with open(storage.path_for('inventory'), 'w', encoding='utf-8') as f:
        f.write('{not json')

    with caplog.at_level(logging.WARNING):
        assert storage.get_json('inventory', []) == []
    assert 'inventory' in caplog.text


def test_repository_creates_empty_blob_on_first_use(tmp_path):
    storage = JSONStorage(str(tmp_path))
    CategoryRepository(storage)
    CurrentUserRepository(storage)

    with open(storage.path_for('categories'), encoding='utf-8') as f:
        assert json.load(f) == []
    with open(storage.path_for('current_user'), encoding='utf-8') as f:
        assert json.load(f) == {}


def test_list_repository_operations(tmp_path):
    repo = SalesRepository(JSONStorage(str(tmp_path)))
    repo.append({'id': 'a', 'status': 'completed'})
    repo.append({'id': 'b', 'status': 'credit'})
    repo.append({'id': 'c', 'status': 'credit'})

    assert repo.get_by_id('b')['status'] == 'credit'
    assert [s['id'] for s in repo.find_all_by('status', 'credit')] == ['b', 'c']

    assert repo.update_where('id', 'b', {'status': 'partial'}) is True
    assert repo.update_where('id', 'zzz', {'status': 'partial'}) is False
    assert repo.get_by_id('b')['status'] == 'partial'

    assert repo.remove_where('status', 'credit') == 1
    assert [s['id'] for s in repo.get_all()] == ['a', 'b']


def test_list_repository_wrong_shape_reads_empty(tmp_path):
    storage = JSONStorage(str(tmp_path))
    storage.set_json('sales', {'oops': 'an object'})
    assert SalesRepository(storage).get_all() == []


def test_object_repository_save_and_clear(tmp_path):
    repo = CurrentUserRepository(JSONStorage(str(tmp_path)))
    repo.save({'id': 'user_1', 'full_name': 'Jane'})
    assert repo.get()['full_name'] == 'Jane'
    repo.clear()
    assert repo.get() == {}


def test_repositories_satisfy_interfaces(tmp_path):
    storage = JSONStorage(str(tmp_path))
    assert isinstance(storage, IKeyValueStorage)
    assert isinstance(SalesRepository(storage), IListRepository)
    assert isinstance(CurrentUserRepository(storage), IObjectRepository)
    assert isinstance(CategoryRepository(storage), ICategoryRepository)
    assert isinstance(InventoryRepository(storage), IInventoryRepository)
    assert isinstance(SalesRepository(storage), ISalesRepository)
    assert isinstance(CreditRepository(storage), ICreditRepository)
    assert isinstance(RestockRepository(storage), IRestockRepository)
