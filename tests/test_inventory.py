import re

from conftest import ADMIN, add_category, add_product


# ==============================================================================
# CATEGORIES
# ==============================================================================

def test_create_category_cleans_subcategories(container):
    result = container.inventory_service.create_category(
        '  Brakes ', ['Pads', ' ', 'Discs', 'Pads']
    )
    assert result['ok']
    category = result['category']
    assert category['name'] == 'Brakes'
    assert category['subcategories'] == ['Pads', 'Discs']
    assert category['id'].startswith('cat_')


def test_category_name_required_and_unique(container):
    assert not container.inventory_service.create_category('')['ok']
    add_category(container, 'Engine')
    dup = container.inventory_service.create_category('engine')
    assert not dup['ok']
    assert 'already exists' in dup['error']


def test_rename_category_updates_products(container):
    category = add_category(container, 'Engine')
    product = add_product(container, category)

    result = container.inventory_service.update_category(category['id'], name='Engine Parts')
    assert result['ok']
    assert container.inventory_service.get_product(product['id'])['category_name'] == 'Engine Parts'


def test_delete_category_blocked_while_products_exist(container):
    category = add_category(container)
    product = add_product(container, category)

    blocked = container.inventory_service.delete_category(category['id'])
    assert not blocked['ok']
    assert 'Cannot delete category with existing products' in blocked['error']

    container.inventory_service.delete_product(product['id'])
    assert container.inventory_service.delete_category(category['id'])['ok']
    assert container.inventory_service.list_categories() == []


def test_delete_missing_category_is_not_found(container):
    result = container.inventory_service.delete_category('cat_missing')
    assert not result['ok']
    assert result['code'] == 404


# ==============================================================================
# PRODUCTS
# ==============================================================================

def test_create_product_defaults(container):
    category = add_category(container)
    product = add_product(container, category)

    assert product['min_quantity'] == 5
    assert product['category_name'] == 'Engine'
    assert re.match(r'^SKU-\d+-[0-9A-Z]{6}$', product['sku'])
    assert product['last_restocked'] is not None


def test_product_validation(container):
    category = add_category(container)
    service = container.inventory_service

    assert not service.create_product({'name': '', 'category_id': category['id'],
                                       'price': 10, 'quantity': 1})['ok']
    assert not service.create_product({'name': 'Chain', 'category_id': 'cat_nope',
                                       'price': 10, 'quantity': 1})['ok']
    assert not service.create_product({'name': 'Chain', 'category_id': category['id'],
                                       'price': -1, 'quantity': 1})['ok']
    assert not service.create_product({'name': 'Chain', 'category_id': category['id'],
                                       'price': 10, 'quantity': 1.5})['ok']


def test_sku_must_be_unique(container):
    category = add_category(container)
    first = add_product(container, category, name='Chain', sku='CH-1')
    second = add_product(container, category, name='Sprocket', sku='SP-1')

    dup = container.inventory_service.create_product({
        'name': 'Other', 'category_id': category['id'], 'price': 5, 'quantity': 1, 'sku': 'ch-1'
    })
    assert not dup['ok']

    # keeping its own SKU is fine, taking another one's is not
    assert container.inventory_service.update_product(first['id'], {'sku': 'CH-1'})['ok']
    clash = container.inventory_service.update_product(second['id'], {'sku': 'CH-1'})
    assert not clash['ok']


def test_update_product_never_changes_quantity(container):
    category = add_category(container)
    product = add_product(container, category, quantity=7)

    result = container.inventory_service.update_product(
        product['id'], {'name': 'Piston Kit STD', 'price': 1200, 'quantity': 999}
    )
    assert result['ok']
    stored = container.inventory_service.get_product(product['id'])
    assert stored['quantity'] == 7
    assert stored['price'] == 1200
    assert stored['name'] == 'Piston Kit STD'


def test_list_products_filters(container):
    engine = add_category(container, 'Engine')
    brakes = add_category(container, 'Brakes', ['Pads'])
    add_product(container, engine, name='Piston Kit', quantity=20, description='standard bore')
    add_product(container, brakes, name='Brake Pads', quantity=2, subcategory='Pads')
    add_product(container, brakes, name='Brake Cable', quantity=0)

    service = container.inventory_service
    assert [p['name'] for p in service.list_products()] == ['Brake Cable', 'Brake Pads', 'Piston Kit']
    assert [p['name'] for p in service.list_products(search='BORE')] == ['Piston Kit']
    assert [p['name'] for p in service.list_products(category_id=brakes['id'], subcategory='Pads')] == ['Brake Pads']
    assert [p['name'] for p in service.list_products(in_stock_only=True)] == ['Brake Pads', 'Piston Kit']
    assert [p['name'] for p in service.list_products(low_stock_only=True)] == ['Brake Cable', 'Brake Pads']


def test_low_stock_is_inclusive_of_threshold(container):
    category = add_category(container)
    add_product(container, category, name='At threshold', quantity=5)
    add_product(container, category, name='Above threshold', quantity=6)

    low = container.inventory_service.get_low_stock_products()
    assert [p['name'] for p in low] == ['At threshold']


def test_stored_product_without_threshold_uses_default(container):
    category = add_category(container)
    product = add_product(container, category, name='Old Record', quantity=4)
    container.inventory_repo.save_all([
        {k: v for k, v in product.items() if k != 'min_quantity'}
    ])

    assert [p['name'] for p in container.inventory_service.get_low_stock_products()] == ['Old Record']
    assert len(container.inventory_service.list_products(low_stock_only=True)) == 1


# ==============================================================================
# RESTOCK
# ==============================================================================

def test_restock_adds_quantity_and_records_history(container):
    category = add_category(container)
    product = add_product(container, category, quantity=3, cost_price=600)

    result = container.inventory_service.restock_product(
        product['id'], 12, cost_price=650, supplier='Moto Supplies', user=ADMIN
    )
    assert result['ok']
    record = result['record']
    assert record['previous_quantity'] == 3
    assert record['new_quantity'] == 15
    assert record['total_cost'] == 12 * 650
    assert record['restocked_by_name'] == 'Admin User'

    stored = container.inventory_service.get_product(product['id'])
    assert stored['quantity'] == 15
    assert stored['cost_price'] == 650

    history = container.inventory_service.list_restock_history(product_id=product['id'])
    assert len(history) == 1
    assert history[0]['supplier'] == 'Moto Supplies'


def test_restock_uses_current_cost_when_none_given(container):
    category = add_category(container)
    product = add_product(container, category, cost_price=400)

    record = container.inventory_service.restock_product(product['id'], 2)['record']
    assert record['cost_price'] == 400
    assert record['total_cost'] == 800


def test_restock_rejects_non_positive_quantities(container):
    category = add_category(container)
    product = add_product(container, category, quantity=4)

    for bad in (0, -3, 1.5, 'abc', None):
        assert not container.inventory_service.restock_product(product['id'], bad)['ok']
    assert container.inventory_service.get_product(product['id'])['quantity'] == 4


def test_restock_unknown_product(container):
    result = container.inventory_service.restock_product('prod_missing', 5)
    assert result['code'] == 404


def test_delete_product_removes_restock_history(container):
    category = add_category(container)
    product = add_product(container, category)
    other = add_product(container, category, name='Gasket')
    container.inventory_service.restock_product(product['id'], 5)
    container.inventory_service.restock_product(other['id'], 5)

    result = container.inventory_service.delete_product(product['id'])
    assert result['ok']
    assert result['removed_history'] == 1
    remaining = container.inventory_service.list_restock_history()
    assert [r['product_id'] for r in remaining] == [other['id']]
