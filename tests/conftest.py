import os
import sys

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from basil_pos.app_container import AppContainer
from basil_pos.main import create_app
from basil_pos.models import PaymentDetails, PaymentMethod, Sale, SaleItem, SaleStatus


ADMIN = {'id': 'user_default', 'full_name': 'Admin User'}


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / 'data')


@pytest.fixture
def container(data_dir):
    return AppContainer(data_dir)


@pytest.fixture
def app(tmp_path, data_dir):
    return create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'DATA_DIR': data_dir,
        'LOG_DIR': str(tmp_path / 'logs'),
        'PROFILING_ENABLED': True,
    })


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def app_container(app):
    return app.extensions['basil_pos']


def add_category(container, name='Engine', subcategories=('Pistons', 'Gaskets')):
    result = container.inventory_service.create_category(name, list(subcategories))
    assert result['ok'], result
    return result['category']


def add_product(container, category, name='Piston Kit', price=1000, cost_price=600,
                quantity=10, **extra):
    data = {
        'name': name,
        'category_id': category['id'],
        'price': price,
        'cost_price': cost_price,
        'quantity': quantity,
    }
    data.update(extra)
    result = container.inventory_service.create_product(data)
    assert result['ok'], result
    return result['product']


def build_sale(sale_id, sale_date, lines, method='cash', status='completed',
               customer_name='', details=None):
    """
    A stored-sale dict with consistent totals.

    lines: [(product_id, name, quantity, unit_price, cost_price, discount)]
    """
    items = [
        SaleItem(product_id=pid, product_name=name, quantity=qty, unit_price=price,
                 cost_price=cost, discount=discount, sku=f'SKU-{pid}')
        for pid, name, qty, price, cost, discount in lines
    ]
    sale = Sale(
        id=sale_id,
        sale_date=sale_date,
        items=items,
        payment_method=PaymentMethod(method),
        status=SaleStatus(status),
        customer_name=customer_name,
        sold_by='user_default',
        sold_by_name='Admin User',
    )
    sale.payment_details = details or PaymentDetails(cash=sale.final_amount)
    return sale.to_dict()
