import pytest

from basil_pos.models import SaleStatus
from basil_pos.services import compute_totals, split_payment

from conftest import ADMIN, add_category, add_product


@pytest.fixture
def stocked(container):
    category = add_category(container)
    piston = add_product(container, category, name='Piston Kit', price=1000, cost_price=600, quantity=10)
    chain = add_product(container, category, name='Chain', price=2500, cost_price=1800, quantity=3)
    return {'piston': piston, 'chain': chain}


# ==============================================================================
# TOTALS
# ==============================================================================

def test_cart_totals_with_per_unit_discount():
    totals = compute_totals([
        {'unit_price': 1000, 'quantity': 2, 'discount': 100, 'cost_price': 600},
    ])
    assert totals['gross_amount'] == 2000
    assert totals['total_discount'] == 200
    assert totals['final_amount'] == 1800
    assert totals['profit'] == 1800 - 1200


def test_sale_line_subtotal_and_totals(container, stocked):
    result = container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 2, 'discount': 100}],
        payment_method='cash', user=ADMIN
    )
    assert result['ok'], result
    sale = result['sale']
    item = sale['items'][0]
    assert item['subtotal'] == 1800
    assert item['profit'] == (1000 - 100 - 600) * 2
    assert sale['total_amount'] == 2000
    assert sale['total_discount'] == 200
    assert sale['final_amount'] == sale['total_amount'] - sale['total_discount']
    assert sale['total_profit'] == sale['final_amount'] - sale['total_cost']
    assert sale['sold_by_name'] == 'Admin User'
    assert sale['status'] == 'completed'
    assert sale['payment_details'] == {'cash': 1800, 'mpesa': 0.0, 'credit': 0.0}


def test_discount_is_clamped_to_unit_price(container, stocked):
    sale = container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 1, 'discount': 5000}]
    )['sale']
    assert sale['items'][0]['discount'] == 1000
    assert sale['final_amount'] == 0


# ==============================================================================
# PAYMENT SPLIT
# ==============================================================================

def test_split_payment_rules():
    cash = split_payment('cash', 1500)
    assert cash['details'].cash == 1500
    assert cash['status'] == SaleStatus.COMPLETED

    mpesa = split_payment('mpesa', 1500)
    assert mpesa['details'].mpesa == 1500

    split = split_payment('split', 1500, 500, 700)
    assert split['details'].credit == 300
    assert split['status'] == SaleStatus.PARTIAL

    full_split = split_payment('split', 1500, 1000, 500)
    assert full_split['details'].credit == 0
    assert full_split['status'] == SaleStatus.COMPLETED

    credit = split_payment('credit', 1500)
    assert credit['details'].credit == 1500
    assert credit['status'] == SaleStatus.CREDIT


def test_split_payment_rejections():
    assert split_payment('split', 1000, 800, 300)['error'] == 'Payment amounts exceed total'
    assert not split_payment('split', 1000, -5, 0)['ok']
    assert not split_payment('cheque', 1000)['ok']


def test_split_with_nothing_paid_is_still_partial():
    result = split_payment('split', 1000, 0, 0)
    assert result['details'].credit == 1000
    assert result['status'] == SaleStatus.PARTIAL


def test_split_amounts_are_rounded_before_validation():
    result = split_payment('split', 1000, -0.001, 0.004)
    assert result['ok'], result
    assert result['details'].cash == 0
    assert result['details'].mpesa == 0
    assert result['details'].credit == 1000


# ==============================================================================
# CHECKOUT
# ==============================================================================

def test_checkout_decrements_stock(container, stocked):
    container.sales_service.create_sale([
        {'product_id': stocked['piston']['id'], 'quantity': 4},
        {'product_id': stocked['chain']['id'], 'quantity': 3},
    ], payment_method='mpesa')

    assert container.inventory_service.get_product(stocked['piston']['id'])['quantity'] == 6
    assert container.inventory_service.get_product(stocked['chain']['id'])['quantity'] == 0


def test_checkout_cannot_exceed_stock(container, stocked):
    result = container.sales_service.create_sale([
        {'product_id': stocked['chain']['id'], 'quantity': 2},
        {'product_id': stocked['chain']['id'], 'quantity': 2},
    ])
    assert not result['ok']
    assert 'Insufficient stock' in result['error']
    assert container.sales_service.list_sales() == []
    assert container.inventory_service.get_product(stocked['chain']['id'])['quantity'] == 3


def test_checkout_rejects_bad_lines(container, stocked):
    assert not container.sales_service.create_sale([])['ok']
    assert not container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 0}])['ok']
    missing = container.sales_service.create_sale([{'product_id': 'prod_missing', 'quantity': 1}])
    assert missing['code'] == 404


def test_credit_sale_requires_customer_name(container, stocked):
    result = container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 1}], payment_method='credit'
    )
    assert not result['ok']
    assert 'Customer name' in result['error']
    assert container.inventory_service.get_product(stocked['piston']['id'])['quantity'] == 10


def test_split_sale_with_shortfall_opens_credit(container, stocked):
    result = container.sales_service.create_sale(
        [{'product_id': stocked['chain']['id'], 'quantity': 2}],
        payment_method='split', cash_amount=1000, mpesa_amount=2000,
        customer_name='John Kamau', customer_phone='0712345678', user=ADMIN
    )
    assert result['ok'], result
    sale, credit = result['sale'], result['credit']
    assert sale['status'] == 'partial'
    assert sale['payment_details'] == {'cash': 1000, 'mpesa': 2000, 'credit': 2000}
    assert sale['customer_id'].startswith('cust_')

    assert credit['sale_id'] == sale['id']
    assert credit['customer_id'] == sale['customer_id']
    assert credit['total_amount'] == 2000
    assert credit['remaining_balance'] == 2000
    assert credit['amount_paid'] == 0
    assert credit['status'] == 'active'
    assert credit['items'][0]['product_name'] == 'Chain'


def test_full_credit_sale(container, stocked):
    result = container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 1}],
        payment_method='credit', customer_name='Mary W'
    )
    assert result['sale']['status'] == 'credit'
    assert result['credit']['total_amount'] == 1000
    assert len(container.credit_service.list_credits()) == 1


def test_cash_sale_creates_no_credit(container, stocked):
    result = container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 1}], payment_method='cash'
    )
    assert result['credit'] is None
    assert container.credit_service.list_credits() == []


def test_list_sales_filters(container, stocked):
    container.sales_service.create_sale([{'product_id': stocked['piston']['id'], 'quantity': 1}])
    container.sales_service.create_sale(
        [{'product_id': stocked['piston']['id'], 'quantity': 1}],
        payment_method='credit', customer_name='Ann'
    )
    assert len(container.sales_service.list_sales()) == 2
    assert len(container.sales_service.list_sales(status='credit')) == 1
    assert len(container.sales_service.list_sales(payment_method='cash')) == 1
