import csv
import io
from datetime import date, datetime

import pytest

from basil_pos.models import PaymentDetails
from basil_pos.services import get_date_range

from conftest import add_category, add_product, build_sale


# ==============================================================================
# DATE RANGES
# ==============================================================================

def test_daily_range():
    start, end = get_date_range('daily', date(2026, 3, 4))
    assert start == datetime(2026, 3, 4, 0, 0, 0)
    assert end == datetime(2026, 3, 4, 23, 59, 59, 999999)


def test_weekly_range_runs_sunday_to_saturday():
    # 2026-03-04 is a Wednesday
    start, end = get_date_range('weekly', date(2026, 3, 4))
    assert start.date() == date(2026, 3, 1)
    assert end.date() == date(2026, 3, 7)

    # a Sunday starts its own week
    start, _ = get_date_range('weekly', date(2026, 3, 8))
    assert start.date() == date(2026, 3, 8)


def test_monthly_range_handles_leap_february():
    start, end = get_date_range('monthly', date(2028, 2, 10))
    assert start.date() == date(2028, 2, 1)
    assert end.date() == date(2028, 2, 29)


def test_unknown_report_type():
    with pytest.raises(ValueError):
        get_date_range('yearly', date(2026, 3, 4))


# ==============================================================================
# SALES REPORT
# ==============================================================================

@pytest.fixture
def history(container):
    repo = container.sales_repo
    repo.append(build_sale('sale_1', '2026-03-04T09:15:00', [
        ('p1', 'Piston Kit', 2, 1000, 600, 100),
    ]))
    repo.append(build_sale('sale_2', '2026-03-04T16:40:00', [
        ('p2', 'Chain', 1, 2500, 1800, 0),
        ('p1', 'Piston Kit', 1, 1000, 600, 0),
    ], method='split', status='partial', customer_name='John',
        details=PaymentDetails(cash=1000, mpesa=1500, credit=1000)))
    repo.append(build_sale('sale_3', '2026-03-06T11:00:00', [
        ('p3', 'Brake Pads', 5, 300, 150, 0),
    ], method='mpesa'))
    repo.append(build_sale('sale_4', '2026-02-27T10:00:00', [
        ('p2', 'Chain', 1, 2500, 1800, 0),
    ]))
    return repo


def test_daily_report_summary(container, history):
    report = container.report_service.get_sales_report('daily', date(2026, 3, 4))
    assert report['ok']
    summary = report['summary']
    assert summary['total_sales'] == 2
    assert summary['total_items'] == 4
    assert summary['gross_revenue'] == 2000 + 2500 + 1000
    assert summary['total_discount'] == 200
    assert summary['total_revenue'] == 5300
    assert summary['total_cost'] == 1200 + 1800 + 600
    assert summary['total_profit'] == 5300 - 3600
    assert summary['profit_margin'] == round(1700 / 5300 * 100, 2)

    assert [s['id'] for s in report['sales']] == ['sale_2', 'sale_1']
    assert report['payment_breakdown'] == {'cash': 1800, 'mpesa': 0, 'split': 3500, 'credit': 0}


def test_product_summary_sorted_by_revenue(container, history):
    report = container.report_service.get_sales_report('daily', date(2026, 3, 4))
    rows = report['product_summary']
    assert [r['product_name'] for r in rows] == ['Piston Kit', 'Chain']
    piston = rows[0]
    assert piston['total_quantity'] == 3
    assert piston['total_revenue'] == 1800 + 1000
    assert piston['total_discount'] == 200
    assert piston['transactions'] == 2


def test_weekly_and_monthly_reports(container, history):
    weekly = container.report_service.get_sales_report('weekly', date(2026, 3, 4))
    assert weekly['summary']['total_sales'] == 3

    monthly = container.report_service.get_sales_report('monthly', date(2026, 2, 1))
    assert [s['id'] for s in monthly['sales']] == ['sale_4']


def test_empty_report_has_zero_margin(container):
    report = container.report_service.get_sales_report('daily', date(2026, 1, 1))
    assert report['summary']['total_sales'] == 0
    assert report['summary']['profit_margin'] == 0


def test_invalid_report_type_is_an_error(container):
    assert not container.report_service.get_sales_report('hourly', date(2026, 1, 1))['ok']


def test_daily_comparison(container, history):
    days = container.report_service.get_daily_comparison(date(2026, 2, 27), date(2026, 3, 6))
    assert [d['date'] for d in days] == ['2026-02-27', '2026-03-04', '2026-03-06']
    assert days[1]['total_sales'] == 2
    assert days[1]['total_revenue'] == 5300


def test_top_products_by_quantity(container, history):
    top = container.report_service.get_top_products(date(2026, 2, 1), date(2026, 3, 31), limit=2)
    assert [p['product_name'] for p in top] == ['Brake Pads', 'Piston Kit']
    assert top[0]['total_quantity'] == 5


def test_sales_by_payment_method(container, history):
    stats = container.report_service.get_sales_by_payment_method(date(2026, 3, 1), date(2026, 3, 31))
    assert stats['cash']['count'] == 1
    assert stats['split']['total_amount'] == 3500
    assert stats['mpesa']['total_profit'] == 750
    assert stats['credit'] == {'count': 0, 'total_amount': 0, 'total_profit': 0}


# ==============================================================================
# CSV EXPORT
# ==============================================================================

def test_csv_export_sections(container, history):
    result = container.report_service.export_csv('daily', date(2026, 3, 4))
    assert result['ok']
    assert result['filename'] == 'sales_report_daily_2026-03-04.csv'

    content = result['content']
    assert content.startswith('"Sales Report"\n')
    assert '"Report Type","DAILY"' in content
    for section in ('"SUMMARY"', '"DETAILED SALES"', '"PRODUCT SUMMARY"'):
        assert section in content
    assert '"Total Sales",2\n' in content

    rows = list(csv.reader(io.StringIO(content)))
    detail_header = rows.index(['DETAILED SALES']) + 1
    first_sale = rows[detail_header + 1]
    assert first_sale[2] == 'sale_2'
    assert first_sale[3] == 'John'
    assert first_sale[4] == 'Chain x1; Piston Kit x1'
    assert first_sale[9] == 'SPLIT'
    walk_in = rows[detail_header + 2]
    assert walk_in[3] == 'Walk-in Customer'


# ==============================================================================
# DASHBOARD
# ==============================================================================

def test_dashboard_stats(container):
    category = add_category(container)
    piston = add_product(container, category, price=1000, quantity=7)
    add_product(container, category, name='Chain', quantity=1, sku='CH-9')

    container.sales_service.create_sale([{'product_id': piston['id'], 'quantity': 2}])
    container.sales_service.create_sale(
        [{'product_id': piston['id'], 'quantity': 1}],
        payment_method='credit', customer_name='Ann'
    )

    stats = container.report_service.get_dashboard_stats()
    assert stats['today_revenue'] == 3000
    assert stats['today_transactions'] == 2
    assert stats['active_credits'] == 1
    assert stats['total_credit_amount'] == 1000
    # piston now at 4, chain at 1
    assert stats['low_stock_count'] == 2
