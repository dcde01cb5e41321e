# ==============================================================================
# REPORT SERVICE
# ==============================================================================
# Sales reports by day / week / month, dashboard figures and CSV export.
#
# Every sale counts, whatever its status: a credit sale is revenue on the
# day it was made, the money owed is tracked by the credits ledger.
#
# Day boundaries are local time.
# ==============================================================================

import calendar
import csv
import io
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from basil_pos.models import CreditStatus, PaymentMethod, ReportType
from basil_pos.performance_logger import profile_function
from basil_pos.repositories.credit_repository import CreditRepository
from basil_pos.repositories.inventory_repository import InventoryRepository
from basil_pos.repositories.sales_repository import SalesRepository
from basil_pos.utils import money, parse_timestamp


def _day_bounds(start_day: date, end_day: date) -> Tuple[datetime, datetime]:
    return datetime.combine(start_day, time.min), datetime.combine(end_day, time.max)


def get_date_range(report_type: str, selected_date: date) -> Tuple[datetime, datetime]:
    """
    Period covered by a report.

    Args:
        report_type: daily, weekly (Sunday to Saturday) or monthly
        selected_date: Any day inside the period

    Returns:
        (start, end), 00:00:00 of the first day to 23:59:59.999999 of the last

    Raises:
        ValueError: Unknown report type
    """
    kind = ReportType(report_type)

    if kind == ReportType.DAILY:
        return _day_bounds(selected_date, selected_date)

    if kind == ReportType.WEEKLY:
        days_since_sunday = (selected_date.weekday() + 1) % 7
        week_start = selected_date - timedelta(days=days_since_sunday)
        return _day_bounds(week_start, week_start + timedelta(days=6))

    last_day = calendar.monthrange(selected_date.year, selected_date.month)[1]
    return _day_bounds(selected_date.replace(day=1), selected_date.replace(day=last_day))


def _month_before(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _sale_time(sale: Dict[str, Any]) -> datetime:
    return parse_timestamp(sale.get('sale_date')) or datetime.min


def summarize_sales(sales: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Totals over a list of sales.

    Returns:
        total_sales, total_items, gross_revenue, total_discount,
        total_revenue (net), total_cost, total_profit, profit_margin (%)
    """
    gross = discount = revenue = cost = profit = 0.0
    items = 0
    for sale in sales:
        gross += float(sale.get('total_amount', 0) or 0)
        discount += float(sale.get('total_discount', 0) or 0)
        revenue += float(sale.get('final_amount', 0) or 0)
        cost += float(sale.get('total_cost', 0) or 0)
        profit += float(sale.get('total_profit', 0) or 0)
        items += sum(int(i.get('quantity', 0) or 0) for i in sale.get('items') or [])

    margin = round(profit / revenue * 100, 2) if revenue > 0 else 0.0
    return {
        'total_sales': len(sales),
        'total_items': items,
        'gross_revenue': money(gross),
        'total_discount': money(discount),
        'total_revenue': money(revenue),
        'total_cost': money(cost),
        'total_profit': money(profit),
        'profit_margin': margin,
    }


def payment_breakdown(sales: List[Dict[str, Any]]) -> Dict[str, float]:
    """Net revenue per payment method."""
    breakdown = {method.value: 0.0 for method in PaymentMethod}
    for sale in sales:
        method = sale.get('payment_method')
        if method in breakdown:
            breakdown[method] += float(sale.get('final_amount', 0) or 0)
    return {method: money(total) for method, total in breakdown.items()}


def product_summary(sales: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Per-product performance, highest revenue first.
    """
    summary: Dict[str, Dict[str, Any]] = {}
    for sale in sales:
        for item in sale.get('items') or []:
            pid = item.get('product_id')
            quantity = int(item.get('quantity', 0) or 0)
            entry = summary.setdefault(pid, {
                'product_id': pid,
                'product_name': item.get('product_name', ''),
                'sku': item.get('sku', ''),
                'unit_price': float(item.get('unit_price', 0) or 0),
                'total_quantity': 0,
                'total_revenue': 0.0,
                'total_discount': 0.0,
                'total_cost': 0.0,
                'total_profit': 0.0,
                'transactions': 0,
            })
            entry['total_quantity'] += quantity
            entry['total_revenue'] += float(item.get('subtotal', 0) or 0)
            entry['total_discount'] += float(item.get('discount', 0) or 0) * quantity
            entry['total_cost'] += float(item.get('cost_price', 0) or 0) * quantity
            entry['total_profit'] += float(item.get('profit', 0) or 0)
            entry['transactions'] += 1

    rows = list(summary.values())
    for row in rows:
        for key in ('total_revenue', 'total_discount', 'total_cost', 'total_profit'):
            row[key] = money(row[key])
    return sorted(rows, key=lambda r: r['total_revenue'], reverse=True)


class ReportService:
    """
    Reporting over the sales, credits and inventory stores.

    Responsibilities:
    - Daily / weekly / monthly sales reports
    - Day-by-day comparison, top products, per-method figures
    - Dashboard numbers
    - CSV export
    """

    def __init__(
        self,
        sales_repo: SalesRepository,
        credit_repo: CreditRepository,
        inventory_repo: InventoryRepository
    ):
        self.sales_repo = sales_repo
        self.credit_repo = credit_repo
        self.inventory_repo = inventory_repo

    def _sales_between(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        sales = self.sales_repo.get_sales_by_date_range(start, end)
        return sorted(sales, key=_sale_time, reverse=True)

    # =========================================================================
    # SALES REPORT
    # =========================================================================

    @profile_function(name='Sales report')
    def get_sales_report(self, report_type: str, selected_date: date) -> Dict[str, Any]:
        """
        Args:
            report_type: daily, weekly or monthly
            selected_date: Day inside the period

        Returns:
            Dict with ok, report_type, start_date, end_date, summary,
            payment_breakdown, product_summary and sales (newest first)
        """
        try:
            start, end = get_date_range(report_type, selected_date)
        except ValueError:
            return {'ok': False, 'error': f"Unknown report type '{report_type}'"}

        sales = self._sales_between(start, end)
        return {
            'ok': True,
            'report_type': report_type,
            'selected_date': selected_date.isoformat(),
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'summary': summarize_sales(sales),
            'payment_breakdown': payment_breakdown(sales),
            'product_summary': product_summary(sales),
            'sales': sales,
        }

    def get_daily_comparison(
        self,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """
        Totals per calendar day, oldest first. Defaults to the last 7 days.
        """
        end_day = end_day or date.today()
        start_day = start_day or end_day - timedelta(days=6)
        start, end = _day_bounds(start_day, end_day)

        days: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for sale in self.sales_repo.get_sales_by_date_range(start, end):
            days[_sale_time(sale).date().isoformat()].append(sale)

        result = []
        for day in sorted(days):
            summary = summarize_sales(days[day])
            result.append({
                'date': day,
                'total_sales': summary['total_sales'],
                'total_items': summary['total_items'],
                'total_revenue': summary['total_revenue'],
                'total_discount': summary['total_discount'],
                'total_profit': summary['total_profit'],
            })
        return result

    def get_top_products(
        self,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
        limit: int = 10
    ) -> List[Dict[str, Any]]:
        """
        Best sellers by quantity. Defaults to the month up to end_day.
        """
        end_day = end_day or date.today()
        start_day = start_day or _month_before(end_day)
        start, end = _day_bounds(start_day, end_day)

        rows = product_summary(self.sales_repo.get_sales_by_date_range(start, end))
        rows.sort(key=lambda r: (r['total_quantity'], r['total_revenue']), reverse=True)
        return rows[:max(limit, 0)]

    def get_sales_by_payment_method(
        self,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None
    ) -> Dict[str, Dict[str, Any]]:
        """
        Returns:
            {method: {count, total_amount, total_profit}} for every method
        """
        end_day = end_day or date.today()
        start_day = start_day or end_day.replace(day=1)
        start, end = _day_bounds(start_day, end_day)

        result = {m.value: {'count': 0, 'total_amount': 0.0, 'total_profit': 0.0}
                  for m in PaymentMethod}
        for sale in self.sales_repo.get_sales_by_date_range(start, end):
            entry = result.get(sale.get('payment_method'))
            if entry is None:
                continue
            entry['count'] += 1
            entry['total_amount'] += float(sale.get('final_amount', 0) or 0)
            entry['total_profit'] += float(sale.get('total_profit', 0) or 0)

        for entry in result.values():
            entry['total_amount'] = money(entry['total_amount'])
            entry['total_profit'] = money(entry['total_profit'])
        return result

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def get_dashboard_stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Returns:
            today_revenue, today_transactions, active_credits (active + partial),
            total_credit_amount (outstanding), low_stock_count
        """
        today = today or date.today()
        start, end = _day_bounds(today, today)
        today_sales = self.sales_repo.get_sales_by_date_range(start, end)

        outstanding = self.credit_repo.get_outstanding()

        return {
            'today_revenue': money(sum(float(s.get('final_amount', 0) or 0) for s in today_sales)),
            'today_transactions': len(today_sales),
            'active_credits': len(outstanding),
            'total_credit_amount': money(sum(float(c.get('remaining_balance', 0) or 0)
                                             for c in outstanding)),
            'low_stock_count': len(self.inventory_repo.get_low_stock()),
        }

    # =========================================================================
    # CSV EXPORT
    # =========================================================================

    @profile_function(name='Export report CSV')
    def export_csv(self, report_type: str, selected_date: date) -> Dict[str, Any]:
        """
        Builds the report as CSV: title block, SUMMARY, DETAILED SALES and
        PRODUCT SUMMARY sections. Strings are quoted, numbers are bare.

        Returns:
            Dict with ok, filename and content
        """
        report = self.get_sales_report(report_type, selected_date)
        if not report['ok']:
            return report

        si = io.StringIO()
        writer = csv.writer(si, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')

        writer.writerow(['Sales Report'])
        writer.writerow(['Report Type', report_type.upper()])
        writer.writerow(['Date', selected_date.isoformat()])
        writer.writerow(['Generated', datetime.now().strftime('%Y-%m-%d %H:%M:%S')])
        writer.writerow([])

        summary = report['summary']
        writer.writerow(['SUMMARY'])
        writer.writerow(['Total Sales', summary['total_sales']])
        writer.writerow(['Total Items Sold', summary['total_items']])
        writer.writerow(['Gross Revenue', summary['gross_revenue']])
        writer.writerow(['Total Discount', summary['total_discount']])
        writer.writerow(['Net Revenue', summary['total_revenue']])
        writer.writerow(['Total Cost', summary['total_cost']])
        writer.writerow(['Total Profit', summary['total_profit']])
        writer.writerow(['Profit Margin (%)', summary['profit_margin']])
        writer.writerow([])

        writer.writerow(['DETAILED SALES'])
        writer.writerow(['Date', 'Time', 'Sale ID', 'Customer', 'Items', 'Gross Amount',
                         'Discount', 'Final Amount', 'Profit', 'Payment Method', 'Status',
                         'Sold By'])
        for sale in report['sales']:
            when = _sale_time(sale)
            items = '; '.join(f"{i.get('product_name', '')} x{i.get('quantity', 0)}"
                              for i in sale.get('items') or [])
            writer.writerow([
                when.strftime('%Y-%m-%d'),
                when.strftime('%H:%M'),
                sale.get('id', ''),
                sale.get('customer_name') or 'Walk-in Customer',
                items,
                float(sale.get('total_amount', 0) or 0),
                float(sale.get('total_discount', 0) or 0),
                float(sale.get('final_amount', 0) or 0),
                float(sale.get('total_profit', 0) or 0),
                (sale.get('payment_method') or '').upper(),
                (sale.get('status') or '').upper(),
                sale.get('sold_by_name') or '',
            ])
        writer.writerow([])

        writer.writerow(['PRODUCT SUMMARY'])
        writer.writerow(['Product', 'SKU', 'Quantity Sold', 'Unit Price', 'Total Discount',
                         'Net Revenue', 'Total Cost', 'Profit', 'Transactions'])
        for row in report['product_summary']:
            writer.writerow([
                row['product_name'],
                row['sku'],
                row['total_quantity'],
                row['unit_price'],
                row['total_discount'],
                row['total_revenue'],
                row['total_cost'],
                row['total_profit'],
                row['transactions'],
            ])

        return {
            'ok': True,
            'filename': f"sales_report_{report_type}_{selected_date.isoformat()}.csv",
            'content': si.getvalue(),
        }
