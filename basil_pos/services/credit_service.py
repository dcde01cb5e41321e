# ==============================================================================
# CREDIT SERVICE
# ==============================================================================
# Customer balances left owing at checkout and the payments against them.
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List, Optional

from basil_pos.models import (
    Credit, CreditPayment, CreditPaymentMethod, CreditStatus, Sale
)
from basil_pos.performance_logger import profile_function
from basil_pos.repositories.credit_repository import CreditRepository
from basil_pos.utils import money, new_id, now_iso, parse_timestamp, to_float


class CreditService:
    """
    Credit ledger.

    Responsibilities:
    - Open a credit when a sale is not fully paid
    - Record payments, never beyond the remaining balance
    - Keep amount_paid + remaining_balance == total_amount
    - Outstanding totals for the credits screen and dashboard
    """

    def __init__(self, credit_repo: CreditRepository):
        self.credit_repo = credit_repo

    def create_from_sale(self, sale: Sale, amount: float, notes: str = '') -> Dict[str, Any]:
        """
        Opens a credit for the unpaid part of a sale.

        Args:
            sale: The sale just recorded
            amount: Credit portion of the sale

        Returns:
            The stored credit as a dict
        """
        now = now_iso()
        credit = Credit(
            id=new_id('credit'),
            customer_id=sale.customer_id or new_id('cust'),
            customer_name=sale.customer_name,
            customer_phone=sale.customer_phone,
            sale_id=sale.id,
            items=[item.to_dict() for item in sale.items],
            total_amount=money(amount),
            amount_paid=0.0,
            remaining_balance=money(amount),
            status=CreditStatus.ACTIVE,
            notes=notes or '',
            credit_date=sale.sale_date,
            created_at=now,
            updated_at=now,
        )
        self.credit_repo.create_credit(credit.to_dict())
        return credit.to_dict()

    def get_credit(self, credit_id: str) -> Optional[Dict[str, Any]]:
        return self.credit_repo.get_by_id(credit_id)

    def list_credits(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        customer_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Args:
            status: active, partial or cleared; 'all' or None for everything
            search: Matches customer name (ignoring case) or phone
            customer_id: Only this customer

        Returns:
            Credits, newest first
        """
        credits = self.credit_repo.get_all()
        term = (search or '').strip().lower()

        result = []
        for credit in credits:
            if status and status != 'all' and credit.get('status') != status:
                continue
            if customer_id and credit.get('customer_id') != customer_id:
                continue
            if term:
                name = (credit.get('customer_name') or '').lower()
                phone = credit.get('customer_phone') or ''
                if term not in name and term not in phone:
                    continue
            result.append(credit)

        return sorted(
            result,
            key=lambda c: parse_timestamp(c.get('credit_date') or c.get('created_at')) or datetime.min,
            reverse=True
        )

    @profile_function(name='Record credit payment')
    def add_payment(
        self,
        credit_id: str,
        amount: Any,
        payment_method: str = 'cash',
        user: Optional[Dict[str, Any]] = None,
        notes: str = ''
    ) -> Dict[str, Any]:
        """
        Records a payment against a credit.

        Args:
            credit_id: Credit being paid down
            amount: Positive amount, at most the remaining balance
            payment_method: cash or mpesa
            user: Acting user ({'id', 'full_name'})
            notes: Optional note

        Returns:
            Dict with ok, credit and payment
        """
        amount = to_float(amount)
        if amount is not None:
            amount = money(amount)
        if amount is None or amount <= 0:
            return {'ok': False, 'error': 'Payment amount must be greater than 0'}

        try:
            method = CreditPaymentMethod(payment_method or 'cash')
        except ValueError:
            return {'ok': False, 'error': f"Unknown payment method '{payment_method}'"}

        data = self.credit_repo.get_by_id(credit_id)
        if not data:
            return {'ok': False, 'error': 'Credit not found', 'code': 404}

        credit = Credit.from_dict(data)
        if credit.is_cleared:
            return {'ok': False, 'error': 'This credit is already cleared'}

        remaining = money(credit.remaining_balance)
        if amount > remaining:
            return {
                'ok': False,
                'error': f'Payment exceeds the remaining balance ({remaining:.2f})',
                'remaining_balance': remaining
            }

        user = user or {}
        payment = CreditPayment(
            id=new_id('pay'),
            amount=amount,
            payment_method=method,
            received_by=user.get('id', ''),
            received_by_name=user.get('full_name', ''),
            notes=(notes or '').strip(),
            date=now_iso(),
        )

        credit.payments.append(payment)
        credit.amount_paid = money(credit.amount_paid + amount)
        credit.remaining_balance = money(credit.total_amount - credit.amount_paid)
        if credit.remaining_balance <= 0:
            credit.remaining_balance = 0.0
            credit.status = CreditStatus.CLEARED
        else:
            credit.status = CreditStatus.PARTIAL
        credit.updated_at = payment.date

        stored = credit.to_dict()
        self.credit_repo.update_credit(credit_id, {
            'payments': stored['payments'],
            'amount_paid': stored['amount_paid'],
            'remaining_balance': stored['remaining_balance'],
            'status': stored['status'],
            'updated_at': stored['updated_at'],
        })

        return {
            'ok': True,
            'credit': stored,
            'payment': payment.to_dict(),
            'status_changed': data.get('status') != stored['status']
        }

    def get_summary(self) -> Dict[str, Any]:
        """
        Returns:
            total_outstanding plus active/partial/cleared counts
        """
        credits = self.credit_repo.get_all()
        counts = {status.value: 0 for status in CreditStatus}
        outstanding = 0.0
        for credit in credits:
            status = credit.get('status')
            if status in counts:
                counts[status] += 1
            if status != CreditStatus.CLEARED.value:
                outstanding += float(credit.get('remaining_balance', 0) or 0)

        return {
            'total_outstanding': money(outstanding),
            'active_count': counts['active'],
            'partial_count': counts['partial'],
            'cleared_count': counts['cleared'],
            'total_count': len(credits),
        }
