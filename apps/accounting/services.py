"""
Expense bookkeeping.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from .models import Account, Expense, ExpenseItem

logger = logging.getLogger(__name__)


class ExpenseService:
    @staticmethod
    @transaction.atomic
    def create_expense(tenant, data, user=None):
        """
        Create an expense with optional line items.

        Without an explicit ``amount`` the expense totals its items.
        """
        items = data.pop("items", None) or []
        amount = data.pop("amount", None)
        if amount is None:
            amount = sum(
                (Decimal(item["amount"]) * item.get("quantity", 1) for item in items), Decimal("0.00")
            )
        if amount <= 0:
            raise ValueError("Amount must be greater than 0")

        expense = Expense.objects.create(tenant=tenant, amount=amount, created_by=user, **data)
        for item in items:
            ExpenseItem.objects.create(expense=expense, **item)

        logger.info(f"Recorded expense {expense.id} of {amount} for tenant {tenant.id}")
        return expense

    @staticmethod
    @transaction.atomic
    def change_status(expense, new_status):
        """
        Move an expense to ``new_status``.

        Paying debits the linked account; a paid expense cannot change again.
        """
        expense = Expense.objects.select_for_update().get(pk=expense.pk)
        if expense.status == Expense.PAID:
            raise ValueError("A paid expense cannot change status")

        if new_status == Expense.PAID:
            if expense.account_id:
                account = Account.objects.select_for_update().get(pk=expense.account_id)
                account.debit(expense.amount)
            expense.paid_at = timezone.now()

        expense.status = new_status
        expense.save(update_fields=["status", "paid_at", "updated_at"])
        logger.info(f"Expense {expense.id} is now {new_status}")
        return expense
