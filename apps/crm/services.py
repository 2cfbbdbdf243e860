"""
CRM services: loyalty rules, purchase bookkeeping and the customer ledger.

The customer's ``due_balance`` always equals the ``balance`` of its latest
ledger entry; every ledger write goes through ``CustomerLedgerService``.
"""

import logging
import math
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Customer, CustomerLedger, LoyaltyProgram, LoyaltyTransaction

logger = logging.getLogger(__name__)


class LoyaltyService:
    """Loyalty tier and points rules."""

    @staticmethod
    def default_tiers():
        return [dict(tier) for tier in settings.LOYALTY_TIER_THRESHOLDS]

    @staticmethod
    def default_program(tenant):
        """Unsaved program with the platform defaults."""
        return LoyaltyProgram(
            tenant=tenant,
            name="Loyalty Program",
            points_per_dollar=Decimal("1.00"),
            signup_bonus=settings.LOYALTY_DEFAULT_SIGNUP_BONUS,
            tiers=LoyaltyService.default_tiers(),
            is_active=True,
        )

    @staticmethod
    def get_program(tenant):
        return LoyaltyProgram.objects.filter(tenant=tenant).first()

    @staticmethod
    def get_tiers(tenant):
        """The tenant's active program tiers, falling back to the defaults."""
        program = LoyaltyService.get_program(tenant)
        if program and program.is_active and program.tiers:
            return program.tiers
        return LoyaltyService.default_tiers()

    @staticmethod
    def tier_for_spending(total_spent, tiers):
        """
        Name of the highest tier whose ``min_spent`` is at most ``total_spent``.

        Returns None when no tier qualifies.
        """
        total_spent = Decimal(str(total_spent or 0))
        best = None
        for tier in tiers:
            min_spent = Decimal(str(tier.get("min_spent", 0)))
            if min_spent <= total_spent and (best is None or min_spent >= best[0]):
                best = (min_spent, str(tier["name"]).upper())
        return best[1] if best else None

    @staticmethod
    def points_for_amount(amount):
        """One point per ``LOYALTY_POINTS_DIVISOR`` currency units, rounded down."""
        if not amount or amount <= 0:
            return 0
        return math.floor(Decimal(str(amount)) / Decimal(settings.LOYALTY_POINTS_DIVISOR))

    @staticmethod
    def grant_signup_bonus(customer):
        program = LoyaltyService.get_program(customer.tenant)
        if program is None or not program.is_active or program.signup_bonus <= 0:
            return None
        return customer.add_loyalty_points(
            program.signup_bonus,
            description="Signup bonus",
            transaction_type=LoyaltyTransaction.BONUS,
        )


class CustomerLedgerService:
    @staticmethod
    @transaction.atomic
    def post_entry(
        customer,
        entry_type,
        amount,
        description="",
        reference_id="",
        user=None,
        date=None,
    ):
        """
        Append a signed entry to the customer's ledger and move ``due_balance``
        to the new running balance.
        """
        customer = Customer.objects.select_for_update().get(pk=customer.pk)
        amount = Decimal(str(amount))
        balance = customer.due_balance + amount

        entry = CustomerLedger.objects.create(
            tenant=customer.tenant,
            customer=customer,
            entry_type=entry_type,
            amount=amount,
            balance=balance,
            description=description,
            reference_id=str(reference_id or ""),
            date=date or timezone.now(),
            created_by=user,
        )

        customer.due_balance = balance
        customer.save(update_fields=["due_balance", "updated_at"])
        return entry


class CustomerService:
    """Customer bookkeeping triggered by sales and payments."""

    @staticmethod
    @transaction.atomic
    def record_paid_purchase(customer, total, sale=None):
        """
        Update spending statistics and award points for a paid sale.
        """
        customer = Customer.objects.select_for_update().get(pk=customer.pk)
        customer.total_spent += total
        customer.visit_count += 1
        customer.last_visit = timezone.now()
        customer.save(update_fields=["total_spent", "visit_count", "last_visit", "updated_at"])

        points = LoyaltyService.points_for_amount(total)
        if points:
            description = f"Points earned on sale {sale.sale_number}" if sale else ""
            customer.add_loyalty_points(points, description=description, sale=sale)

        customer.update_loyalty_tier()
        return customer

    @staticmethod
    @transaction.atomic
    def receive_due_payment(customer, amount, payment_method, user=None, notes=""):
        """
        Settle part or all of a customer's due balance.

        Raises ``ValueError`` when the amount is not positive or exceeds the
        outstanding balance.
        """
        customer = Customer.objects.select_for_update().get(pk=customer.pk)
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Amount must be greater than 0")
        if amount > customer.due_balance:
            raise ValueError(
                f"Payment amount {amount} exceeds due balance {customer.due_balance}"
            )

        reference_id = f"DUE-{int(timezone.now().timestamp() * 1000)}"
        description = f"Due payment received via {payment_method}"
        if notes:
            description = f"{description}: {notes}"

        entry = CustomerLedgerService.post_entry(
            customer,
            CustomerLedger.PAYMENT,
            -amount,
            description=description[:255],
            reference_id=reference_id,
            user=user,
        )

        customer.refresh_from_db()
        points = LoyaltyService.points_for_amount(amount)
        if points:
            customer.add_loyalty_points(points, description=f"Points earned on due payment {reference_id}")
        customer.update_loyalty_tier()

        logger.info(
            f"Received due payment of {amount} from customer {customer.customer_number}, "
            f"remaining balance {customer.due_balance}"
        )
        return entry
