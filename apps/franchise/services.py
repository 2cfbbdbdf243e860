"""
Franchise services: applications, client onboarding and royalty collection.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from dateutil.relativedelta import relativedelta

from apps.core.models import User
from apps.core.utils import random_code

from .models import Franchise, FranchiseClient, FranchiseUser, RoyaltyPayment

logger = logging.getLogger(__name__)


class FranchiseConflict(ValueError):
    """A franchise, user or client with the same email already exists."""


def first_of_next_month(moment):
    return moment + relativedelta(months=1, day=1, hour=0, minute=0, second=0, microsecond=0)


class FranchiseService:
    @staticmethod
    def create_franchise_user(franchise, email, password, name="", role=FranchiseUser.STAFF, permissions=None):
        """Create a login for a franchise member."""
        if User.objects.filter(Q(email__iexact=email) | Q(username__iexact=email)).exists():
            raise FranchiseConflict("User with this email already exists")

        first_name, _, last_name = (name or "").partition(" ")
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=User.FRANCHISE_USER,
        )
        return FranchiseUser.objects.create(
            franchise=franchise, user=user, role=role, permissions=permissions or []
        )

    @staticmethod
    @transaction.atomic
    def apply(data):
        """
        Register a PENDING franchise together with its ADMIN user.

        ``data`` carries the franchise fields plus ``admin_name``,
        ``admin_email`` and ``admin_password``.
        """
        data = dict(data)
        admin_name = data.pop("admin_name")
        admin_email = data.pop("admin_email")
        admin_password = data.pop("admin_password")

        if Franchise.objects.filter(email__iexact=data["email"]).exists():
            raise FranchiseConflict("Franchise with this email already exists")

        franchise = Franchise.objects.create(status=Franchise.PENDING, **data)
        membership = FranchiseService.create_franchise_user(
            franchise, admin_email, admin_password, name=admin_name, role=FranchiseUser.ADMIN
        )
        logger.info(f"Franchise application received from {franchise.email}")
        return franchise, membership

    @staticmethod
    def update_status(franchise, new_status, block_reason=""):
        franchise.status = new_status
        if new_status == Franchise.APPROVED:
            franchise.approved_at = timezone.now()
            franchise.is_blocked = False
            franchise.block_reason = ""
        if new_status == Franchise.SUSPENDED or block_reason:
            franchise.is_blocked = True
            franchise.block_reason = block_reason or "Suspended by administrator"
        franchise.save()
        logger.info(f"Franchise {franchise.id} status changed to {new_status}")
        return franchise

    @staticmethod
    def update_fees(franchise, fees):
        for field in ("one_time_fee", "monthly_fee", "max_clients"):
            if field in fees:
                setattr(franchise, field, fees[field])
        franchise.save()
        logger.info(f"Franchise {franchise.id} fees updated")
        return franchise

    @staticmethod
    @transaction.atomic
    def add_client(franchise, data):
        """
        Onboard a client and open its ONE_TIME and first MONTHLY royalty
        payments.
        """
        franchise = Franchise.objects.select_for_update().get(pk=franchise.pk)
        if franchise.clients.filter(client_email__iexact=data["client_email"]).exists():
            raise FranchiseConflict("Client with this email already exists")
        if franchise.current_clients >= franchise.max_clients:
            raise ValueError(f"Client limit of {franchise.max_clients} reached")

        client = FranchiseClient.objects.create(
            franchise=franchise, client_id=f"CL-{random_code(10)}", **data
        )

        now = timezone.now()
        RoyaltyPayment.objects.create(
            franchise=franchise,
            client=client,
            amount=franchise.one_time_fee,
            payment_type=RoyaltyPayment.ONE_TIME,
            due_date=now,
        )
        RoyaltyPayment.objects.create(
            franchise=franchise,
            client=client,
            amount=franchise.monthly_fee,
            payment_type=RoyaltyPayment.MONTHLY,
            due_date=first_of_next_month(now),
        )

        franchise.current_clients += 1
        franchise.outstanding_balance += franchise.one_time_fee + franchise.monthly_fee
        franchise.save(update_fields=["current_clients", "outstanding_balance", "updated_at"])

        logger.info(f"Franchise {franchise.id} onboarded client {client.client_id}")
        return client

    @staticmethod
    @transaction.atomic
    def process_royalty_payments(payment_ids, payment_method, transaction_id="", notes=""):
        """
        Mark royalty payments as PAID. Already paid rows are skipped.

        Raises ``RoyaltyPayment.DoesNotExist`` for an unknown id. Returns the
        processed payments and their total.
        """
        payments = {
            payment.id: payment
            for payment in RoyaltyPayment.objects.select_for_update().filter(id__in=payment_ids)
        }
        for payment_id in payment_ids:
            if payment_id not in payments:
                raise RoyaltyPayment.DoesNotExist(f"Payment with ID {payment_id} not found")

        processed = []
        total = Decimal("0.00")
        now = timezone.now()

        for payment_id in payment_ids:
            payment = payments[payment_id]
            if payment.status == RoyaltyPayment.PAID:
                continue

            payment.status = RoyaltyPayment.PAID
            payment.paid_date = now
            payment.payment_method = payment_method
            payment.transaction_id = transaction_id or ""
            payment.notes = notes or payment.notes
            payment.save()

            franchise = Franchise.objects.select_for_update().get(pk=payment.franchise_id)
            franchise.outstanding_balance -= payment.amount
            franchise.total_revenue += payment.amount

            client = payment.client
            if client is not None:
                if payment.payment_type == RoyaltyPayment.ONE_TIME:
                    client.one_time_fee_paid = True
                else:
                    client.monthly_fee_paid = True
                client.total_paid += payment.amount
                client.last_payment_date = now
                client.save()

                if payment.payment_type == RoyaltyPayment.MONTHLY:
                    RoyaltyPayment.objects.create(
                        franchise=franchise,
                        client=client,
                        amount=franchise.monthly_fee,
                        payment_type=RoyaltyPayment.MONTHLY,
                        due_date=payment.due_date + relativedelta(months=1),
                    )
                    franchise.outstanding_balance += franchise.monthly_fee

            franchise.save(update_fields=["outstanding_balance", "total_revenue", "updated_at"])
            processed.append(payment)
            total += payment.amount

        logger.info(f"Processed {len(processed)} royalty payments totalling {total}")
        return processed, total

    @staticmethod
    def royalty_overview(franchise_id=None):
        payments = RoyaltyPayment.objects.all()
        franchises = Franchise.objects.all()
        clients = FranchiseClient.objects.all()
        if franchise_id:
            payments = payments.filter(franchise_id=franchise_id)
            franchises = franchises.filter(id=franchise_id)
            clients = clients.filter(franchise_id=franchise_id)

        collected = payments.filter(status=RoyaltyPayment.PAID).aggregate(total=Sum("amount"))[
            "total"
        ] or Decimal("0.00")
        outstanding = payments.filter(
            status__in=[RoyaltyPayment.PENDING, RoyaltyPayment.OVERDUE]
        ).aggregate(total=Sum("amount"))["total"] or Decimal("0.00")
        billed = collected + outstanding

        payment_stats = {
            row["status"]: {"count": row["count"], "amount": row["amount"]}
            for row in payments.order_by().values("status").annotate(count=Count("id"), amount=Sum("amount"))
        }
        overdue = payments.filter(status=RoyaltyPayment.OVERDUE).select_related("franchise")

        return {
            "summary": {
                "total_franchises": franchises.count(),
                "active_franchises": franchises.filter(
                    status=Franchise.APPROVED, is_blocked=False
                ).count(),
                "total_clients": clients.count(),
                "total_revenue": collected,
                "total_outstanding": outstanding,
                "collection_rate": round(collected / billed * 100) if billed else 0,
            },
            "payment_stats": payment_stats,
            "overdue_payments": [
                {
                    "id": str(payment.id),
                    "amount": payment.amount,
                    "due_date": payment.due_date,
                    "franchise": {"id": str(payment.franchise_id), "name": payment.franchise.name},
                }
                for payment in overdue
            ],
        }

    @staticmethod
    @transaction.atomic
    def mark_overdue_payments(now=None):
        """
        Flag PENDING payments past due as OVERDUE and block the franchises
        that owe them. Returns the number of payments flagged.
        """
        now = now or timezone.now()
        due = RoyaltyPayment.objects.filter(status=RoyaltyPayment.PENDING, due_date__lt=now)
        franchise_ids = set(due.values_list("franchise_id", flat=True))
        count = due.update(status=RoyaltyPayment.OVERDUE)

        if franchise_ids:
            Franchise.objects.filter(id__in=franchise_ids, is_blocked=False).update(
                is_blocked=True, block_reason="Overdue royalty payments", updated_at=now
            )
        return count
