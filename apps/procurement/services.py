"""
Procurement services: purchase order lifecycle and the supplier ledger.

Receiving goods adds stock at the order's store, records a PURCHASE stock
movement per line and books the received value on the supplier ledger.
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from django_fsm import can_proceed

from apps.core.utils import random_code
from apps.inventory.models import StockMovement
from apps.inventory.services import InventoryService

from .models import PurchaseOrder, PurchaseOrderItem, Supplier, SupplierLedger

logger = logging.getLogger(__name__)


class SupplierLedgerService:
    @staticmethod
    @transaction.atomic
    def post_entry(
        supplier,
        entry_type,
        amount,
        description="",
        reference_id="",
        user=None,
        date=None,
    ):
        """
        Append a signed entry to the supplier's ledger and move ``balance``
        to the new running balance.
        """
        supplier = Supplier.objects.select_for_update().get(pk=supplier.pk)
        amount = Decimal(str(amount))
        balance = supplier.balance + amount

        entry = SupplierLedger.objects.create(
            tenant=supplier.tenant,
            supplier=supplier,
            entry_type=entry_type,
            amount=amount,
            balance=balance,
            description=description,
            reference_id=str(reference_id or ""),
            date=date or timezone.now(),
            created_by=user,
        )

        supplier.balance = balance
        supplier.save(update_fields=["balance", "updated_at"])
        return entry


class PurchaseOrderService:
    """Service class for purchase order operations."""

    # Statuses that can be requested through an update, mapped to transitions
    STATUS_TRANSITIONS = {
        PurchaseOrder.SENT: "send",
        PurchaseOrder.CONFIRMED: "confirm",
        PurchaseOrder.CANCELLED: "cancel",
    }

    @staticmethod
    def generate_po_number(tenant):
        """Generate a unique PO-YYYYMMDD-XXXXX number."""
        date_str = timezone.now().strftime("%Y%m%d")
        while True:
            po_number = f"PO-{date_str}-{random_code(5)}"
            if not PurchaseOrder.objects.filter(tenant=tenant, po_number=po_number).exists():
                return po_number

    @staticmethod
    def _add_items(purchase_order, items):
        for item in items:
            PurchaseOrderItem.objects.create(
                purchase_order=purchase_order,
                product=item["product"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                notes=item.get("notes", ""),
            )

    @staticmethod
    @transaction.atomic
    def create_purchase_order(
        tenant,
        supplier,
        items,
        store=None,
        user=None,
        shipping=Decimal("0.00"),
        expected_date=None,
        notes="",
    ):
        """
        Create a DRAFT purchase order with its lines.

        Tax is charged at ``POS_DEFAULT_TAX_RATE`` on the subtotal; shipping is
        added on top.
        """
        if not items:
            raise ValueError("At least one item is required")

        purchase_order = PurchaseOrder.objects.create(
            tenant=tenant,
            po_number=PurchaseOrderService.generate_po_number(tenant),
            supplier=supplier,
            store=store,
            shipping=shipping or Decimal("0.00"),
            expected_date=expected_date,
            notes=notes or "",
            created_by=user,
        )
        PurchaseOrderService._add_items(purchase_order, items)
        purchase_order.calculate_totals(settings.POS_DEFAULT_TAX_RATE)

        logger.info(
            f"Created purchase order {purchase_order.po_number} for supplier {supplier.id} "
            f"(total {purchase_order.total_amount})"
        )
        return purchase_order

    @staticmethod
    @transaction.atomic
    def update_purchase_order(purchase_order, data):
        """
        Apply an update to a purchase order.

        ``items`` replace the order lines and are only accepted in DRAFT. A
        ``status`` fires the matching transition; an illegal one raises
        ``ValueError``.
        """
        purchase_order = PurchaseOrder.objects.select_for_update().get(pk=purchase_order.pk)

        for field in ("notes", "expected_date", "shipping", "store"):
            if field in data:
                setattr(purchase_order, field, data[field])

        if "items" in data:
            if purchase_order.status != PurchaseOrder.DRAFT:
                raise ValueError("Items can only be changed while the purchase order is a draft")
            if not data["items"]:
                raise ValueError("At least one item is required")
            purchase_order.items.all().delete()
            PurchaseOrderService._add_items(purchase_order, data["items"])

        new_status = data.get("status")
        if new_status and new_status != purchase_order.status:
            transition_name = PurchaseOrderService.STATUS_TRANSITIONS.get(new_status)
            if transition_name is None:
                raise ValueError(f"Cannot set status to {new_status} directly")
            transition = getattr(purchase_order, transition_name)
            if not can_proceed(transition):
                raise ValueError(
                    f"Cannot change status from {purchase_order.status} to {new_status}"
                )
            transition()

        purchase_order.save()
        purchase_order.calculate_totals(settings.POS_DEFAULT_TAX_RATE)
        return purchase_order

    @staticmethod
    @transaction.atomic
    def receive_items(purchase_order, quantities=None, user=None):
        """
        Receive goods against a purchase order.

        ``quantities`` is a list of ``{"item": <uuid>, "received_quantity": n}``;
        when omitted every outstanding unit is received. Returns the order and
        the value received.
        """
        purchase_order = PurchaseOrder.objects.select_for_update().get(pk=purchase_order.pk)
        if not can_proceed(purchase_order.receive):
            raise ValueError(
                f"Cannot receive a purchase order with status {purchase_order.status}"
            )
        if purchase_order.store is None:
            raise ValueError("Purchase order has no receiving store")

        items = {item.id: item for item in purchase_order.items.select_related("product")}
        if quantities is None:
            plan = [(item, item.remaining_quantity) for item in items.values()]
        else:
            plan = []
            for entry in quantities:
                item = items.get(entry["item"])
                if item is None:
                    raise ValueError(f"Item {entry['item']} is not part of this purchase order")
                plan.append((item, entry["received_quantity"]))

        received_value = Decimal("0.00")
        received_units = 0
        for item, quantity in plan:
            if quantity == 0:
                continue
            item.receive_quantity(quantity)

            inventory = InventoryService.get_locked_inventory(
                purchase_order.tenant, item.product, purchase_order.store
            )
            InventoryService.stock_in(
                inventory,
                quantity,
                StockMovement.REASON_PURCHASE,
                user,
                reference_id=purchase_order.po_number,
                notes=f"Received from {purchase_order.supplier.name}",
                cost_price=item.unit_price,
            )
            received_value += quantity * item.unit_price
            received_units += quantity

        if received_units == 0:
            raise ValueError("Nothing to receive")

        purchase_order.receive()
        purchase_order.save()

        SupplierLedgerService.post_entry(
            purchase_order.supplier,
            SupplierLedger.PURCHASE,
            received_value,
            description=f"Goods received on {purchase_order.po_number}",
            reference_id=purchase_order.po_number,
            user=user,
        )

        logger.info(
            f"Received {received_value} on purchase order {purchase_order.po_number}, "
            f"status now {purchase_order.status}"
        )
        return purchase_order, received_value
