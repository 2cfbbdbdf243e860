"""
Inventory services: stock level changes, movement history and alerts.

Every quantity change goes through ``InventoryService`` so that a
``StockMovement`` row is written and alerts are re-evaluated.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Inventory, InventoryAlert, StockMovement, StockTransfer

logger = logging.getLogger(__name__)


class InventoryService:
    """Stock level operations shared by inventory, sales, procurement and e-commerce."""

    ADD = "ADD"
    DEDUCT = "DEDUCT"
    SET = "SET"

    ADJUSTMENT_TYPES = (ADD, DEDUCT, SET)

    @staticmethod
    def get_locked_inventory(tenant, product, store):
        """
        Fetch the inventory row for ``product`` at ``store`` with a row lock,
        creating an empty one when it does not exist yet.
        """
        inventory, _ = Inventory.objects.select_for_update().get_or_create(
            tenant=tenant,
            product=product,
            store=store,
            defaults={"cost_price": product.cost_price},
        )
        return inventory

    @staticmethod
    def record_movement(
        inventory,
        movement_type,
        quantity,
        reason,
        user=None,
        reference_id="",
        notes="",
    ):
        return StockMovement.objects.create(
            tenant=inventory.tenant,
            product=inventory.product,
            inventory=inventory,
            store=inventory.store,
            movement_type=movement_type,
            quantity=quantity,
            reason=reason,
            reference_id=str(reference_id or ""),
            notes=notes or "",
            created_by=user,
        )

    @staticmethod
    @transaction.atomic
    def stock_in(inventory, quantity, reason, user=None, reference_id="", notes="", cost_price=None):
        """Add ``quantity`` units to an inventory row and return the movement."""
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        inventory.quantity += quantity
        if cost_price is not None:
            inventory.cost_price = cost_price
        inventory.save()

        movement = InventoryService.record_movement(
            inventory, StockMovement.IN, quantity, reason, user, reference_id, notes
        )
        InventoryService.check_inventory_alerts(inventory)
        return movement

    @staticmethod
    @transaction.atomic
    def stock_out(inventory, quantity, reason, user=None, reference_id="", notes="", strict=False):
        """
        Remove ``quantity`` units from an inventory row.

        With ``strict`` a shortage raises ``ValueError``; otherwise the
        quantity is clamped at zero (point of sale behaviour).
        """
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")
        if strict and quantity > inventory.quantity:
            raise ValueError(
                f"Insufficient stock for {inventory.product.name}. "
                f"Available: {inventory.quantity}, requested: {quantity}"
            )

        inventory.quantity = max(inventory.quantity - quantity, 0)
        inventory.save()

        movement = InventoryService.record_movement(
            inventory, StockMovement.OUT, quantity, reason, user, reference_id, notes
        )
        InventoryService.check_inventory_alerts(inventory)
        return movement

    @staticmethod
    @transaction.atomic
    def adjust(inventory, adjustment_type, quantity, reason="", user=None):
        """
        Apply an ADD, DEDUCT or SET adjustment and record the signed change.
        """
        if adjustment_type not in InventoryService.ADJUSTMENT_TYPES:
            raise ValueError("adjustment_type must be one of ADD, DEDUCT or SET")
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")

        old_quantity = inventory.quantity
        if adjustment_type == InventoryService.ADD:
            new_quantity = old_quantity + quantity
        elif adjustment_type == InventoryService.DEDUCT:
            if quantity > old_quantity:
                raise ValueError(
                    f"Cannot deduct {quantity} units. Only {old_quantity} units available."
                )
            new_quantity = old_quantity - quantity
        else:
            new_quantity = quantity

        inventory.quantity = new_quantity
        inventory.save()

        InventoryService.record_movement(
            inventory,
            StockMovement.ADJUSTMENT,
            new_quantity - old_quantity,
            StockMovement.REASON_ADJUSTMENT,
            user,
            notes=reason or f"{adjustment_type} adjustment",
        )
        InventoryService.check_inventory_alerts(inventory)

        logger.info(
            f"Adjusted stock of {inventory.product.name} from {old_quantity} to {new_quantity}"
        )
        return inventory

    @staticmethod
    def _open_alert(inventory, alert_type, severity, message):
        exists = InventoryAlert.objects.filter(
            inventory=inventory, alert_type=alert_type, is_resolved=False
        ).exists()
        if exists:
            return None
        return InventoryAlert.objects.create(
            tenant=inventory.tenant,
            product=inventory.product,
            inventory=inventory,
            alert_type=alert_type,
            severity=severity,
            message=message,
        )

    @staticmethod
    def check_inventory_alerts(inventory, today=None):
        """
        Raise low stock, overstock and expiry alerts for an inventory row.

        Returns the alerts created by this call. An unresolved alert of the
        same type on the same row suppresses a new one.
        """
        today = today or timezone.localdate()
        created = []
        name = inventory.product.name

        if inventory.quantity <= inventory.min_stock:
            if inventory.quantity == 0:
                severity = InventoryAlert.CRITICAL
            elif inventory.quantity <= inventory.min_stock / 2:
                severity = InventoryAlert.HIGH
            else:
                severity = InventoryAlert.MEDIUM
            created.append(
                InventoryService._open_alert(
                    inventory,
                    InventoryAlert.LOW_STOCK,
                    severity,
                    f"{name} is low on stock ({inventory.quantity} left, minimum {inventory.min_stock})",
                )
            )

        if inventory.max_stock is not None and inventory.quantity >= inventory.max_stock:
            created.append(
                InventoryService._open_alert(
                    inventory,
                    InventoryAlert.OVERSTOCK,
                    InventoryAlert.MEDIUM,
                    f"{name} is overstocked ({inventory.quantity} on hand, maximum {inventory.max_stock})",
                )
            )

        if inventory.expiry_date:
            warning_until = today + timedelta(days=settings.INVENTORY_EXPIRY_WARNING_DAYS)
            if inventory.expiry_date <= warning_until:
                days_left = (inventory.expiry_date - today).days
                severity = InventoryAlert.CRITICAL if days_left <= 7 else InventoryAlert.HIGH
                created.append(
                    InventoryService._open_alert(
                        inventory,
                        InventoryAlert.EXPIRING,
                        severity,
                        f"{name} expires on {inventory.expiry_date.isoformat()}",
                    )
                )

        return [alert for alert in created if alert is not None]

    @staticmethod
    @transaction.atomic
    def complete_transfer(transfer, user=None):
        """
        Move every item of a pending transfer from the source to the
        destination store.
        """
        transfer = StockTransfer.objects.select_for_update().get(pk=transfer.pk)
        if transfer.status != StockTransfer.PENDING:
            raise ValueError(f"Cannot complete a transfer with status {transfer.status}")

        for item in transfer.items.select_related("product"):
            source = InventoryService.get_locked_inventory(
                transfer.tenant, item.product, transfer.from_store
            )
            if source.quantity < item.quantity:
                raise ValueError(
                    f"Insufficient stock for {item.product.name} at {transfer.from_store.name}. "
                    f"Available: {source.quantity}, requested: {item.quantity}"
                )
            InventoryService.stock_out(
                source,
                item.quantity,
                StockMovement.REASON_TRANSFER,
                user,
                reference_id=transfer.transfer_number,
                strict=True,
            )

            destination = InventoryService.get_locked_inventory(
                transfer.tenant, item.product, transfer.to_store
            )
            InventoryService.stock_in(
                destination,
                item.quantity,
                StockMovement.REASON_TRANSFER,
                user,
                reference_id=transfer.transfer_number,
            )

        transfer.status = StockTransfer.COMPLETED
        transfer.completed_at = timezone.now()
        transfer.save(update_fields=["status", "completed_at"])

        logger.info(f"Completed stock transfer {transfer.transfer_number}")
        return transfer
