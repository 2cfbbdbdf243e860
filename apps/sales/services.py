"""
Sales services for point of sale transactions and product returns.

Handles:
- Sale creation with totals validation
- Inventory deduction with row locks
- Payments and credit (DUE) sales
- Customer spending statistics and loyalty points
- Returns with prorated tax, restocking and due balance adjustment
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from apps.core.utils import next_sequence_number
from apps.crm.models import CustomerLedger
from apps.crm.services import CustomerLedgerService, CustomerService
from apps.inventory.models import StockMovement
from apps.inventory.services import InventoryService

from .models import Payment, ProductReturn, ReturnItem, Sale, SaleItem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value):
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class SaleService:
    """Service class for sale operations."""

    @staticmethod
    def generate_sale_number(tenant):
        """Generate the next SALE-YYYYMMDD-NNNNNN number for today."""
        date_str = timezone.now().strftime("%Y%m%d")
        return next_sequence_number(
            Sale.objects.filter(tenant=tenant), "sale_number", f"SALE-{date_str}-", 6
        )

    @staticmethod
    def calculate_totals(items, tax_amount=Decimal("0.00"), discount=Decimal("0.00")):
        """
        Return ``(subtotal, total)`` for a list of item dicts with ``quantity``,
        ``unit_price`` and optional ``discount``.
        """
        subtotal = sum(
            (
                Decimal(item["quantity"]) * _money(item["unit_price"]) - _money(item.get("discount") or 0)
                for item in items
            ),
            Decimal("0.00"),
        )
        total = subtotal + _money(tax_amount) - _money(discount)
        return _money(subtotal), _money(total)

    @staticmethod
    @transaction.atomic
    def create_sale(
        tenant,
        items,
        employee=None,
        store=None,
        customer=None,
        payment_method=Sale.CASH,
        tax_amount=Decimal("0.00"),
        discount=Decimal("0.00"),
        total_amount=None,
        notes="",
        customer_name="",
        customer_email="",
        payment_reference="",
        source=Sale.SOURCE_POS,
    ):
        """
        Create a sale and apply all of its side effects in one transaction.

        ``items`` is a list of dicts with ``product``, ``quantity``,
        ``unit_price`` (defaults to the product price) and ``discount``.
        Raises ``ValueError`` for an empty cart, a mismatched
        ``total_amount`` or a DUE sale without a customer.
        """
        if not items:
            raise ValueError("At least one item is required")
        if payment_method == Sale.DUE and customer is None:
            raise ValueError("A customer is required for due sales")

        for item in items:
            if item.get("unit_price") is None:
                item["unit_price"] = item["product"].price

        subtotal, total = SaleService.calculate_totals(items, tax_amount, discount)
        if total < 0:
            raise ValueError("Discount cannot exceed the sale amount")
        if total_amount is not None and _money(total_amount) != total:
            raise ValueError(
                f"Total amount mismatch: expected {total}, received {_money(total_amount)}"
            )

        sale = Sale.objects.create(
            tenant=tenant,
            sale_number=SaleService.generate_sale_number(tenant),
            store=store,
            customer=customer,
            employee=employee,
            subtotal=subtotal,
            tax_amount=_money(tax_amount),
            discount=_money(discount),
            total_amount=total,
            payment_method=payment_method,
            source=source,
            customer_name=customer_name or (customer.name if customer else ""),
            customer_email=customer_email or (customer.email if customer else ""),
            notes=notes,
        )

        stock_reason = (
            StockMovement.REASON_ECOMMERCE
            if source == Sale.SOURCE_ECOMMERCE
            else StockMovement.REASON_SALE
        )
        for item in items:
            SaleItem.objects.create(
                sale=sale,
                product=item["product"],
                quantity=item["quantity"],
                unit_price=_money(item["unit_price"]),
                discount=_money(item.get("discount") or 0),
            )
            inventory = InventoryService.get_locked_inventory(tenant, item["product"], store)
            InventoryService.stock_out(
                inventory,
                item["quantity"],
                stock_reason,
                employee,
                reference_id=sale.sale_number,
            )

        if payment_method == Sale.DUE:
            CustomerLedgerService.post_entry(
                customer,
                CustomerLedger.SALE,
                total,
                description=f"Sale {sale.sale_number}",
                reference_id=sale.sale_number,
                user=employee,
            )
        else:
            Payment.objects.create(
                sale=sale, amount=total, method=payment_method, reference=payment_reference
            )
            if customer is not None:
                CustomerService.record_paid_purchase(customer, total, sale=sale)

        logger.info(
            f"Created sale {sale.sale_number} for {total} ({payment_method}) "
            f"with {len(items)} items"
        )
        return sale


class ReturnService:
    """Service class for product returns."""

    @staticmethod
    def generate_return_number(tenant):
        date_str = timezone.now().strftime("%Y%m%d")
        return next_sequence_number(
            ProductReturn.objects.filter(tenant=tenant), "return_number", f"RET-{date_str}-", 4
        )

    @staticmethod
    def effective_tax_rate(sale):
        if not sale.subtotal:
            return Decimal("0")
        return sale.tax_amount / sale.subtotal

    @staticmethod
    @transaction.atomic
    def create_return(
        sale,
        items,
        processed_by=None,
        refund_type=ProductReturn.CASH,
        restock_items=True,
        reason="",
    ):
        """
        Return items of ``sale``.

        ``items`` is a list of dicts with ``sale_item`` (id), ``quantity`` and
        optional ``reason``, ``condition`` and ``restock``. Raises
        ``SaleItem.DoesNotExist`` for an item of another sale and
        ``ValueError`` when more units are returned than were sold.
        """
        if not items:
            raise ValueError("At least one item is required")

        sale = Sale.objects.select_for_update().get(pk=sale.pk)
        if sale.status == Sale.CANCELLED:
            raise ValueError("Cannot return items of a cancelled sale")
        if refund_type == ProductReturn.ADJUSTMENT and sale.customer is None:
            raise ValueError("Due balance adjustments require a sale with a customer")

        lines = []
        requested = {}
        total = Decimal("0.00")
        for item in items:
            sale_item = SaleItem.objects.select_related("product").get(
                id=item["sale_item"], sale=sale
            )
            quantity = int(item["quantity"])
            if quantity <= 0:
                raise ValueError("Return quantity must be greater than 0")
            already_returned = sale_item.returned_quantity() + requested.get(sale_item.id, 0)
            if already_returned + quantity > sale_item.quantity:
                raise ValueError(
                    f"Cannot return {quantity} x {sale_item.product.name}: "
                    f"{sale_item.quantity - already_returned} remaining of {sale_item.quantity} sold"
                )
            requested[sale_item.id] = requested.get(sale_item.id, 0) + quantity
            total += quantity * sale_item.unit_price
            lines.append((sale_item, quantity, item))

        total = _money(total)
        tax = _money(total * ReturnService.effective_tax_rate(sale))
        refund = total + tax

        product_return = ProductReturn.objects.create(
            tenant=sale.tenant,
            return_number=ReturnService.generate_return_number(sale.tenant),
            sale=sale,
            customer=sale.customer,
            store=sale.store,
            processed_by=processed_by,
            total_amount=total,
            tax_amount=tax,
            refund_amount=refund,
            refund_type=refund_type,
            restock_items=restock_items,
            reason=reason,
        )

        for sale_item, quantity, item in lines:
            restock = item.get("restock")
            restock = restock_items if restock is None else restock
            ReturnItem.objects.create(
                product_return=product_return,
                sale_item=sale_item,
                product=sale_item.product,
                quantity=quantity,
                unit_price=sale_item.unit_price,
                reason=item.get("reason", ""),
                condition=item.get("condition") or ReturnItem.NEW,
                restock=restock,
            )
            if restock:
                inventory = InventoryService.get_locked_inventory(
                    sale.tenant, sale_item.product, sale.store
                )
                InventoryService.stock_in(
                    inventory,
                    quantity,
                    StockMovement.REASON_RETURN,
                    processed_by,
                    reference_id=product_return.return_number,
                )

        if refund_type == ProductReturn.ADJUSTMENT:
            customer = sale.customer
            customer.refresh_from_db()
            reduction = min(refund, max(customer.due_balance, Decimal("0.00")))
            if reduction > 0:
                CustomerLedgerService.post_entry(
                    customer,
                    CustomerLedger.RETURN,
                    -reduction,
                    description=f"Return {product_return.return_number} for sale {sale.sale_number}",
                    reference_id=product_return.return_number,
                    user=processed_by,
                )

        fully_returned = all(
            sale_item.returned_quantity() >= sale_item.quantity for sale_item in sale.items.all()
        )
        sale.status = Sale.REFUNDED if fully_returned else Sale.PARTIALLY_REFUNDED
        sale.save(update_fields=["status", "updated_at"])

        logger.info(
            f"Processed return {product_return.return_number} for sale {sale.sale_number}, "
            f"refund {refund} ({refund_type})"
        )
        return product_return
