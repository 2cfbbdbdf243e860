"""
Import of online orders into the point of sale.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Q

from django_fsm import can_proceed

from apps.crm.models import Customer
from apps.crm.services import CustomerService
from apps.inventory.models import Product, StockMovement
from apps.inventory.services import InventoryService
from apps.sales.models import Payment, Sale, SaleItem
from apps.sales.services import SaleService

from .models import EcommerceOrder

logger = logging.getLogger(__name__)


def sale_payment_method(value):
    """Map a platform payment method onto a POS payment method."""
    method = (value or Sale.CARD).upper()
    valid = dict(Sale.PAYMENT_METHOD_CHOICES)
    if method not in valid or method == Sale.DUE:
        return Sale.OTHER
    return method


class EcommerceOrderService:
    STATUS_TRANSITIONS = {
        EcommerceOrder.SHIPPED: "ship",
        EcommerceOrder.DELIVERED: "deliver",
        EcommerceOrder.CANCELLED: "cancel",
    }

    @staticmethod
    def find_product(tenant, sku, name):
        products = Product.objects.filter(tenant=tenant).order_by("created_at")
        if sku:
            product = products.filter(sku=sku).first()
            if product is not None:
                return product
        if name:
            return products.filter(name__icontains=name).first()
        return None

    @staticmethod
    def find_or_create_customer(order):
        lookup = Q()
        if order.customer_email:
            lookup |= Q(email__iexact=order.customer_email)
        if order.customer_phone:
            lookup |= Q(phone=order.customer_phone)
        if lookup:
            customer = Customer.objects.filter(tenant=order.tenant).filter(lookup).first()
            if customer is not None:
                return customer

        address = order.shipping_address or {}
        street = ", ".join(part for part in (address.get("address1"), address.get("city")) if part)
        return Customer.objects.create(
            tenant=order.tenant,
            name=order.customer_name,
            email=order.customer_email,
            phone=order.customer_phone,
            address=street,
            city=address.get("city", ""),
            state=address.get("state", ""),
            zip_code=address.get("zip", ""),
            country=address.get("country", ""),
        )

    @staticmethod
    @transaction.atomic
    def import_order(order, user=None):
        """
        Turn an online order into a completed POS sale.

        Lines are matched to products by SKU, then by name. Matched lines
        become sale items and draw down the fulfilling store's inventory;
        the rest are returned as ``unmatched_items``. The sale carries the
        order's own totals.

        Returns ``(order, sale, unmatched_items)``.
        """
        order = EcommerceOrder.objects.select_for_update().select_related("ecommerce_store").get(
            pk=order.pk
        )
        if order.sale_id:
            raise ValueError("Order already imported")
        if not can_proceed(order.start_processing):
            raise ValueError(f"Cannot import an order that is {order.status.lower()}")

        tenant = order.tenant
        store = order.ecommerce_store.store
        customer = EcommerceOrderService.find_or_create_customer(order)
        payment_method = sale_payment_method(order.payment_method)

        sale = Sale.objects.create(
            tenant=tenant,
            sale_number=SaleService.generate_sale_number(tenant),
            store=store,
            customer=customer,
            employee=user,
            subtotal=order.subtotal,
            tax_amount=order.tax,
            discount=order.discount,
            total_amount=order.total,
            payment_method=payment_method,
            source=Sale.SOURCE_ECOMMERCE,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            notes=f"Imported from {order.ecommerce_store.name} order "
            f"{order.order_number or order.external_order_id}",
        )

        unmatched_items = []
        for item in order.items:
            quantity = int(item.get("quantity") or 0)
            product = EcommerceOrderService.find_product(tenant, item.get("sku"), item.get("name"))
            if product is None or quantity <= 0:
                unmatched_items.append(item)
                continue

            SaleItem.objects.create(
                sale=sale,
                product=product,
                quantity=quantity,
                unit_price=Decimal(str(item.get("price") or product.price)),
            )
            inventory = InventoryService.get_locked_inventory(tenant, product, store)
            InventoryService.stock_out(
                inventory,
                quantity,
                StockMovement.REASON_ECOMMERCE,
                user,
                reference_id=sale.sale_number,
            )

        Payment.objects.create(
            sale=sale,
            amount=order.total,
            method=payment_method,
            reference=order.external_order_id,
        )
        CustomerService.record_paid_purchase(customer, order.total, sale=sale)

        order.sale = sale
        order.start_processing()
        order.save()

        if unmatched_items:
            logger.warning(
                f"Imported order {order.external_order_id} with "
                f"{len(unmatched_items)} unmatched items"
            )
        logger.info(f"Imported e-commerce order {order.external_order_id} as {sale.sale_number}")
        return order, sale, unmatched_items

    @staticmethod
    def change_status(order, new_status):
        """Fire the transition leading to ``new_status``. Raises ``ValueError`` if not allowed."""
        transition_name = EcommerceOrderService.STATUS_TRANSITIONS.get(new_status)
        if transition_name is None:
            raise ValueError(f"Invalid status: {new_status}")

        transition_method = getattr(order, transition_name)
        if not can_proceed(transition_method):
            raise ValueError(f"Cannot change order status from {order.status} to {new_status}")

        transition_method()
        order.save()
        logger.info(f"E-commerce order {order.external_order_id} moved to {new_status}")
        return order
