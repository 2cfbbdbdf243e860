"""
Tests for suppliers, the supplier ledger and the purchase order workflow.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.urls import reverse

import pytest
from django_fsm import TransitionNotAllowed
from rest_framework import status

from apps.inventory.models import Inventory, StockMovement

from .models import PurchaseOrder, Supplier, SupplierLedger
from .services import PurchaseOrderService


@pytest.fixture
def purchase_order(tenant, store, supplier, product, tenant_user):
    """Draft order for 10 units at 2.50 with 5.00 shipping."""
    return PurchaseOrderService.create_purchase_order(
        tenant,
        supplier,
        [{"product": product, "quantity": 10, "unit_price": Decimal("2.50")}],
        store=store,
        user=tenant_user,
        shipping=Decimal("5.00"),
    )


@pytest.mark.django_db
class TestPurchaseOrderModel:
    def test_totals_include_tax_and_shipping(self, purchase_order):
        assert purchase_order.subtotal == Decimal("25.00")
        assert purchase_order.tax_amount == Decimal("2.00")
        assert purchase_order.total_amount == Decimal("32.00")
        assert purchase_order.po_number.startswith("PO-")
        assert len(purchase_order.po_number.split("-")[2]) == 5

    def test_fsm_transitions(self, purchase_order):
        assert purchase_order.status == PurchaseOrder.DRAFT

        purchase_order.send()
        assert purchase_order.status == PurchaseOrder.SENT
        assert purchase_order.sent_at is not None

        purchase_order.confirm()
        assert purchase_order.status == PurchaseOrder.CONFIRMED

        with pytest.raises(TransitionNotAllowed):
            purchase_order.send()

    def test_received_order_cannot_be_cancelled(self, purchase_order):
        purchase_order.send()
        purchase_order.save()
        PurchaseOrderService.receive_items(purchase_order)
        purchase_order.refresh_from_db()

        with pytest.raises(TransitionNotAllowed):
            purchase_order.cancel()

    def test_supplier_rating_validation(self, tenant):
        supplier = Supplier(tenant=tenant, name="Too Good", rating=6)
        with pytest.raises(ValidationError):
            supplier.full_clean()


@pytest.mark.django_db
class TestSupplierViews:
    def test_create_supplier(self, authenticated_client, tenant_user):
        response = authenticated_client.post(
            reverse("procurement:supplier_list"),
            {"name": "Milk Co", "email": "orders@milkco.test", "rating": 4},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        supplier = Supplier.objects.get(id=response.data["id"])
        assert supplier.created_by == tenant_user
        assert response.data["balance"] == "0.00"

    def test_name_is_required(self, authenticated_client):
        response = authenticated_client.post(
            reverse("procurement:supplier_list"), {"email": "x@y.test"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Supplier name is required"

    def test_duplicate_email_is_rejected(self, authenticated_client, supplier):
        url = reverse("procurement:supplier_list")
        response = authenticated_client.post(
            url, {"name": "Copycat", "email": "SALES@beantraders.test"}, format="json"
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        other = Supplier.objects.create(tenant=supplier.tenant, name="Other", email="o@o.test")
        response = authenticated_client.put(
            reverse("procurement:supplier_detail", kwargs={"id": other.id}),
            {"name": "Other", "email": supplier.email},
            format="json",
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_search(self, authenticated_client, tenant, supplier):
        Supplier.objects.create(tenant=tenant, name="Cup Factory")

        response = authenticated_client.get(reverse("procurement:supplier_list"), {"search": "bean"})

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["name"] == "Bean Traders"

    def test_missing_supplier_is_404(self, authenticated_client):
        response = authenticated_client.get(
            reverse(
                "procurement:supplier_detail",
                kwargs={"id": "00000000-0000-0000-0000-000000000000"},
            )
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_supplier_with_orders_is_rejected(self, authenticated_client, purchase_order):
        response = authenticated_client.delete(
            reverse("procurement:supplier_detail", kwargs={"id": purchase_order.supplier_id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Cannot delete supplier with existing purchase orders"

    def test_delete_supplier(self, authenticated_client, supplier):
        response = authenticated_client.delete(
            reverse("procurement:supplier_detail", kwargs={"id": supplier.id})
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT


@pytest.mark.django_db
class TestSupplierLedger:
    def test_running_balance_follows_supplier(self, authenticated_client, supplier):
        url = reverse("procurement:supplier_ledger")
        authenticated_client.post(
            url, {"supplier": str(supplier.id), "type": "PURCHASE", "amount": "120.00"}, format="json"
        )
        response = authenticated_client.post(
            url, {"supplier": str(supplier.id), "type": "PAYMENT", "amount": "-100.00"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["balance"] == "20.00"
        supplier.refresh_from_db()
        assert supplier.balance == Decimal("20.00")

        response = authenticated_client.get(url, {"supplier": str(supplier.id)})
        assert response.data["pagination"]["total"] == 2

    def test_required_fields(self, authenticated_client, supplier):
        response = authenticated_client.post(
            reverse("procurement:supplier_ledger"), {"supplier": str(supplier.id)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestPurchaseOrderViews:
    def test_create_purchase_order(self, authenticated_client, supplier, store, product):
        response = authenticated_client.post(
            reverse("procurement:po_list"),
            {
                "supplier": str(supplier.id),
                "store": str(store.id),
                "items": [{"product": str(product.id), "quantity": 4, "unit_price": "2.00"}],
                "shipping": "1.00",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == PurchaseOrder.DRAFT
        assert response.data["subtotal"] == "8.00"
        assert response.data["tax_amount"] == "0.64"
        assert response.data["total_amount"] == "9.64"
        assert len(response.data["items"]) == 1

    def test_supplier_and_items_are_required(self, authenticated_client, supplier):
        response = authenticated_client.post(
            reverse("procurement:po_list"), {"supplier": str(supplier.id), "items": []}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_filters(self, authenticated_client, purchase_order):
        url = reverse("procurement:po_list")

        response = authenticated_client.get(url, {"search": "bean"})
        assert response.data["pagination"]["total"] == 1

        response = authenticated_client.get(url, {"status": PurchaseOrder.SENT})
        assert response.data["pagination"]["total"] == 0

    def test_update_status_fires_transition(self, authenticated_client, purchase_order):
        url = reverse("procurement:po_detail", kwargs={"id": purchase_order.id})

        response = authenticated_client.put(url, {"status": "SENT", "notes": "Rush"}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == PurchaseOrder.SENT
        assert response.data["notes"] == "Rush"

    def test_illegal_transition_is_rejected(self, authenticated_client, purchase_order):
        purchase_order.cancel()
        purchase_order.save()
        url = reverse("procurement:po_detail", kwargs={"id": purchase_order.id})

        response = authenticated_client.put(url, {"status": "SENT"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        purchase_order.refresh_from_db()
        assert purchase_order.status == PurchaseOrder.CANCELLED

    def test_items_can_only_change_in_draft(self, authenticated_client, purchase_order, product):
        url = reverse("procurement:po_detail", kwargs={"id": purchase_order.id})
        items = [{"product": str(product.id), "quantity": 2, "unit_price": "3.00"}]

        response = authenticated_client.put(url, {"items": items}, format="json")
        assert response.status_code == status.HTTP_200_OK
        assert response.data["subtotal"] == "6.00"
        assert response.data["total_amount"] == "11.48"

        authenticated_client.put(url, {"status": "SENT"}, format="json")
        response = authenticated_client.put(url, {"items": items}, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_receive_everything(self, authenticated_client, purchase_order, store, product, supplier):
        purchase_order.send()
        purchase_order.save()

        response = authenticated_client.post(
            reverse("procurement:po_receive", kwargs={"id": purchase_order.id}), {}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["purchase_order"]["status"] == PurchaseOrder.RECEIVED

        inventory = Inventory.objects.get(product=product, store=store)
        assert inventory.quantity == 10
        assert inventory.cost_price == Decimal("2.50")
        movement = StockMovement.objects.get(reference_id=purchase_order.po_number)
        assert movement.movement_type == StockMovement.IN
        assert movement.reason == StockMovement.REASON_PURCHASE

        entry = SupplierLedger.objects.get(supplier=supplier)
        assert entry.entry_type == SupplierLedger.PURCHASE
        assert entry.amount == Decimal("25.00")
        supplier.refresh_from_db()
        assert supplier.balance == Decimal("25.00")

    def test_partial_receive(self, authenticated_client, purchase_order, store, product):
        purchase_order.confirm()
        purchase_order.save()
        item = purchase_order.items.get()
        url = reverse("procurement:po_receive", kwargs={"id": purchase_order.id})

        response = authenticated_client.post(
            url, {"items": [{"item": str(item.id), "received_quantity": 4}]}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["purchase_order"]["status"] == PurchaseOrder.PARTIALLY_RECEIVED
        assert Inventory.objects.get(product=product, store=store).quantity == 4

        response = authenticated_client.post(
            url, {"items": [{"item": str(item.id), "received_quantity": 6}]}, format="json"
        )
        assert response.data["purchase_order"]["status"] == PurchaseOrder.RECEIVED

    def test_over_receiving_is_rejected(self, authenticated_client, purchase_order, store, product):
        purchase_order.send()
        purchase_order.save()
        item = purchase_order.items.get()

        response = authenticated_client.post(
            reverse("procurement:po_receive", kwargs={"id": purchase_order.id}),
            {"items": [{"item": str(item.id), "received_quantity": 11}]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not Inventory.objects.filter(product=product, store=store).exists()
        item.refresh_from_db()
        assert item.received_quantity == 0

    def test_draft_cannot_be_received(self, authenticated_client, purchase_order):
        response = authenticated_client.post(
            reverse("procurement:po_receive", kwargs={"id": purchase_order.id}), {}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_rules(self, authenticated_client, purchase_order):
        url = reverse("procurement:po_detail", kwargs={"id": purchase_order.id})
        purchase_order.confirm()
        purchase_order.save()

        response = authenticated_client.delete(url)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        PurchaseOrder.objects.filter(id=purchase_order.id).update(status=PurchaseOrder.DRAFT)
        response = authenticated_client.delete(url)
        assert response.status_code == status.HTTP_204_NO_CONTENT
