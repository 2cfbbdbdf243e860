"""
Tests for inventory management.

- Category and product CRUD with delete guards
- Stock adjustments and manual stock movements
- Alert rules
- Stock transfers between stores
"""

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from apps.inventory.models import (
    Category,
    Inventory,
    InventoryAlert,
    Product,
    StockMovement,
    StockTransfer,
)
from apps.inventory.services import InventoryService


@pytest.mark.django_db
class TestCategoryViews:
    def test_create_and_list_categories(self, authenticated_client):
        url = reverse("inventory:category_list")
        response = authenticated_client.post(url, {"name": "Snacks"}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["name"] == "Snacks"

        response = authenticated_client.get(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data["pagination"]["total"] == 1

    def test_delete_category_with_products_is_rejected(self, authenticated_client, product):
        url = reverse("inventory:category_detail", kwargs={"id": product.category_id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "error" in response.data
        assert Category.objects.filter(id=product.category_id).exists()

    def test_delete_empty_category(self, authenticated_client, tenant):
        category = Category.objects.create(tenant=tenant, name="Empty")
        url = reverse("inventory:category_detail", kwargs={"id": category.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT


@pytest.mark.django_db
class TestProductViews:
    def test_create_product_with_store_opens_inventory(self, authenticated_client, store):
        url = reverse("inventory:product_list")
        response = authenticated_client.post(
            url,
            {"name": "Espresso Beans", "price": "12.50", "sku": "EB-1", "store": str(store.id)},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        product = Product.objects.get(id=response.data["id"])
        inventory = Inventory.objects.get(product=product, store=store)
        assert inventory.quantity == 0

    def test_create_product_requires_name_and_price(self, authenticated_client):
        url = reverse("inventory:product_list")
        response = authenticated_client.post(url, {"name": "No Price"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Name and price are required"

    def test_retrieve_product(self, authenticated_client, product):
        url = reverse("inventory:product_detail", kwargs={"id": product.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["sku"] == "CB-001"

    def test_retrieve_missing_product_returns_404(self, authenticated_client):
        url = reverse(
            "inventory:product_detail", kwargs={"id": "00000000-0000-0000-0000-000000000000"}
        )
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {"error": "Not found"}

    def test_barcode_lookup_takes_precedence(self, authenticated_client, tenant, product):
        Product.objects.create(tenant=tenant, name="Cold Brew Large", sku="CB-002", price="7.00")
        url = reverse("inventory:product_list")
        response = authenticated_client.get(url, {"barcode": product.barcode, "search": "Cold"})

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["id"] == str(product.id)

    def test_search_products(self, authenticated_client, tenant, product):
        Product.objects.create(tenant=tenant, name="Green Tea", sku="GT-1", price="3.00")
        url = reverse("inventory:product_list")
        response = authenticated_client.get(url, {"search": "tea"})

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["name"] == "Green Tea"

    def test_products_are_tenant_scoped(self, authenticated_client, other_tenant, product):
        Product.objects.create(tenant=other_tenant, name="Foreign", price="1.00")
        response = authenticated_client.get(reverse("inventory:product_list"))

        assert response.data["pagination"]["total"] == 1

    def test_delete_product_with_sales_is_rejected(
        self, authenticated_client, tenant, store, stocked_product
    ):
        from apps.sales.models import Sale

        sale = Sale.objects.create(
            tenant=tenant,
            store=store,
            sale_number="SALE-20260101-000001",
            subtotal=Decimal("5.00"),
            total_amount=Decimal("5.00"),
        )
        sale.items.create(
            product=stocked_product, quantity=1, unit_price=Decimal("5.00"), total_price=Decimal("5.00")
        )

        url = reverse("inventory:product_detail", kwargs={"id": stocked_product.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Product.objects.filter(id=stocked_product.id).exists()


@pytest.mark.django_db
class TestStockAdjustment:
    def test_add_adjustment_records_movement(self, authenticated_client, store, stocked_product):
        inventory = Inventory.objects.get(product=stocked_product, store=store)
        url = reverse("inventory:inventory_adjust", kwargs={"id": inventory.id})
        response = authenticated_client.post(
            url, {"adjustment_type": "ADD", "quantity": 10, "reason": "Recount"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        inventory.refresh_from_db()
        assert inventory.quantity == 60
        movement = StockMovement.objects.get(inventory=inventory)
        assert movement.movement_type == StockMovement.ADJUSTMENT
        assert movement.quantity == 10

    def test_set_adjustment(self, authenticated_client, store, stocked_product):
        inventory = Inventory.objects.get(product=stocked_product, store=store)
        url = reverse("inventory:inventory_adjust", kwargs={"id": inventory.id})
        authenticated_client.post(url, {"adjustment_type": "SET", "quantity": 7}, format="json")

        inventory.refresh_from_db()
        assert inventory.quantity == 7
        assert StockMovement.objects.get(inventory=inventory).quantity == -43

    def test_deduct_below_zero_is_rejected(self, authenticated_client, store, stocked_product):
        inventory = Inventory.objects.get(product=stocked_product, store=store)
        url = reverse("inventory:inventory_adjust", kwargs={"id": inventory.id})
        response = authenticated_client.post(
            url, {"adjustment_type": "DEDUCT", "quantity": 51}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        inventory.refresh_from_db()
        assert inventory.quantity == 50

    def test_invalid_adjustment_type(self, authenticated_client, store, stocked_product):
        inventory = Inventory.objects.get(product=stocked_product, store=store)
        url = reverse("inventory:inventory_adjust", kwargs={"id": inventory.id})
        response = authenticated_client.post(
            url, {"adjustment_type": "DOUBLE", "quantity": 1}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "details" in response.data


@pytest.mark.django_db
class TestStockMovements:
    def test_stock_out_never_goes_below_zero(self, authenticated_client, store, stocked_product):
        url = reverse("inventory:stock_movement_list")
        response = authenticated_client.post(
            url,
            {"product": str(stocked_product.id), "store": str(store.id), "type": "OUT", "quantity": 80},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 0

    def test_stock_in(self, authenticated_client, store, stocked_product):
        url = reverse("inventory:stock_movement_list")
        authenticated_client.post(
            url,
            {
                "product": str(stocked_product.id),
                "store": str(store.id),
                "type": "IN",
                "quantity": 5,
                "reason": "PURCHASE",
            },
            format="json",
        )

        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 55

    def test_quantity_must_be_positive(self, authenticated_client, stocked_product):
        url = reverse("inventory:stock_movement_list")
        response = authenticated_client.post(
            url, {"product": str(stocked_product.id), "type": "IN", "quantity": 0}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_filter_by_type(self, authenticated_client, store, stocked_product):
        inventory = Inventory.objects.get(product=stocked_product, store=store)
        InventoryService.stock_in(inventory, 3, StockMovement.REASON_PURCHASE)
        InventoryService.stock_out(inventory, 1, StockMovement.REASON_SALE)

        response = authenticated_client.get(reverse("inventory:stock_movement_list"), {"type": "IN"})

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["movement_type"] == "IN"


@pytest.mark.django_db
class TestInventoryAlerts:
    @pytest.fixture
    def inventory(self, tenant, store, product):
        return Inventory.objects.create(
            tenant=tenant, product=product, store=store, quantity=20, min_stock=10, max_stock=100
        )

    def test_out_of_stock_is_critical(self, inventory):
        inventory.quantity = 0
        alerts = InventoryService.check_inventory_alerts(inventory)

        assert len(alerts) == 1
        assert alerts[0].alert_type == InventoryAlert.LOW_STOCK
        assert alerts[0].severity == InventoryAlert.CRITICAL

    def test_half_of_minimum_is_high(self, inventory):
        inventory.quantity = 5
        alerts = InventoryService.check_inventory_alerts(inventory)

        assert alerts[0].severity == InventoryAlert.HIGH

    def test_below_minimum_is_medium(self, inventory):
        inventory.quantity = 8
        alerts = InventoryService.check_inventory_alerts(inventory)

        assert alerts[0].severity == InventoryAlert.MEDIUM

    def test_overstock(self, inventory):
        inventory.quantity = 100
        alerts = InventoryService.check_inventory_alerts(inventory)

        assert [alert.alert_type for alert in alerts] == [InventoryAlert.OVERSTOCK]

    def test_expiring_soon(self, inventory):
        today = timezone.localdate()
        inventory.expiry_date = today + timedelta(days=5)
        alerts = InventoryService.check_inventory_alerts(inventory, today=today)

        assert alerts[0].alert_type == InventoryAlert.EXPIRING
        assert alerts[0].severity == InventoryAlert.CRITICAL

        other = Inventory.objects.create(
            tenant=inventory.tenant,
            product=Product.objects.create(tenant=inventory.tenant, name="Milk", price="1.00"),
            store=inventory.store,
            quantity=20,
            expiry_date=today + timedelta(days=20),
        )
        alerts = InventoryService.check_inventory_alerts(other, today=today)
        assert alerts[0].severity == InventoryAlert.HIGH

    def test_no_duplicate_unresolved_alerts(self, inventory):
        inventory.quantity = 0
        InventoryService.check_inventory_alerts(inventory)
        second = InventoryService.check_inventory_alerts(inventory)

        assert second == []
        assert InventoryAlert.objects.filter(inventory=inventory).count() == 1

    def test_resolve_alert(self, authenticated_client, inventory):
        inventory.quantity = 0
        alert = InventoryService.check_inventory_alerts(inventory)[0]

        url = reverse("inventory:alert_resolve", kwargs={"id": alert.id})
        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        alert.refresh_from_db()
        assert alert.is_resolved
        assert alert.resolved_at is not None

        response = authenticated_client.get(reverse("inventory:alert_list"), {"is_resolved": "false"})
        assert response.data["pagination"]["total"] == 0


@pytest.mark.django_db
class TestStockTransfers:
    def test_create_and_complete_transfer(
        self, authenticated_client, store, second_store, stocked_product
    ):
        url = reverse("inventory:transfer_list")
        response = authenticated_client.post(
            url,
            {
                "from_store": str(store.id),
                "to_store": str(second_store.id),
                "items": [{"product": str(stocked_product.id), "quantity": 20}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["transfer_number"].startswith("TRF-")
        transfer_id = response.data["id"]

        response = authenticated_client.post(
            reverse("inventory:transfer_complete", kwargs={"id": transfer_id})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == StockTransfer.COMPLETED
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 30
        assert Inventory.objects.get(product=stocked_product, store=second_store).quantity == 20
        assert StockMovement.objects.filter(reason=StockMovement.REASON_TRANSFER).count() == 2

    def test_completing_twice_is_rejected(
        self, authenticated_client, tenant, store, second_store, stocked_product
    ):
        transfer = StockTransfer.objects.create(
            tenant=tenant,
            transfer_number="TRF-1",
            from_store=store,
            to_store=second_store,
            status=StockTransfer.COMPLETED,
        )
        response = authenticated_client.post(
            reverse("inventory:transfer_complete", kwargs={"id": transfer.id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_insufficient_stock(self, authenticated_client, tenant, store, second_store, stocked_product):
        transfer = StockTransfer.objects.create(
            tenant=tenant, transfer_number="TRF-2", from_store=store, to_store=second_store
        )
        transfer.items.create(product=stocked_product, quantity=500)

        response = authenticated_client.post(
            reverse("inventory:transfer_complete", kwargs={"id": transfer.id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 50

    def test_same_store_is_rejected(self, authenticated_client, store, stocked_product):
        response = authenticated_client.post(
            reverse("inventory:transfer_list"),
            {
                "from_store": str(store.id),
                "to_store": str(store.id),
                "items": [{"product": str(stocked_product.id), "quantity": 1}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_store_returns_404(self, authenticated_client, store, stocked_product):
        response = authenticated_client.post(
            reverse("inventory:transfer_list"),
            {
                "from_store": str(store.id),
                "to_store": "00000000-0000-0000-0000-000000000000",
                "items": [{"product": str(stocked_product.id), "quantity": 1}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_items_are_required(self, authenticated_client, store, second_store):
        response = authenticated_client.post(
            reverse("inventory:transfer_list"),
            {"from_store": str(store.id), "to_store": str(second_store.id), "items": []},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
