"""
Tests for online stores, orders and order import.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status

from apps.crm.models import Customer
from apps.inventory.models import Inventory, Product, StockMovement
from apps.sales.models import Sale

from .models import EcommerceOrder, EcommerceStore


@pytest.fixture
def web_store(tenant, store):
    return EcommerceStore.objects.create(
        tenant=tenant,
        name="Corner Shop Online",
        platform=EcommerceStore.SHOPIFY,
        store_url="https://cornershop.example.com",
        api_key="shpat_secret",
        store=store,
    )


@pytest.fixture
def order(tenant, web_store):
    return EcommerceOrder.objects.create(
        tenant=tenant,
        ecommerce_store=web_store,
        external_order_id="1001",
        order_number="#1001",
        customer_name="Robin Hale",
        customer_email="robin@example.com",
        customer_phone="555-0199",
        shipping_address={"address1": "1 Pier St", "city": "Portsmouth", "zip": "03801", "country": "US"},
        items=[
            {"sku": "CB-001", "name": "Cold Brew", "quantity": 3, "price": "5.00", "total": "15.00"},
            {"sku": "MUG-9", "name": "Souvenir Mug", "quantity": 1, "price": "12.00", "total": "12.00"},
        ],
        subtotal=Decimal("27.00"),
        tax=Decimal("2.16"),
        shipping=Decimal("4.00"),
        total=Decimal("33.16"),
        payment_method="card",
    )


@pytest.mark.django_db
class TestEcommerceStores:
    def test_create_hides_credentials(self, authenticated_client, store):
        response = authenticated_client.post(
            reverse("ecommerce:store_list"),
            {
                "name": "Web",
                "platform": "WOOCOMMERCE",
                "store_url": "https://web.example.com",
                "api_key": "ck_123",
                "api_secret": "cs_456",
                "store": str(store.id),
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert "api_key" not in response.data
        assert "api_secret" not in response.data
        assert EcommerceStore.objects.get().api_key == "ck_123"

    def test_required_fields(self, authenticated_client):
        response = authenticated_client.post(
            reverse("ecommerce:store_list"),
            {"name": "Web", "platform": "CUSTOM"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_is_tenant_scoped(self, authenticated_client, web_store, other_tenant):
        EcommerceStore.objects.create(
            tenant=other_tenant,
            name="Elsewhere",
            platform=EcommerceStore.CUSTOM,
            store_url="https://elsewhere.example.com",
            api_key="k",
        )

        response = authenticated_client.get(reverse("ecommerce:store_list"))

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["name"] == web_store.name


@pytest.mark.django_db
class TestEcommerceOrders:
    def test_record_order(self, authenticated_client, web_store):
        response = authenticated_client.post(
            reverse("ecommerce:order_list"),
            {
                "ecommerce_store": str(web_store.id),
                "external_order_id": "2002",
                "customer_name": "Robin Hale",
                "items": [{"sku": "CB-001", "name": "Cold Brew", "quantity": 2, "price": "5.00"}],
                "subtotal": "10.00",
                "total": "10.00",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == EcommerceOrder.PENDING
        assert response.data["items"][0]["total"] == "10.00"

    def test_duplicate_external_id(self, authenticated_client, order, web_store):
        response = authenticated_client.post(
            reverse("ecommerce:order_list"),
            {
                "ecommerce_store": str(web_store.id),
                "external_order_id": order.external_order_id,
                "customer_name": "Someone",
                "items": [{"name": "Thing", "quantity": 1, "price": "1.00"}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_shape_and_filters(self, authenticated_client, order, web_store, tenant):
        EcommerceOrder.objects.create(
            tenant=tenant,
            ecommerce_store=web_store,
            external_order_id="1002",
            customer_name="Kai",
            status=EcommerceOrder.CANCELLED,
        )

        response = authenticated_client.get(
            reverse("ecommerce:order_list"), {"status": "PENDING", "limit": 10}
        )

        assert response.data["total"] == 1
        assert response.data["limit"] == 10
        assert response.data["offset"] == 0
        assert response.data["orders"][0]["external_order_id"] == "1001"

    def test_offset(self, authenticated_client, order):
        response = authenticated_client.get(reverse("ecommerce:order_list"), {"offset": 1})

        assert response.data["total"] == 1
        assert response.data["orders"] == []

    def test_imported_filter(self, authenticated_client, order):
        response = authenticated_client.get(reverse("ecommerce:order_list"), {"imported": "true"})

        assert response.data["total"] == 0


@pytest.mark.django_db
class TestOrderImport:
    def test_import_creates_sale_and_draws_stock(
        self, authenticated_client, order, stocked_product, store
    ):
        response = authenticated_client.post(
            reverse("ecommerce:order_import", kwargs={"id": order.id})
        )

        assert response.status_code == status.HTTP_200_OK
        assert [item["sku"] for item in response.data["unmatched_items"]] == ["MUG-9"]

        order.refresh_from_db()
        assert order.status == EcommerceOrder.PROCESSING
        sale = order.sale
        assert sale.source == Sale.SOURCE_ECOMMERCE
        assert sale.status == Sale.COMPLETED
        assert sale.total_amount == Decimal("33.16")
        assert sale.tax_amount == Decimal("2.16")
        assert sale.payment_method == Sale.CARD
        assert sale.items.get().quantity == 3
        assert sale.payments.get().amount == Decimal("33.16")

        inventory = Inventory.objects.get(product=stocked_product, store=store)
        assert inventory.quantity == 47
        movement = StockMovement.objects.get(reference_id=sale.sale_number)
        assert movement.reason == StockMovement.REASON_ECOMMERCE
        assert movement.movement_type == StockMovement.OUT

    def test_import_creates_customer_from_shipping_address(
        self, authenticated_client, order, product
    ):
        authenticated_client.post(reverse("ecommerce:order_import", kwargs={"id": order.id}))

        customer = Customer.objects.get(email="robin@example.com")
        assert customer.city == "Portsmouth"
        assert customer.address == "1 Pier St, Portsmouth"
        assert customer.zip_code == "03801"

    def test_import_reuses_customer_by_phone(self, authenticated_client, order, product, tenant):
        existing = Customer.objects.create(tenant=tenant, name="Robin H.", phone="555-0199")

        authenticated_client.post(reverse("ecommerce:order_import", kwargs={"id": order.id}))

        order.refresh_from_db()
        assert order.sale.customer == existing
        assert Customer.objects.filter(tenant=tenant).count() == 1

    def test_stock_is_clamped_at_zero(self, authenticated_client, order, product, store, tenant):
        Inventory.objects.create(tenant=tenant, product=product, store=store, quantity=1)

        authenticated_client.post(reverse("ecommerce:order_import", kwargs={"id": order.id}))

        assert Inventory.objects.get(product=product, store=store).quantity == 0

    def test_matches_by_name(self, authenticated_client, order, product):
        order.items = [{"sku": "", "name": "cold brew", "quantity": 1, "price": "5.00", "total": "5.00"}]
        order.save()

        response = authenticated_client.post(
            reverse("ecommerce:order_import", kwargs={"id": order.id})
        )

        assert response.data["unmatched_items"] == []

    def test_exact_sku_beats_name_match(self, authenticated_client, order, product, tenant):
        nitro = Product.objects.create(
            tenant=tenant,
            name="Nitro Brew",
            sku="NB-002",
            barcode="4006381333948",
            price=Decimal("6.00"),
        )
        order.items = [{"sku": "NB-002", "name": "Brew", "quantity": 1, "price": "6.00", "total": "6.00"}]
        order.save()

        authenticated_client.post(reverse("ecommerce:order_import", kwargs={"id": order.id}))

        order.refresh_from_db()
        assert order.sale.items.get().product == nitro

    def test_cannot_import_twice(self, authenticated_client, order, product):
        url = reverse("ecommerce:order_import", kwargs={"id": order.id})
        authenticated_client.post(url)

        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Order already imported"
        assert Sale.objects.count() == 1

    def test_missing_order(self, authenticated_client, db):
        response = authenticated_client.post(
            reverse("ecommerce:order_import", kwargs={"id": "00000000-0000-0000-0000-000000000000"})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestOrderStatus:
    def test_fulfilment_flow(self, authenticated_client, order, product):
        authenticated_client.post(reverse("ecommerce:order_import", kwargs={"id": order.id}))
        url = reverse("ecommerce:order_status", kwargs={"id": order.id})

        assert authenticated_client.put(url, {"status": "SHIPPED"}, format="json").data["status"] == "SHIPPED"
        assert authenticated_client.put(url, {"status": "DELIVERED"}, format="json").data["status"] == "DELIVERED"

    def test_cannot_ship_before_import(self, authenticated_client, order):
        response = authenticated_client.put(
            reverse("ecommerce:order_status", kwargs={"id": order.id}),
            {"status": "SHIPPED"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_processing_only_through_import(self, authenticated_client, order):
        response = authenticated_client.put(
            reverse("ecommerce:order_status", kwargs={"id": order.id}),
            {"status": "PROCESSING"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cancel_pending(self, authenticated_client, order):
        response = authenticated_client.put(
            reverse("ecommerce:order_status", kwargs={"id": order.id}),
            {"status": "CANCELLED"},
            format="json",
        )

        assert response.data["status"] == EcommerceOrder.CANCELLED

    def test_cancelled_order_cannot_be_imported(self, authenticated_client, order):
        order.cancel()
        order.save()

        response = authenticated_client.post(
            reverse("ecommerce:order_import", kwargs={"id": order.id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
