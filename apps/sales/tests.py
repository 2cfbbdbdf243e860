"""
Tests for point of sale transactions and product returns.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status

from apps.crm.models import Customer, CustomerLedger, LoyaltyTransaction
from apps.inventory.models import Inventory, StockMovement
from apps.sales.models import Payment, ProductReturn, Sale
from apps.sales.services import SaleService


def sale_payload(product, store, quantity=2, **extra):
    payload = {
        "store": str(store.id),
        "items": [{"product": str(product.id), "quantity": quantity, "unit_price": "5.00"}],
        "tax_amount": "0.80",
        "payment_method": "CASH",
    }
    payload.update(extra)
    return payload


@pytest.mark.django_db
class TestSaleCreation:
    def test_paid_sale_with_customer(self, authenticated_client, store, stocked_product, customer):
        url = reverse("sales:sale_list")
        response = authenticated_client.post(
            url,
            sale_payload(stocked_product, store, customer=str(customer.id), total_amount="10.80"),
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["subtotal"] == "10.00"
        assert response.data["total_amount"] == "10.80"
        assert response.data["sale_number"].startswith("SALE-")
        assert len(response.data["items"]) == 1

        sale = Sale.objects.get(id=response.data["id"])
        assert Payment.objects.get(sale=sale).amount == Decimal("10.80")

        inventory = Inventory.objects.get(product=stocked_product, store=store)
        assert inventory.quantity == 48
        movement = StockMovement.objects.get(reference_id=sale.sale_number)
        assert movement.movement_type == StockMovement.OUT
        assert movement.reason == StockMovement.REASON_SALE

        customer.refresh_from_db()
        assert customer.total_spent == Decimal("10.80")
        assert customer.visit_count == 1
        assert customer.last_visit is not None
        assert customer.loyalty_points == 1
        assert customer.loyalty_transactions.filter(
            transaction_type=LoyaltyTransaction.EARNED, sale=sale
        ).exists()

    def test_total_mismatch_is_rejected(self, authenticated_client, store, stocked_product):
        url = reverse("sales:sale_list")
        response = authenticated_client.post(
            url, sale_payload(stocked_product, store, total_amount="99.00"), format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "mismatch" in response.data["error"]
        assert Sale.objects.count() == 0
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 50

    def test_total_off_by_a_cent_is_rejected(self, authenticated_client, store, stocked_product):
        response = authenticated_client.post(
            reverse("sales:sale_list"),
            sale_payload(stocked_product, store, total_amount="10.79"),
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Sale.objects.count() == 0

    def test_items_are_required(self, authenticated_client, store):
        url = reverse("sales:sale_list")
        response = authenticated_client.post(
            url, {"store": str(store.id), "items": []}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "At least one item is required"

    def test_due_sale_requires_customer(self, authenticated_client, store, stocked_product):
        url = reverse("sales:sale_list")
        response = authenticated_client.post(
            url, sale_payload(stocked_product, store, payment_method="DUE"), format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Sale.objects.count() == 0

    def test_due_sale_updates_customer_ledger(
        self, authenticated_client, store, stocked_product, customer
    ):
        url = reverse("sales:sale_list")
        response = authenticated_client.post(
            url,
            sale_payload(stocked_product, store, payment_method="DUE", customer=str(customer.id)),
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        customer.refresh_from_db()
        assert customer.due_balance == Decimal("10.80")
        assert customer.loyalty_points == 0

        entry = CustomerLedger.objects.get(customer=customer)
        assert entry.entry_type == CustomerLedger.SALE
        assert entry.amount == Decimal("10.80")
        assert entry.balance == Decimal("10.80")
        assert not Payment.objects.filter(sale_id=response.data["id"]).exists()

    def test_inventory_is_clamped_at_zero(self, authenticated_client, store, stocked_product):
        url = reverse("sales:sale_list")
        response = authenticated_client.post(
            url, sale_payload(stocked_product, store, quantity=60, tax_amount="0"), format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 0

    def test_purchase_upgrades_loyalty_tier(self, tenant, store, stocked_product, customer):
        Customer.objects.filter(id=customer.id).update(total_spent=Decimal("195.00"))

        SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 2, "unit_price": Decimal("5.00")}],
            store=store,
            customer=customer,
        )

        customer.refresh_from_db()
        assert customer.total_spent == Decimal("205.00")
        assert customer.loyalty_tier == Customer.SILVER


@pytest.mark.django_db
class TestSaleQueries:
    def test_list_and_filter_sales(self, authenticated_client, tenant, store, stocked_product, customer):
        item = {"product": stocked_product, "quantity": 1, "unit_price": Decimal("5.00")}
        SaleService.create_sale(tenant, [dict(item)], store=store)
        SaleService.create_sale(
            tenant, [dict(item)], store=store, customer=customer, payment_method=Sale.DUE
        )

        url = reverse("sales:sale_list")
        response = authenticated_client.get(url)
        assert response.data["pagination"]["total"] == 2

        response = authenticated_client.get(url, {"payment_method": "DUE"})
        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["customer"] == customer.id

    def test_retrieve_sale(self, authenticated_client, tenant, store, stocked_product):
        sale = SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 3, "unit_price": Decimal("5.00")}],
            store=store,
        )

        response = authenticated_client.get(reverse("sales:sale_detail", kwargs={"id": sale.id}))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["items"][0]["quantity"] == 3
        assert response.data["payments"][0]["amount"] == "15.00"

    def test_sales_of_other_tenants_are_hidden(
        self, authenticated_client, other_tenant, tenant, store, stocked_product
    ):
        sale = SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 1, "unit_price": Decimal("5.00")}],
            store=store,
        )
        Sale.objects.filter(id=sale.id).update(tenant=other_tenant)

        response = authenticated_client.get(reverse("sales:sale_detail", kwargs={"id": sale.id}))

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestProductReturns:
    @pytest.fixture
    def sale(self, tenant, store, stocked_product, customer):
        return SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 2, "unit_price": Decimal("5.00")}],
            store=store,
            customer=customer,
            tax_amount=Decimal("0.80"),
        )

    def test_partial_return_prorates_tax_and_restocks(
        self, authenticated_client, sale, store, stocked_product
    ):
        sale_item = sale.items.get()
        response = authenticated_client.post(
            reverse("sales:return_list"),
            {"sale": str(sale.id), "items": [{"sale_item": str(sale_item.id), "quantity": 1}]},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["total_amount"] == "5.00"
        assert response.data["tax_amount"] == "0.40"
        assert response.data["refund_amount"] == "5.40"
        assert response.data["return_number"].startswith("RET-")

        sale.refresh_from_db()
        assert sale.status == Sale.PARTIALLY_REFUNDED
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 49
        assert StockMovement.objects.filter(reason=StockMovement.REASON_RETURN).count() == 1

    def test_full_return_marks_sale_refunded(self, authenticated_client, sale):
        sale_item = sale.items.get()
        url = reverse("sales:return_list")
        authenticated_client.post(
            url,
            {"sale": str(sale.id), "items": [{"sale_item": str(sale_item.id), "quantity": 1}]},
            format="json",
        )
        authenticated_client.post(
            url,
            {"sale": str(sale.id), "items": [{"sale_item": str(sale_item.id), "quantity": 1}]},
            format="json",
        )

        sale.refresh_from_db()
        assert sale.status == Sale.REFUNDED
        assert ProductReturn.objects.filter(sale=sale).count() == 2

    def test_cannot_return_more_than_sold(self, authenticated_client, sale):
        sale_item = sale.items.get()
        response = authenticated_client.post(
            reverse("sales:return_list"),
            {"sale": str(sale.id), "items": [{"sale_item": str(sale_item.id), "quantity": 3}]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert ProductReturn.objects.count() == 0

    def test_repeated_line_counts_toward_sold_quantity(
        self, authenticated_client, sale, store, stocked_product
    ):
        sale_item = sale.items.get()
        line = {"sale_item": str(sale_item.id), "quantity": 2}

        response = authenticated_client.post(
            reverse("sales:return_list"),
            {"sale": str(sale.id), "items": [line, line]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert ProductReturn.objects.count() == 0
        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 48

    def test_item_of_another_sale_returns_404(
        self, authenticated_client, sale, tenant, store, stocked_product
    ):
        other_sale = SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 1, "unit_price": Decimal("5.00")}],
            store=store,
        )
        response = authenticated_client.post(
            reverse("sales:return_list"),
            {
                "sale": str(sale.id),
                "items": [{"sale_item": str(other_sale.items.get().id), "quantity": 1}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_missing_sale_returns_404(self, authenticated_client):
        response = authenticated_client.post(
            reverse("sales:return_list"),
            {
                "sale": "00000000-0000-0000-0000-000000000000",
                "items": [{"sale_item": "00000000-0000-0000-0000-000000000001", "quantity": 1}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_adjustment_refund_lowers_due_balance(
        self, authenticated_client, tenant, store, stocked_product, customer
    ):
        sale = SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 2, "unit_price": Decimal("5.00")}],
            store=store,
            customer=customer,
            payment_method=Sale.DUE,
        )
        sale_item = sale.items.get()

        response = authenticated_client.post(
            reverse("sales:return_list"),
            {
                "sale": str(sale.id),
                "items": [{"sale_item": str(sale_item.id), "quantity": 1}],
                "refund_type": "ADJUSTMENT",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        customer.refresh_from_db()
        assert customer.due_balance == Decimal("5.00")
        entry = CustomerLedger.objects.get(customer=customer, entry_type=CustomerLedger.RETURN)
        assert entry.amount == Decimal("-5.00")
        assert entry.balance == Decimal("5.00")

    def test_no_restock(self, authenticated_client, sale, store, stocked_product):
        sale_item = sale.items.get()
        authenticated_client.post(
            reverse("sales:return_list"),
            {
                "sale": str(sale.id),
                "items": [{"sale_item": str(sale_item.id), "quantity": 1}],
                "restock_items": False,
            },
            format="json",
        )

        assert Inventory.objects.get(product=stocked_product, store=store).quantity == 48
