"""
End-to-end checks that run across apps: buying stock, selling it, reporting
on it, and keeping each tenant's data to itself.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status
from rest_framework.test import APIClient

from apps.crm.models import Customer
from apps.inventory.models import Inventory, StockMovement
from apps.procurement.models import PurchaseOrder
from apps.reporting.models import ReportSchedule


@pytest.fixture
def rival_client(other_tenant, django_user_model):
    from apps.core.models import Store

    rival_store = Store.objects.create(tenant=other_tenant, name="Rival Main", code="MAIN")
    user = django_user_model.objects.create_user(
        username="rival",
        password="testpass123",
        tenant=other_tenant,
        store=rival_store,
        role="TENANT_OWNER",
    )
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
def test_purchase_sell_and_report(authenticated_client, store, supplier, product, customer):
    response = authenticated_client.post(
        reverse("procurement:po_list"),
        {
            "supplier": str(supplier.id),
            "store": str(store.id),
            "items": [{"product": str(product.id), "quantity": 4, "unit_price": "2.00"}],
        },
        format="json",
    )
    assert response.status_code == status.HTTP_201_CREATED
    po_id = response.data["id"]

    authenticated_client.put(
        reverse("procurement:po_detail", kwargs={"id": po_id}), {"status": "SENT"}, format="json"
    )
    response = authenticated_client.post(
        reverse("procurement:po_receive", kwargs={"id": po_id}), {}, format="json"
    )
    assert response.data["purchase_order"]["status"] == PurchaseOrder.RECEIVED
    assert Inventory.objects.get(product=product, store=store).quantity == 4

    response = authenticated_client.post(
        reverse("sales:sale_list"),
        {
            "store": str(store.id),
            "customer": str(customer.id),
            "items": [{"product": str(product.id), "quantity": 3, "unit_price": "5.00"}],
            "payment_method": "CARD",
        },
        format="json",
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.data["total_amount"] == "15.00"

    assert Inventory.objects.get(product=product, store=store).quantity == 1
    assert list(
        StockMovement.objects.filter(product=product)
        .order_by("created_at")
        .values_list("movement_type", flat=True)
    ) == [StockMovement.IN, StockMovement.OUT]

    customer.refresh_from_db()
    assert customer.total_spent == Decimal("15.00")
    assert customer.loyalty_points == 1

    response = authenticated_client.post(
        reverse("reporting:schedule_list"),
        {"name": "Daily takings", "report_type": "SALES", "frequency": "DAILY", "format": "JSON"},
        format="json",
    )
    schedule_id = response.data["id"]
    response = authenticated_client.post(
        reverse("reporting:schedule_run", kwargs={"id": schedule_id})
    )

    assert response.data["result"]["summary"]["revenue"] == "15.00"
    assert response.data["result"]["rows"] == [{"label": "CARD", "count": 1, "total": "15.00"}]


@pytest.mark.django_db
class TestTenantIsolation:
    @pytest.mark.parametrize(
        "route",
        [
            "inventory:product_list",
            "crm:customer_list",
            "procurement:supplier_list",
            "sales:sale_list",
        ],
    )
    def test_lists_hide_other_tenants_rows(
        self, rival_client, route, stocked_product, customer, supplier
    ):
        response = rival_client.get(reverse(route))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["pagination"]["total"] == 0

    def test_details_are_not_found(self, rival_client, product, customer, supplier):
        for route, obj in [
            ("inventory:product_detail", product),
            ("crm:customer_detail", customer),
            ("procurement:supplier_detail", supplier),
        ]:
            response = rival_client.get(reverse(route, kwargs={"id": obj.id}))
            assert response.status_code == status.HTTP_404_NOT_FOUND, route

    def test_cannot_sell_another_tenants_product(self, rival_client, stocked_product, other_tenant):
        rival_store = other_tenant.stores.get()

        response = rival_client.post(
            reverse("sales:sale_list"),
            {
                "store": str(rival_store.id),
                "items": [{"product": str(stocked_product.id), "quantity": 1, "unit_price": "5.00"}],
                "payment_method": "CASH",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Inventory.objects.get(product=stocked_product).quantity == 50

    def test_report_schedules_are_scoped(self, rival_client, tenant):
        ReportSchedule.objects.create(
            tenant=tenant, name="Ours", report_type="SALES", frequency="DAILY"
        )

        response = rival_client.get(reverse("reporting:schedule_list"))

        assert response.data["pagination"]["total"] == 0

    def test_customers_with_same_email_in_two_tenants(self, rival_client, customer):
        response = rival_client.post(
            reverse("crm:customer_list"),
            {"name": "Dana R.", "email": customer.email},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Customer.objects.filter(email=customer.email).count() == 2
