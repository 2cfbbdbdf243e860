"""
Tests for customers, loyalty, the customer ledger and due payments.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status

from apps.crm.models import Customer, CustomerLedger, LoyaltyProgram, LoyaltyTransaction
from apps.crm.services import CustomerLedgerService, LoyaltyService
from apps.sales.models import Sale
from apps.sales.services import SaleService


@pytest.mark.django_db
class TestLoyaltyRules:
    def test_default_tier_thresholds(self):
        tiers = LoyaltyService.default_tiers()

        assert LoyaltyService.tier_for_spending(Decimal("0"), tiers) == "BRONZE"
        assert LoyaltyService.tier_for_spending(Decimal("199.99"), tiers) == "BRONZE"
        assert LoyaltyService.tier_for_spending(Decimal("200"), tiers) == "SILVER"
        assert LoyaltyService.tier_for_spending(Decimal("999.99"), tiers) == "GOLD"
        assert LoyaltyService.tier_for_spending(Decimal("1000"), tiers) == "PLATINUM"

    def test_tier_order_in_program_does_not_matter(self):
        tiers = [
            {"name": "gold", "min_spent": 500},
            {"name": "bronze", "min_spent": 0},
            {"name": "silver", "min_spent": 200},
        ]

        assert LoyaltyService.tier_for_spending(Decimal("250"), tiers) == "SILVER"

    def test_points_are_rounded_down(self):
        assert LoyaltyService.points_for_amount(Decimal("9.99")) == 0
        assert LoyaltyService.points_for_amount(Decimal("10.00")) == 1
        assert LoyaltyService.points_for_amount(Decimal("129.50")) == 12

    def test_program_tiers_override_defaults(self, tenant, customer):
        LoyaltyProgram.objects.create(
            tenant=tenant,
            tiers=[{"name": "BRONZE", "min_spent": 0}, {"name": "SILVER", "min_spent": 50}],
        )
        customer.total_spent = Decimal("60.00")
        customer.save()

        assert customer.update_loyalty_tier() == Customer.SILVER

    def test_redeem_more_than_balance_raises(self, customer):
        customer.add_loyalty_points(10)

        with pytest.raises(ValueError):
            customer.redeem_loyalty_points(11)


@pytest.mark.django_db
class TestCustomerViews:
    def test_create_customer_assigns_number(self, authenticated_client):
        response = authenticated_client.post(
            reverse("crm:customer_list"), {"name": "Ari Cole", "phone": "555-0101"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["customer_number"] == "CUST-000001"
        assert response.data["loyalty_tier"] == Customer.BRONZE

    def test_create_customer_grants_signup_bonus(self, authenticated_client, tenant):
        LoyaltyProgram.objects.create(tenant=tenant, signup_bonus=25)

        response = authenticated_client.post(
            reverse("crm:customer_list"), {"name": "Ari Cole"}, format="json"
        )

        assert response.data["loyalty_points"] == 25
        customer = Customer.objects.get(id=response.data["id"])
        assert customer.loyalty_transactions.get().transaction_type == LoyaltyTransaction.BONUS

    def test_name_is_required(self, authenticated_client):
        response = authenticated_client.post(
            reverse("crm:customer_list"), {"email": "x@example.com"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {"error": "Customer name is required"}

    def test_search_and_tier_filter(self, authenticated_client, tenant, customer):
        Customer.objects.create(tenant=tenant, name="Sam Gold", loyalty_tier=Customer.GOLD)
        url = reverse("crm:customer_list")

        response = authenticated_client.get(url, {"search": "dana"})
        assert response.data["pagination"]["total"] == 1

        response = authenticated_client.get(url, {"tier": "gold"})
        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["name"] == "Sam Gold"

    def test_retrieve_and_update(self, authenticated_client, customer):
        url = reverse("crm:customer_detail", kwargs={"id": customer.id})

        response = authenticated_client.get(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Dana Reyes"

        response = authenticated_client.put(
            url, {"name": "Dana Reyes-Park", "due_balance": "999.00"}, format="json"
        )
        assert response.status_code == status.HTTP_200_OK
        customer.refresh_from_db()
        assert customer.name == "Dana Reyes-Park"
        assert customer.due_balance == Decimal("0.00")

    def test_delete_customer_with_sales_is_rejected(
        self, authenticated_client, tenant, store, stocked_product, customer
    ):
        SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 1, "unit_price": Decimal("5.00")}],
            store=store,
            customer=customer,
        )

        response = authenticated_client.delete(
            reverse("crm:customer_detail", kwargs={"id": customer.id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Customer.objects.filter(id=customer.id).exists()

    def test_delete_customer_with_due_balance_is_rejected(self, authenticated_client, customer):
        CustomerLedgerService.post_entry(customer, CustomerLedger.ADJUSTMENT, Decimal("12.00"))

        response = authenticated_client.delete(
            reverse("crm:customer_detail", kwargs={"id": customer.id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_customer(self, authenticated_client, customer):
        response = authenticated_client.delete(
            reverse("crm:customer_detail", kwargs={"id": customer.id})
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Customer.objects.filter(id=customer.id).exists()


@pytest.mark.django_db
class TestCustomerLoyaltyEndpoint:
    def test_earn_and_redeem(self, authenticated_client, customer):
        url = reverse("crm:customer_loyalty", kwargs={"id": customer.id})

        response = authenticated_client.post(
            url, {"points": 100, "type": "EARNED", "description": "Welcome"}, format="json"
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["loyalty_points"] == 100

        response = authenticated_client.post(url, {"points": 40, "type": "REDEEMED"}, format="json")
        assert response.data["loyalty_points"] == 60

        response = authenticated_client.get(url)
        assert response.status_code == status.HTTP_200_OK
        assert sorted(t["points"] for t in response.data["transactions"]) == [-40, 100]

    def test_redeem_without_enough_points(self, authenticated_client, customer):
        url = reverse("crm:customer_loyalty", kwargs={"id": customer.id})
        response = authenticated_client.post(url, {"points": 5, "type": "REDEEMED"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        customer.refresh_from_db()
        assert customer.loyalty_points == 0


@pytest.mark.django_db
class TestLoyaltyProgramEndpoint:
    def test_get_returns_defaults(self, authenticated_client):
        response = authenticated_client.get(reverse("crm:loyalty_program"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["signup_bonus"] == 50
        assert [tier["name"] for tier in response.data["tiers"]] == [
            "BRONZE",
            "SILVER",
            "GOLD",
            "PLATINUM",
        ]

    def test_put_upserts_program(self, authenticated_client, tenant):
        url = reverse("crm:loyalty_program")
        response = authenticated_client.put(
            url,
            {
                "name": "Coffee Club",
                "signup_bonus": 10,
                "tiers": [{"name": "member", "min_spent": 0}, {"name": "vip", "min_spent": 300}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        program = LoyaltyProgram.objects.get(tenant=tenant)
        assert program.name == "Coffee Club"
        assert program.tiers[1]["name"] == "VIP"

        authenticated_client.put(url, {"signup_bonus": 5}, format="json")
        assert LoyaltyProgram.objects.filter(tenant=tenant).count() == 1
        assert LoyaltyProgram.objects.get(tenant=tenant).signup_bonus == 5


@pytest.mark.django_db
class TestCustomerLedger:
    def test_running_balance(self, authenticated_client, customer):
        url = reverse("crm:customer_ledger")
        authenticated_client.post(
            url, {"customer": str(customer.id), "type": "SALE", "amount": "40.00"}, format="json"
        )
        response = authenticated_client.post(
            url, {"customer": str(customer.id), "type": "PAYMENT", "amount": "-15.00"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["balance"] == "25.00"
        customer.refresh_from_db()
        assert customer.due_balance == Decimal("25.00")

        response = authenticated_client.get(url, {"customer": str(customer.id), "type": "SALE"})
        assert response.data["pagination"]["total"] == 1

    def test_required_fields(self, authenticated_client, customer):
        response = authenticated_client.post(
            reverse("crm:customer_ledger"), {"customer": str(customer.id)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestDuePayments:
    @pytest.fixture
    def due_customer(self, tenant, store, stocked_product, customer):
        SaleService.create_sale(
            tenant,
            [{"product": stocked_product, "quantity": 10, "unit_price": Decimal("5.00")}],
            store=store,
            customer=customer,
            payment_method=Sale.DUE,
        )
        customer.refresh_from_db()
        return customer

    def test_list_due_customers(self, authenticated_client, tenant, due_customer):
        Customer.objects.create(tenant=tenant, name="Paid Up")

        response = authenticated_client.get(reverse("crm:due_payment_list"))

        assert response.data["pagination"]["total"] == 1
        result = response.data["results"][0]
        assert result["due_balance"] == "50.00"
        assert result["due_sales"][0]["entry_type"] == CustomerLedger.SALE

    def test_receive_payment(self, authenticated_client, due_customer):
        response = authenticated_client.post(
            reverse("crm:due_payment_receive"),
            {"customer": str(due_customer.id), "amount": "30.00", "payment_method": "CASH"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["ledger_entry"]["amount"] == "-30.00"
        assert response.data["ledger_entry"]["balance"] == "20.00"
        assert response.data["ledger_entry"]["reference_id"].startswith("DUE-")

        due_customer.refresh_from_db()
        assert due_customer.due_balance == Decimal("20.00")
        assert due_customer.loyalty_points == 3

    def test_overpayment_is_rejected(self, authenticated_client, due_customer):
        response = authenticated_client.post(
            reverse("crm:due_payment_receive"),
            {"customer": str(due_customer.id), "amount": "50.01", "payment_method": "CASH"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        due_customer.refresh_from_db()
        assert due_customer.due_balance == Decimal("50.00")

    def test_non_positive_amount_is_rejected(self, authenticated_client, due_customer):
        response = authenticated_client.post(
            reverse("crm:due_payment_receive"),
            {"customer": str(due_customer.id), "amount": "-5", "payment_method": "CASH"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_customer(self, authenticated_client):
        response = authenticated_client.post(
            reverse("crm:due_payment_receive"),
            {
                "customer": "00000000-0000-0000-0000-000000000000",
                "amount": "5",
                "payment_method": "CASH",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
