"""
Tests for accounts, expense categories and expenses.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status

from .models import Account, Expense, ExpenseCategory


@pytest.fixture
def account(tenant, store):
    return Account.objects.create(
        tenant=tenant, store=store, name="Till", account_type=Account.CASH, balance=Decimal("100.00")
    )


@pytest.fixture
def expense(tenant, account):
    return Expense.objects.create(
        tenant=tenant, account=account, amount=Decimal("40.00"), description="Window cleaning"
    )


@pytest.mark.django_db
class TestAccounts:
    def test_create_and_filter(self, authenticated_client, tenant, account):
        url = reverse("accounting:account_list")
        response = authenticated_client.post(
            url, {"name": "Operating", "account_type": "BANK", "balance": "500.00"}, format="json"
        )
        assert response.status_code == status.HTTP_201_CREATED

        response = authenticated_client.get(url, {"type": "bank"})
        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["name"] == "Operating"

    def test_delete_account_with_expenses_is_rejected(self, authenticated_client, expense):
        response = authenticated_client.delete(
            reverse("accounting:account_detail", kwargs={"id": expense.account_id})
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Account.objects.filter(id=expense.account_id).exists()

    def test_delete_unused_account(self, authenticated_client, account):
        response = authenticated_client.delete(
            reverse("accounting:account_detail", kwargs={"id": account.id})
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT


@pytest.mark.django_db
class TestExpenseCategories:
    def test_create_and_list(self, authenticated_client):
        url = reverse("accounting:expense_category_list")
        response = authenticated_client.post(url, {"name": "Utilities"}, format="json")
        assert response.status_code == status.HTTP_201_CREATED

        response = authenticated_client.post(url, {"name": "utilities"}, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = authenticated_client.get(url)
        assert response.data["pagination"]["total"] == 1


@pytest.mark.django_db
class TestExpenses:
    def test_amount_is_summed_from_items(self, authenticated_client, tenant):
        category = ExpenseCategory.objects.create(tenant=tenant, name="Supplies")

        response = authenticated_client.post(
            reverse("accounting:expense_list"),
            {
                "description": "Cleaning supplies",
                "category": str(category.id),
                "items": [
                    {"description": "Soap", "amount": "3.50", "quantity": 4},
                    {"description": "Mop", "amount": "12.00", "quantity": 1},
                ],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["amount"] == "26.00"
        assert response.data["status"] == Expense.PENDING
        assert len(response.data["items"]) == 2

    def test_amount_must_be_positive(self, authenticated_client):
        response = authenticated_client.post(
            reverse("accounting:expense_list"),
            {"description": "Nothing", "amount": "0"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Expense.objects.count() == 0

    def test_filter_by_status(self, authenticated_client, tenant, expense):
        Expense.objects.create(
            tenant=tenant, amount=Decimal("5.00"), description="Stamps", status=Expense.PAID
        )

        response = authenticated_client.get(reverse("accounting:expense_list"), {"status": "PAID"})

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["description"] == "Stamps"

    def test_paying_debits_account(self, authenticated_client, expense, account):
        url = reverse("accounting:expense_status", kwargs={"id": expense.id})

        response = authenticated_client.post(url, {"status": "APPROVED"}, format="json")
        assert response.data["status"] == Expense.APPROVED

        response = authenticated_client.post(url, {"status": "PAID"}, format="json")
        assert response.status_code == status.HTTP_200_OK
        assert response.data["paid_at"] is not None
        account.refresh_from_db()
        assert account.balance == Decimal("60.00")

    def test_insufficient_funds(self, authenticated_client, expense, account):
        Account.objects.filter(id=account.id).update(balance=Decimal("10.00"))

        response = authenticated_client.post(
            reverse("accounting:expense_status", kwargs={"id": expense.id}),
            {"status": "PAID"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        expense.refresh_from_db()
        assert expense.status == Expense.PENDING

    def test_paid_is_final(self, authenticated_client, expense):
        url = reverse("accounting:expense_status", kwargs={"id": expense.id})
        authenticated_client.post(url, {"status": "PAID"}, format="json")

        response = authenticated_client.post(url, {"status": "REJECTED"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        expense.refresh_from_db()
        assert expense.status == Expense.PAID
