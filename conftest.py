"""
Pytest configuration and fixtures for the retail POS platform.
"""

from decimal import Decimal

import pytest


@pytest.fixture
def api_client():
    """
    Fixture for Django REST framework API client.
    """
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def tenant():
    from apps.core.models import Tenant

    return Tenant.objects.create(company_name="Corner Shop", email="owner@cornershop.test")


@pytest.fixture
def other_tenant():
    from apps.core.models import Tenant

    return Tenant.objects.create(company_name="Rival Shop", email="owner@rivalshop.test")


@pytest.fixture
def store(tenant):
    from apps.core.models import Store

    return Store.objects.create(tenant=tenant, name="Main Street", code="MAIN")


@pytest.fixture
def second_store(tenant):
    from apps.core.models import Store

    return Store.objects.create(tenant=tenant, name="Harbour", code="HARB")


@pytest.fixture
def tenant_user(tenant, store, django_user_model):
    return django_user_model.objects.create_user(
        username="owner",
        email="owner@cornershop.test",
        password="testpass123",
        tenant=tenant,
        store=store,
        role="TENANT_OWNER",
        hourly_rate=Decimal("20.00"),
    )


@pytest.fixture
def authenticated_client(api_client, tenant_user):
    """
    API client authenticated as the tenant owner.
    """
    api_client.force_authenticate(user=tenant_user)
    return api_client


@pytest.fixture
def platform_admin(django_user_model):
    return django_user_model.objects.create_user(
        username="platform",
        email="platform@retailpos.test",
        password="adminpass123",
        role="PLATFORM_ADMIN",
    )


@pytest.fixture
def admin_client(api_client, platform_admin):
    """
    API client authenticated as a platform administrator.
    """
    api_client.force_authenticate(user=platform_admin)
    return api_client


@pytest.fixture
def category(tenant):
    from apps.inventory.models import Category

    return Category.objects.create(tenant=tenant, name="Beverages")


@pytest.fixture
def product(tenant, category):
    from apps.inventory.models import Product

    return Product.objects.create(
        tenant=tenant,
        category=category,
        name="Cold Brew",
        sku="CB-001",
        barcode="4006381333931",
        price=Decimal("5.00"),
        cost_price=Decimal("2.00"),
    )


@pytest.fixture
def stocked_product(tenant, store, product):
    """Product with 50 units at ``store``."""
    from apps.inventory.models import Inventory

    Inventory.objects.create(
        tenant=tenant, product=product, store=store, quantity=50, min_stock=5, cost_price=Decimal("2.00")
    )
    return product


@pytest.fixture
def customer(tenant):
    from apps.crm.models import Customer

    return Customer.objects.create(tenant=tenant, name="Dana Reyes", email="dana@example.com")


@pytest.fixture
def supplier(tenant):
    from apps.procurement.models import Supplier

    return Supplier.objects.create(tenant=tenant, name="Bean Traders", email="sales@beantraders.test")
