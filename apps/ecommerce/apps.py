"""
E-commerce app configuration.
"""

from django.apps import AppConfig


class EcommerceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.ecommerce"
    verbose_name = "E-commerce"
