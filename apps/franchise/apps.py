"""
Franchise app configuration.
"""

from django.apps import AppConfig


class FranchiseConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.franchise"
    verbose_name = "Franchise"
