# homeservice_admin/handlers/__init__.py
"""Telegram handlers of the admin bot"""
from .base_handler import BaseHandler
from .catalog_management import CatalogManagementHandler

__all__ = [
    'BaseHandler',
    'CatalogManagementHandler',
]
