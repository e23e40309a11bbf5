# homeservice_admin/api/__init__.py
from .session import AdminSession
from .multipart import MultipartForm
from .client import ApiClient

__all__ = ['AdminSession', 'MultipartForm', 'ApiClient']
