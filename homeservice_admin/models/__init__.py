# homeservice_admin/models/__init__.py
from .language import Language, TranslationText, TranslationInput
from .service import Service
from .category import Category
from .forms import FileUpload, CategoryFormData, ServiceFormData

__all__ = [
    'Language',
    'TranslationText',
    'TranslationInput',
    'Service',
    'Category',
    'FileUpload',
    'CategoryFormData',
    'ServiceFormData',
]
