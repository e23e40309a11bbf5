# homeservice_admin/services/catalog_repository.py
import logging
from typing import Any, List, Optional
from pydantic import TypeAdapter, ValidationError
from ..api import ApiClient, MultipartForm
from ..exceptions import MalformedResponseError
from ..models import Category, FileUpload, Language, Service, TranslationInput

_category = TypeAdapter(Category)
_service = TypeAdapter(Service)
_categories = TypeAdapter(List[Category])
_services = TypeAdapter(List[Service])

logger = logging.getLogger(__name__)

def _parse(adapter: TypeAdapter, data: Any, empty: Any) -> Any:
    """Validate response data, treating a shape mismatch as a bad reply"""
    try:
        return adapter.validate_python(data or empty)
    except ValidationError as e:
        logger.warning(f"Unexpected response data: {e}")
        raise MalformedResponseError() from e

class CatalogRepository:
    """Typed access to the category and service endpoints, one HTTP call per operation"""

    def __init__(self, client: ApiClient):
        self.client = client

    @staticmethod
    def _lang_params(lang: Optional[Language]) -> dict:
        return {'lang': lang} if lang else {}

    # Categories

    async def list_categories(self, lang: Optional[Language] = None) -> List[Category]:
        """Flat category list"""
        data = await self.client.get('/service-categories', params=self._lang_params(lang))
        return _parse(_categories, data, [])

    async def get_category(self, category_id: int, lang: Optional[Language] = None) -> Category:
        data = await self.client.get(f'/service-categories/{category_id}', params=self._lang_params(lang))
        return _parse(_category, data, {})

    async def list_nested_catalog(self, lang: Optional[Language] = None) -> List[Category]:
        """Categories with their service trees embedded, in one call"""
        data = await self.client.get('/admin/services', params=self._lang_params(lang))
        return _parse(_categories, data, [])

    async def create_category(self, form: MultipartForm) -> Category:
        data = await self.client.post('/admin/service-categories', form=form)
        return _parse(_category, data, {})

    async def update_category(self, category_id: int, form: MultipartForm) -> Category:
        data = await self.client.put(f'/admin/service-categories/{category_id}', form=form)
        return _parse(_category, data, {})

    async def add_category_translation(self, category_id: int, translation: TranslationInput) -> Category:
        data = await self.client.post(
            f'/admin/service-categories/{category_id}/language',
            json=translation.model_dump(mode='json')
        )
        return _parse(_category, data, {})

    # Services

    async def list_services(self, lang: Optional[Language] = None) -> List[Service]:
        data = await self.client.get('/services', params=self._lang_params(lang))
        return _parse(_services, data, [])

    async def get_service(self, service_id: int, lang: Optional[Language] = None) -> Service:
        data = await self.client.get(f'/admin/services/{service_id}', params=self._lang_params(lang))
        return _parse(_service, data, {})

    async def create_service(self, form: MultipartForm) -> Service:
        data = await self.client.post('/admin/services', form=form)
        return _parse(_service, data, {})

    async def update_service(self, service_id: int, form: MultipartForm) -> Service:
        data = await self.client.put(f'/admin/services/{service_id}', form=form)
        return _parse(_service, data, {})

    async def add_service_translation(self, service_id: int, translation: TranslationInput) -> Service:
        data = await self.client.post(
            f'/admin/services/{service_id}/language',
            json=translation.model_dump(mode='json')
        )
        return _parse(_service, data, {})

    async def delete_service(self, service_id: int) -> bool:
        """Delete a service; the server removes its sub-services too"""
        data = await self.client.delete(f'/admin/service/{service_id}')
        return bool(data)

    async def bulk_import_services(self, upload: FileUpload) -> bool:
        """Upload a spreadsheet of services; parsing happens server-side"""
        form = MultipartForm()
        form.add_file('file', upload)
        data = await self.client.post('/admin/services/upload', form=form)
        return bool(data)
