"""
Pytest configuration and fixtures for the admin bot tests.
"""

import copy
import os
from itertools import count
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

# Set up test environment variables before importing anything else
os.environ.setdefault("TELEGRAM_TOKEN", "123456:test-token")
os.environ.setdefault("ADMIN_IDS", "1001,1002")
os.environ.setdefault("API_URL", "http://api.test")
os.environ.setdefault("API_FILE_URL", "http://files.test")
os.environ.setdefault("API_TOKEN", "test-token")
os.environ.setdefault("DEFAULT_LANGUAGE", "ENGLISH")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from homeservice_admin.api import AdminSession, ApiClient
from homeservice_admin.models import Category, Service
from homeservice_admin.services import CatalogRepository, CatalogTree

API_TOKEN = "test-token"
ADMIN_ID = 1001
STRANGER_ID = 4242


def envelope(data: Any = None, success: bool = True, message: str = "",
             errors: Optional[List[str]] = None, status: int = 200) -> web.Response:
    return web.json_response(
        {"success": success, "message": message, "data": data, "errors": errors or []},
        status=status,
    )


def sample_catalog() -> List[Dict[str, Any]]:
    """Two categories; Plumbing holds a two-level service tree."""
    return [
        {
            "categoryId": 1,
            "categoryName": "Plumbing",
            "description": "Pipes and taps",
            "icon": "/uploads/plumbing.png",
            "isMobileCategory": True,
            "services": [
                {
                    "serviceId": 10,
                    "name": "Leak repair",
                    "description": "Fix leaking pipes",
                    "serviceFee": "250.00",
                    "estimatedDuration": "01:30",
                    "categoryId": 1,
                    "services": [
                        {
                            "serviceId": 11,
                            "name": "Kitchen leak",
                            "description": "Sink and dishwasher",
                            "categoryId": 1,
                            "services": [],
                        },
                        {
                            "serviceId": 12,
                            "name": "Bathroom leak",
                            "description": "Shower and toilet",
                            "categoryId": 1,
                            "services": [
                                {
                                    "serviceId": 13,
                                    "name": "Toilet seal",
                                    "description": "Replace wax seal",
                                    "categoryId": 1,
                                    "services": None,
                                },
                            ],
                        },
                    ],
                },
                {
                    "serviceId": 20,
                    "name": "Drain cleaning",
                    "description": "Unblock drains",
                    "categoryId": 1,
                    "services": [],
                },
            ],
        },
        {
            "categoryId": 2,
            "categoryName": "Cleaning",
            "description": "Home cleaning",
            "isMobileCategory": False,
            "services": [],
        },
    ]


class FakeCatalogApi:
    """In-memory marketplace API speaking the success/message/data/errors envelope."""

    def __init__(self, catalog: Optional[List[Dict[str, Any]]] = None):
        self.catalog = catalog if catalog is not None else sample_catalog()
        self.requests: List[Dict[str, Any]] = []
        self.refused_deletes: Dict[int, str] = {}
        self.fail_catalog = False
        # write routes answer with a bare message instead of the entity
        self.text_replies = False
        self.ids = count(100)

    # Helpers

    def _walk(self, services):
        for service in services or []:
            yield service
            yield from self._walk(service.get("services"))

    def all_services(self):
        for category in self.catalog:
            yield from self._walk(category["services"])

    def find_category(self, category_id: int):
        for category in self.catalog:
            if category["categoryId"] == category_id:
                return category
        return None

    def find_service(self, service_id: int):
        for service in self.all_services():
            if service["serviceId"] == service_id:
                return service
        return None

    def _remove_service(self, service_id: int) -> bool:
        def remove_from(services):
            for index, service in enumerate(services or []):
                if service["serviceId"] == service_id:
                    del services[index]
                    return True
                if remove_from(service.get("services")):
                    return True
            return False

        return any(remove_from(category["services"]) for category in self.catalog)

    @staticmethod
    def _flat(entity: Dict[str, Any]) -> Dict[str, Any]:
        flat = copy.deepcopy(entity)
        flat.pop("services", None)
        return flat

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {API_TOKEN}"

    async def _record(self, request: web.Request) -> Dict[str, Any]:
        entry = {
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "fields": {},
            "files": {},
            "json": None,
        }
        if request.content_type in ("multipart/form-data", "application/x-www-form-urlencoded"):
            body = await request.post()
            for name, value in body.items():
                if isinstance(value, web.FileField):
                    entry["files"][name] = {
                        "filename": value.filename,
                        "content_type": value.content_type,
                        "content": value.file.read(),
                    }
                else:
                    entry["fields"][name] = value
        elif request.can_read_body:
            entry["json"] = await request.json()
        self.requests.append(entry)
        return entry

    @web.middleware
    async def middleware(self, request: web.Request, handler):
        if not self._authorized(request):
            return envelope(success=False, message="Unauthorized", status=401)
        return await handler(request)

    # Routes

    async def nested_catalog(self, request):
        await self._record(request)
        if self.fail_catalog:
            return envelope(success=False, message="Catalog temporarily unavailable", status=500)
        return envelope(copy.deepcopy(self.catalog))

    async def list_categories(self, request):
        await self._record(request)
        return envelope([self._flat(category) for category in self.catalog])

    async def get_category(self, request):
        await self._record(request)
        category = self.find_category(int(request.match_info["id"]))
        if category is None:
            return envelope(success=False, message="Category not found", status=404)
        return envelope(self._flat(category))

    async def create_category(self, request):
        entry = await self._record(request)
        fields = entry["fields"]
        category = {
            "categoryId": next(self.ids),
            "categoryName": fields.get("name"),
            "description": fields.get("description"),
            "isMobileCategory": fields.get("isMobileCategory") == "true",
            "services": [],
        }
        self.catalog.append(category)
        if self.text_replies:
            return envelope("Category created")
        return envelope(self._flat(category))

    async def update_category(self, request):
        entry = await self._record(request)
        category = self.find_category(int(request.match_info["id"]))
        if category is None:
            return envelope(success=False, message="Category not found", status=404)
        fields = entry["fields"]
        category["categoryName"] = fields.get("name", category["categoryName"])
        category["description"] = fields.get("description", category.get("description"))
        return envelope(self._flat(category))

    async def add_category_translation(self, request):
        entry = await self._record(request)
        category = self.find_category(int(request.match_info["id"]))
        if category is None:
            return envelope(success=False, message="Category not found", status=404)
        body = entry["json"]
        # one translation per language, a second one replaces the first
        category.setdefault("translations", {})[body["lang"]] = {
            "name": body["name"], "description": body["description"]
        }
        return envelope(self._flat(category))

    async def list_services(self, request):
        await self._record(request)
        return envelope([self._flat(service) for service in self.all_services()])

    async def get_service(self, request):
        await self._record(request)
        service = self.find_service(int(request.match_info["id"]))
        if service is None:
            return envelope(success=False, message="Service not found", status=404)
        return envelope(copy.deepcopy(service))

    async def create_service(self, request):
        entry = await self._record(request)
        fields = entry["fields"]
        if not fields.get("name"):
            return envelope(success=False, errors=["name must not be blank"], status=400)
        service = {
            "serviceId": next(self.ids),
            "name": fields["name"],
            "description": fields.get("description"),
            "serviceFee": fields.get("serviceFee"),
            "estimatedDuration": fields.get("estimatedDuration"),
            "categoryId": int(fields["categoryId"]) if fields.get("categoryId") else None,
            "services": [],
        }
        if fields.get("parentServiceId"):
            parent = self.find_service(int(fields["parentServiceId"]))
            if parent is None:
                return envelope(success=False, message="Parent service not found", status=404)
            parent.setdefault("services", [])
            if parent["services"] is None:
                parent["services"] = []
            parent["services"].append(service)
        else:
            category = self.find_category(service["categoryId"])
            if category is None:
                return envelope(success=False, message="Category not found", status=404)
            category["services"].append(service)
        return envelope(self._flat(service))

    async def update_service(self, request):
        entry = await self._record(request)
        service = self.find_service(int(request.match_info["id"]))
        if service is None:
            return envelope(success=False, message="Service not found", status=404)
        fields = entry["fields"]
        for key in ("name", "description", "serviceFee", "estimatedDuration"):
            if key in fields:
                service[key] = fields[key]
        if fields.get("parentServiceId"):
            parent = self.find_service(int(fields["parentServiceId"]))
            if parent is None:
                return envelope(success=False, message="Parent service not found", status=404)
            self._remove_service(service["serviceId"])
            if parent.get("services") is None:
                parent["services"] = []
            parent["services"].append(service)
        elif fields.get("categoryId") and int(fields["categoryId"]) != service.get("categoryId"):
            category = self.find_category(int(fields["categoryId"]))
            if category is None:
                return envelope(success=False, message="Category not found", status=404)
            self._remove_service(service["serviceId"])
            category["services"].append(service)
        if fields.get("categoryId"):
            service["categoryId"] = int(fields["categoryId"])
        return envelope(self._flat(service))

    async def add_service_translation(self, request):
        entry = await self._record(request)
        service = self.find_service(int(request.match_info["id"]))
        if service is None:
            return envelope(success=False, message="Service not found", status=404)
        body = entry["json"]
        service.setdefault("translations", {})[body["lang"]] = {
            "name": body["name"], "description": body["description"]
        }
        return envelope(self._flat(service))

    async def delete_service(self, request):
        await self._record(request)
        service_id = int(request.match_info["id"])
        if service_id in self.refused_deletes:
            return envelope(success=False, message=self.refused_deletes[service_id])
        return envelope(self._remove_service(service_id))

    async def upload_services(self, request):
        entry = await self._record(request)
        if "file" not in entry["files"]:
            return envelope(success=False, message="No file uploaded", status=400)
        self.catalog[-1]["services"].append({
            "serviceId": next(self.ids),
            "name": "Imported service",
            "categoryId": self.catalog[-1]["categoryId"],
            "services": [],
        })
        return envelope(True)

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self.middleware])
        app.router.add_get("/admin/services", self.nested_catalog)
        app.router.add_get("/service-categories", self.list_categories)
        app.router.add_get("/service-categories/{id}", self.get_category)
        app.router.add_post("/admin/service-categories", self.create_category)
        app.router.add_put("/admin/service-categories/{id}", self.update_category)
        app.router.add_post("/admin/service-categories/{id}/language", self.add_category_translation)
        app.router.add_get("/services", self.list_services)
        app.router.add_post("/admin/services/upload", self.upload_services)
        app.router.add_get("/admin/services/{id}", self.get_service)
        app.router.add_post("/admin/services", self.create_service)
        app.router.add_put("/admin/services/{id}", self.update_service)
        app.router.add_post("/admin/services/{id}/language", self.add_service_translation)
        app.router.add_delete("/admin/service/{id}", self.delete_service)
        return app

    def requests_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [r for r in self.requests if r["method"] == method and r["path"] == path]


@pytest.fixture
def fake_api():
    """Fresh in-memory API state for each test."""
    return FakeCatalogApi()


@pytest_asyncio.fixture
async def api_server(fake_api):
    """The fake API served on a local port."""
    server = TestServer(fake_api.build_app())
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def api_client(api_server):
    """ApiClient pointed at the fake API."""
    client = ApiClient(str(api_server.make_url("")), AdminSession(API_TOKEN))
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
def repository(api_client):
    return CatalogRepository(api_client)


@pytest.fixture
def tree(repository):
    return CatalogTree(repository)


@pytest.fixture
def catalog() -> List[Category]:
    """Parsed sample catalog for tests that do not need HTTP."""
    return [Category.model_validate(data) for data in sample_catalog()]


@pytest.fixture
def mock_repository(catalog):
    """CatalogRepository double returning the sample catalog."""
    repository = AsyncMock(spec=CatalogRepository)
    repository.list_nested_catalog.return_value = catalog
    repository.list_categories.return_value = catalog
    repository.create_category.return_value = Category(category_id=3, category_name="Painting")
    repository.update_category.return_value = Category(category_id=1, category_name="Plumbing")
    repository.create_service.return_value = Service(service_id=30, name="New")
    repository.update_service.return_value = Service(service_id=10, name="Leak repair")
    repository.delete_service.return_value = True
    repository.bulk_import_services.return_value = True
    return repository


@pytest.fixture
def loaded_tree(mock_repository, catalog):
    """CatalogTree already holding the sample catalog."""
    tree = CatalogTree(mock_repository)
    tree.categories = catalog
    tree.stale = False
    return tree


def make_update(user_id: int = ADMIN_ID, data: Optional[str] = None, text: Optional[str] = None):
    """Telegram Update double: a button press when `data` is given, else a typed message."""
    update = MagicMock()
    update.effective_user.id = user_id
    update.effective_message.reply_text = AsyncMock()
    if data is not None:
        update.callback_query.data = data
        update.callback_query.answer = AsyncMock()
        update.callback_query.edit_message_text = AsyncMock()
    else:
        update.callback_query = None
        update.message.text = text
        update.effective_message.text = text
        update.effective_message.photo = []
        update.effective_message.document = None
    return update


def make_context(user_data: Optional[Dict[str, Any]] = None, args: Optional[List[str]] = None):
    context = MagicMock()
    context.user_data = user_data if user_data is not None else {}
    context.args = args or []
    context.bot.get_file = AsyncMock()
    return context


def last_text(update) -> str:
    """Text of the last message the handler sent or edited."""
    if update.callback_query is not None and update.callback_query.edit_message_text.await_count:
        return update.callback_query.edit_message_text.call_args.args[0]
    return update.effective_message.reply_text.call_args.args[0]


def last_markup(update):
    if update.callback_query is not None and update.callback_query.edit_message_text.await_count:
        return update.callback_query.edit_message_text.call_args.kwargs["reply_markup"]
    return update.effective_message.reply_text.call_args.kwargs["reply_markup"]


def button_data(markup) -> List[str]:
    return [button.callback_data for row in markup.inline_keyboard for button in row]

