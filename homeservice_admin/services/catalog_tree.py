# homeservice_admin/services/catalog_tree.py
import logging
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Set, Tuple
from ..exceptions import AdminClientError
from ..models import Category, Language, Service
from .catalog_repository import CatalogRepository

class NodeKind(str, Enum):
    CATEGORY = "category"
    SERVICE = "service"

class TreeState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"

def _category_matches(category: Category, category_id: int) -> bool:
    return category.id == category_id or category.category_id == category_id

def _service_matches(service: Service, service_id: int) -> bool:
    return service.id == service_id or service.service_id == service_id

def walk_services(services: Iterable[Service], depth: int = 0) -> Iterator[Tuple[Service, int]]:
    """Pre-order walk over a service forest, yielding (service, depth)"""
    for service in services:
        yield service, depth
        if service.services:
            yield from walk_services(service.services, depth + 1)

class CatalogTree:
    """Last fetched nested catalog plus the admin's expand/collapse state.

    The snapshot is only ever replaced as a whole: a successful fetch swaps
    in the new category list, a failed one leaves the tree empty with the
    error kept for display. Reads go through `read()`, which refetches when
    the snapshot was invalidated.
    """

    def __init__(self, repository: CatalogRepository, language: Language = Language.ENGLISH):
        self.repository = repository
        self.language = language
        self.categories: Optional[List[Category]] = None
        self.error: Optional[AdminClientError] = None
        self.stale = True
        self.fetch_count = 0
        self.expanded: Set[Tuple[NodeKind, int]] = set()
        self.page = 0  # tree keyboard page
        self.logger = logging.getLogger(__name__)

    @property
    def state(self) -> TreeState:
        return TreeState.LOADED if self.categories is not None else TreeState.EMPTY

    @property
    def is_loaded(self) -> bool:
        return self.state is TreeState.LOADED

    @property
    def query_key(self) -> Tuple[str, str, str]:
        return ('services', 'nested', self.language.value)

    async def fetch(self) -> bool:
        """Load the nested catalog, replacing any previous snapshot"""
        try:
            categories = await self.repository.list_nested_catalog(self.language)
        except AdminClientError as e:
            self.logger.warning(f"Loading catalog {self.query_key} failed: {e}")
            self.categories = None
            self.error = e
            self.stale = True
            return False

        self.categories = categories
        self.error = None
        self.stale = False
        self.fetch_count += 1
        self.logger.debug(f"Catalog {self.query_key} loaded with {len(categories)} categories")
        return True

    def invalidate(self):
        """Mark the snapshot stale so the next read refetches it"""
        self.stale = True

    async def refresh(self) -> bool:
        self.invalidate()
        return await self.fetch()

    async def read(self) -> Optional[List[Category]]:
        """Current categories, refetched first when stale; None when loading failed"""
        if self.stale or not self.is_loaded:
            await self.fetch()
        return self.categories

    def set_language(self, language: Language):
        if language != self.language:
            self.language = language
            self.invalidate()

    def discard(self):
        """Forget the snapshot and expansion state"""
        self.categories = None
        self.error = None
        self.stale = True
        self.expanded.clear()
        self.page = 0

    # Lookups

    def find_category(self, category_id: int) -> Optional[Category]:
        for category in self.categories or []:
            if _category_matches(category, category_id):
                return category
        return None

    def find_service(self, service_id: int) -> Optional[Service]:
        """First service with this id in pre-order (category order, then children)"""
        for service, _ in self.iter_services():
            if _service_matches(service, service_id):
                return service
        return None

    def category_of_service(self, service_id: int) -> Optional[Category]:
        """Top-level category whose tree contains the service"""
        for category in self.categories or []:
            for service, _ in walk_services(category.services):
                if _service_matches(service, service_id):
                    return category
        return None

    def parent_of_service(self, service_id: int) -> Optional[Service]:
        """Service directly above this one; None for top-level services"""
        for service, _ in self.iter_services():
            if any(_service_matches(child, service_id) for child in service.services):
                return service
        return None

    def iter_services(self) -> Iterator[Tuple[Service, int]]:
        for category in self.categories or []:
            yield from walk_services(category.services)

    def search_services(self, term: str, exclude_id: Optional[int] = None) -> List[Service]:
        """Services whose name contains `term`, case-insensitively"""
        needle = term.strip().lower()
        results = []
        for service, _ in self.iter_services():
            if exclude_id is not None and _service_matches(service, exclude_id):
                continue
            if needle in (service.name or "").lower():
                results.append(service)
        return results

    # Expansion

    def is_expanded(self, kind: NodeKind, node_id: int) -> bool:
        return (kind, node_id) in self.expanded

    def toggle_expansion(self, kind: NodeKind, node_id: int) -> bool:
        """Flip a node between expanded and collapsed; returns the new state"""
        key = (kind, node_id)
        if key in self.expanded:
            self.expanded.discard(key)
            return False
        self.expanded.add(key)
        return True
