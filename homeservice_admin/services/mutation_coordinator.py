# homeservice_admin/services/mutation_coordinator.py
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, TypeVar
from ..api import MultipartForm
from ..exceptions import MalformedResponseError, MutationInProgressError
from ..models import Category, FileUpload, Service, TranslationInput
from .catalog_repository import CatalogRepository
from .catalog_tree import CatalogTree, NodeKind

T = TypeVar('T')

class MutationKind(str, Enum):
    CREATE_CATEGORY = "Creating category"
    UPDATE_CATEGORY = "Updating category"
    ADD_CATEGORY_TRANSLATION = "Adding category translation"
    CREATE_SERVICE = "Creating service"
    UPDATE_SERVICE = "Updating service"
    ADD_SERVICE_TRANSLATION = "Adding service translation"
    DELETE_SERVICE = "Deleting service"
    IMPORT_SERVICES = "Importing services"

class MutationCoordinator:
    """Runs one repository write, then refreshes the catalog tree"""

    def __init__(self, repository: CatalogRepository, tree: CatalogTree):
        self.repository = repository
        self.tree = tree
        self.pending: Dict[MutationKind, bool] = {kind: False for kind in MutationKind}
        self.logger = logging.getLogger(__name__)

    def is_pending(self, kind: MutationKind) -> bool:
        return self.pending[kind]

    @property
    def is_creating_category(self) -> bool:
        return self.pending[MutationKind.CREATE_CATEGORY]

    @property
    def is_updating_category(self) -> bool:
        return self.pending[MutationKind.UPDATE_CATEGORY]

    @property
    def is_adding_category_translation(self) -> bool:
        return self.pending[MutationKind.ADD_CATEGORY_TRANSLATION]

    @property
    def is_creating_service(self) -> bool:
        return self.pending[MutationKind.CREATE_SERVICE]

    @property
    def is_updating_service(self) -> bool:
        return self.pending[MutationKind.UPDATE_SERVICE]

    @property
    def is_adding_service_translation(self) -> bool:
        return self.pending[MutationKind.ADD_SERVICE_TRANSLATION]

    @property
    def is_deleting_service(self) -> bool:
        return self.pending[MutationKind.DELETE_SERVICE]

    @property
    def is_importing_services(self) -> bool:
        return self.pending[MutationKind.IMPORT_SERVICES]

    async def _run(self, kind: MutationKind, operation: Callable[[], Awaitable[T]]) -> T:
        if self.pending[kind]:
            raise MutationInProgressError(kind)

        self.pending[kind] = True
        try:
            try:
                result = await operation()
            except MalformedResponseError:
                # the server accepted the write; only its reply is unreadable
                self.logger.warning(f"{kind.value} returned an unreadable reply")
                await self.tree.refresh()
                raise
            self.logger.info(f"{kind.value} succeeded")
            # the write is done; a failed reload ends up in tree.error
            await self.tree.refresh()
            return result
        finally:
            self.pending[kind] = False

    async def submit_category(self, category_id: Optional[int], form: MultipartForm) -> Category:
        """Update the category when an id is given, otherwise create one"""
        if category_id is not None:
            return await self._run(
                MutationKind.UPDATE_CATEGORY,
                lambda: self.repository.update_category(category_id, form)
            )
        return await self._run(
            MutationKind.CREATE_CATEGORY,
            lambda: self.repository.create_category(form)
        )

    async def submit_service(self, service_id: Optional[int], parent_service_id: Optional[int],
                             form: MultipartForm) -> Service:
        """Update or create a service, linking it under a parent service when given"""
        if parent_service_id is not None:
            form = form.copy()
            form.set('parentServiceId', parent_service_id)

        if service_id is not None:
            return await self._run(
                MutationKind.UPDATE_SERVICE,
                lambda: self.repository.update_service(service_id, form)
            )
        return await self._run(
            MutationKind.CREATE_SERVICE,
            lambda: self.repository.create_service(form)
        )

    async def submit_translation(self, owner_kind: NodeKind, owner_id: int, translation: TranslationInput):
        if owner_kind is NodeKind.CATEGORY:
            return await self._run(
                MutationKind.ADD_CATEGORY_TRANSLATION,
                lambda: self.repository.add_category_translation(owner_id, translation)
            )
        return await self._run(
            MutationKind.ADD_SERVICE_TRANSLATION,
            lambda: self.repository.add_service_translation(owner_id, translation)
        )

    async def confirm_delete(self, service_id: int) -> bool:
        """Delete by id; descendants are removed server-side"""
        return await self._run(
            MutationKind.DELETE_SERVICE,
            lambda: self.repository.delete_service(service_id)
        )

    async def bulk_import(self, upload: FileUpload) -> bool:
        return await self._run(
            MutationKind.IMPORT_SERVICES,
            lambda: self.repository.bulk_import_services(upload)
        )
