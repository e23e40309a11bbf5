# homeservice_admin/services/__init__.py
from .catalog_repository import CatalogRepository
from .catalog_tree import CatalogTree, NodeKind, TreeState, walk_services
from .mutation_coordinator import MutationCoordinator, MutationKind

__all__ = [
    'CatalogRepository',
    'CatalogTree',
    'NodeKind',
    'TreeState',
    'walk_services',
    'MutationCoordinator',
    'MutationKind',
]
