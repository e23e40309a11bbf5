# homeservice_admin/models/category.py
from typing import Dict, List, Optional
from pydantic import Field, field_validator
from .base import ApiModel
from .language import Language, TranslationText
from .service import Service

class Category(ApiModel):
    """Top-level grouping of services shown to customers"""
    id: Optional[int] = None
    category_id: Optional[int] = None
    name: str = ""
    category_name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    is_mobile_category: Optional[bool] = None
    translations: Optional[Dict[str, TranslationText]] = None

    # Populated by the nested catalog endpoint only
    services: List[Service] = Field(default_factory=list)

    @field_validator('services', mode='before')
    @classmethod
    def _null_services(cls, value):
        return [] if value is None else value

    @property
    def node_id(self) -> Optional[int]:
        return self.category_id if self.category_id is not None else self.id

    @property
    def display_name(self) -> str:
        return self.name or self.category_name or ""

    @property
    def has_children(self) -> bool:
        return bool(self.services)

    def translation(self, lang: Language) -> Optional[TranslationText]:
        return (self.translations or {}).get(lang.value)
