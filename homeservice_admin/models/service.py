# homeservice_admin/models/service.py
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import Field, field_validator
from .base import ApiModel
from .language import Language, TranslationText

class Service(ApiModel):
    """A bookable offering; may contain nested sub-services"""
    id: Optional[int] = None
    service_id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    icon: Optional[str] = None
    document: Optional[str] = None
    service_fee: Optional[Decimal] = None
    estimated_duration: Optional[str] = None
    category_id: Optional[int] = None
    technician_count: Optional[int] = None
    booking_count: Optional[int] = None
    translations: Optional[Dict[str, TranslationText]] = None

    # Sub-services, same shape as the parent
    services: List['Service'] = Field(default_factory=list)

    @field_validator('services', mode='before')
    @classmethod
    def _null_services(cls, value):
        return [] if value is None else value

    @property
    def node_id(self) -> Optional[int]:
        return self.service_id if self.service_id is not None else self.id

    @property
    def has_children(self) -> bool:
        return bool(self.services)

    def translation(self, lang: Language) -> Optional[TranslationText]:
        return (self.translations or {}).get(lang.value)

Service.model_rebuild()
