# homeservice_admin/models/forms.py
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from .base import ApiModel
from .language import Language
from ..utils.formatters import parse_duration
from ..api.multipart import MultipartForm

class FileUpload(BaseModel):
    """A file received from the admin, ready to be attached to a request"""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

class CategoryFormData(ApiModel):
    """Create/update payload for a category"""
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    lang: Language = Language.ENGLISH
    is_mobile_category: Optional[bool] = None
    icon: Optional[FileUpload] = Field(default=None, exclude=True)

    def to_multipart(self) -> MultipartForm:
        form = MultipartForm()
        for key, value in self.model_dump(mode='json', by_alias=True).items():
            form.add(key, value)
        if self.icon:
            form.add_file('icon', self.icon)
        return form

class ServiceFormData(ApiModel):
    """Create/update payload for a service or sub-service"""
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    lang: Language = Language.ENGLISH
    service_fee: Optional[Decimal] = Field(default=None, ge=0)
    estimated_duration: Optional[str] = None
    category_id: Optional[int] = None
    parent_service_id: Optional[int] = None
    icon: Optional[FileUpload] = Field(default=None, exclude=True)

    @field_validator('estimated_duration')
    @classmethod
    def _check_duration(cls, value):
        if value in (None, ""):
            return None
        return parse_duration(value)

    def to_multipart(self) -> MultipartForm:
        form = MultipartForm()
        for key, value in self.model_dump(mode='json', by_alias=True).items():
            form.add(key, value)
        if self.icon:
            form.add_file('icon', self.icon)
        return form
