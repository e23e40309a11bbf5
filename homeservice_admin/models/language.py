# homeservice_admin/models/language.py
from enum import Enum
from typing import Optional
from pydantic import Field
from .base import ApiModel

class Language(str, Enum):
    ENGLISH = "ENGLISH"
    AMHARIC = "AMHARIC"
    OROMO = "OROMO"

    @property
    def label(self) -> str:
        return self.value.capitalize()

class TranslationText(ApiModel):
    """One entry of a translations map, keyed by language code"""
    name: str = ""
    description: Optional[str] = None

class TranslationInput(ApiModel):
    """Body of the add-translation endpoints"""
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    lang: Language
