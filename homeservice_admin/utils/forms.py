# homeservice_admin/utils/forms.py
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from pydantic import ValidationError
from ..models import (
    Category, CategoryFormData, FileUpload, Language, Service,
    ServiceFormData, TranslationInput
)
from ..services import NodeKind
from .formatters import format_fee, parse_duration, parse_fee, truncate

class FieldKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"
    PHOTO = "photo"
    # typed text runs a search, the answer is picked from the matches
    SEARCH = "search"

class FormKind(str, Enum):
    CATEGORY = "category"
    SERVICE = "service"
    TRANSLATION = "translation"

def _required_text(text: str) -> str:
    value = text.strip()
    if not value:
        raise ValueError("This field is required")
    return value

LANGUAGE_CHOICES = [(lang.label, lang.value) for lang in Language]
YES_NO_CHOICES = [("Yes", "yes"), ("No", "no")]

@dataclass
class FormField:
    """One question of a chat form"""
    key: str
    label: str
    prompt: str
    required: bool = True
    kind: FieldKind = FieldKind.TEXT
    choices: Sequence[Tuple[str, str]] = ()
    parse: Callable[[str], Any] = _required_text

    def display(self, value: Any) -> str:
        if value is None or value == "":
            return "—"
        if isinstance(value, FileUpload):
            return f"🖼 {value.filename}"
        if isinstance(value, Language):
            return value.label
        if isinstance(value, bool):
            return "Yes" if value else "No"
        if isinstance(value, Decimal):
            return format_fee(value)
        return truncate(str(value), 120)

NAME = FormField('name', "Name", "📝 Enter the name:")
DESCRIPTION = FormField('description', "Description", "📝 Enter the description:")
LANG = FormField(
    'lang', "Language", "🌐 Choose the language of this text:",
    kind=FieldKind.CHOICE, choices=LANGUAGE_CHOICES, parse=Language
)
ICON = FormField(
    'icon', "Icon", "🖼 Send the icon as a photo or image file:",
    required=False, kind=FieldKind.PHOTO
)

CATEGORY_FIELDS = [
    NAME,
    DESCRIPTION,
    LANG,
    ICON,
    FormField(
        'is_mobile_category', "Show in mobile app", "📱 Show this category in the mobile app?",
        kind=FieldKind.CHOICE, choices=YES_NO_CHOICES, parse=lambda value: value == "yes"
    ),
]

SERVICE_FIELDS = [
    NAME,
    DESCRIPTION,
    LANG,
    FormField(
        'category_id', "Category", "📁 Choose the category:",
        kind=FieldKind.CHOICE, parse=int
    ),
    FormField(
        'parent_service_id', "Parent service",
        "🔗 Type part of the parent service name to search for it:",
        required=False, kind=FieldKind.SEARCH, parse=int
    ),
    FormField(
        'service_fee', "Fee", "💰 Enter the service fee (e.g. 250 or 99.50):",
        required=False, parse=parse_fee
    ),
    FormField(
        'estimated_duration', "Duration", "⏱ Enter the estimated duration as HH:MM:",
        required=False, parse=parse_duration
    ),
    ICON,
]

TRANSLATION_FIELDS = [LANG, NAME, DESCRIPTION]

@dataclass
class FormSession:
    """State of one chat form between updates"""
    kind: FormKind
    title: str
    fields: List[FormField]
    values: Dict[str, Any] = field(default_factory=dict)
    index: int = 0
    editing: bool = False
    target_id: Optional[int] = None
    owner_kind: Optional[NodeKind] = None
    # (label, value) buttons of choice and search fields filled in at runtime
    options: Dict[str, List[Tuple[str, str]]] = field(default_factory=dict)
    return_to_summary: bool = False

    @property
    def category_id(self) -> Optional[int]:
        return self.values.get('category_id')

    @property
    def parent_service_id(self) -> Optional[int]:
        return self.values.get('parent_service_id')

    @property
    def current_field(self) -> Optional[FormField]:
        if self.index < len(self.fields):
            return self.fields[self.index]
        return None

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.fields)

    def field_by_key(self, key: str) -> FormField:
        for form_field in self.fields:
            if form_field.key == key:
                return form_field
        raise KeyError(key)

    def has_value(self, key: str) -> bool:
        return self.values.get(key) not in (None, "")

    def can_skip(self) -> bool:
        current = self.current_field
        return current is not None and not current.required

    def can_keep(self) -> bool:
        current = self.current_field
        return current is not None and self.has_value(current.key)

    def accept(self, raw: Union[str, FileUpload, None]):
        """Store an answer for the current field and move on.

        Raises ValueError with a user-facing message when the answer is invalid.
        """
        current = self.current_field
        if current is None:
            return
        if raw is None:
            if current.required and not self.has_value(current.key):
                raise ValueError(f"{current.label} is required")
            self.values[current.key] = None
        elif isinstance(raw, FileUpload):
            self.values[current.key] = raw
        else:
            self.values[current.key] = current.parse(raw)
        self.advance()

    def keep(self):
        self.advance()

    def advance(self):
        if self.return_to_summary:
            self.index = len(self.fields)
            self.return_to_summary = False
        else:
            self.index += 1

    def edit(self, key: str):
        """Jump back to one field, returning to the summary afterwards"""
        self.index = self.fields.index(self.field_by_key(key))
        self.return_to_summary = True

    def choices_for(self, form_field: FormField) -> Sequence[Tuple[str, str]]:
        return self.options.get(form_field.key, form_field.choices)

    def display_value(self, form_field: FormField) -> str:
        value = self.values.get(form_field.key)
        if value is not None and form_field.key in self.options:
            for label, choice in self.options[form_field.key]:
                if choice == str(value):
                    return label
            return f"#{value}"
        return form_field.display(value)

    def summary(self) -> List[Tuple[str, str]]:
        return [(f.label, self.display_value(f)) for f in self.fields]

    def build_payload(self) -> Union[CategoryFormData, ServiceFormData, TranslationInput]:
        """Validated payload for the mutation, ValueError on bad input"""
        data = {key: value for key, value in self.values.items() if value is not None}
        try:
            if self.kind is FormKind.CATEGORY:
                return CategoryFormData(**data)
            if self.kind is FormKind.SERVICE:
                return ServiceFormData(**data)
            return TranslationInput(**data)
        except ValidationError as e:
            raise ValueError(validation_message(e)) from e

def validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get('loc', ())) or "value"
    return f"{location}: {first.get('msg', 'invalid value')}"

def category_form(language: Language, category: Optional[Category] = None) -> FormSession:
    if category is None:
        return FormSession(
            kind=FormKind.CATEGORY,
            title="Add New Category",
            fields=CATEGORY_FIELDS,
            values={'lang': language, 'is_mobile_category': False},
        )
    return FormSession(
        kind=FormKind.CATEGORY,
        title="Edit Category",
        fields=CATEGORY_FIELDS,
        values={
            'name': category.display_name,
            'description': category.description,
            'lang': language,
            'is_mobile_category': bool(category.is_mobile_category),
        },
        editing=True,
        target_id=category.node_id,
    )

def category_options(categories: Sequence[Category]) -> List[Tuple[str, str]]:
    return [(truncate(c.display_name, 40), str(c.node_id)) for c in categories if c.node_id is not None]

def service_options(services: Sequence[Service]) -> List[Tuple[str, str]]:
    return [(truncate(s.name, 40), str(s.node_id)) for s in services if s.node_id is not None]

def service_form(language: Language, category_id: Optional[int], service: Optional[Service] = None,
                 parent: Optional[Service] = None, categories: Sequence[Category] = ()) -> FormSession:
    """Add/Edit Service form.

    `parent` is the service the new one goes under (Add Sub-Service), or the
    current parent of the edited service. Category and parent stay editable
    either way.
    """
    options = {'category_id': category_options(categories)}
    values: Dict[str, Any] = {
        'lang': language,
        'category_id': category_id,
        'parent_service_id': parent.node_id if parent is not None else None,
    }
    if parent is not None:
        options['parent_service_id'] = service_options([parent])

    if service is not None:
        values.update({
            'name': service.name,
            'description': service.description,
            'service_fee': service.service_fee,
            'estimated_duration': service.estimated_duration,
        })
        return FormSession(
            kind=FormKind.SERVICE,
            title="Edit Service",
            fields=SERVICE_FIELDS,
            values=values,
            editing=True,
            target_id=service.node_id,
            options=options,
        )
    return FormSession(
        kind=FormKind.SERVICE,
        title="Add Sub-Service" if parent is not None else "Add New Service",
        fields=SERVICE_FIELDS,
        values=values,
        options=options,
    )

def translation_form(owner_kind: NodeKind, owner: Union[Category, Service], language: Language) -> FormSession:
    name = owner.display_name if isinstance(owner, Category) else owner.name
    return FormSession(
        kind=FormKind.TRANSLATION,
        title="Add Category Translation" if owner_kind is NodeKind.CATEGORY else "Add Service Translation",
        fields=TRANSLATION_FIELDS,
        values={'lang': language, 'name': name, 'description': owner.description},
        target_id=owner.node_id,
        owner_kind=owner_kind,
    )
