"""
Custom application field types.

A persisted field is a closed tagged union discriminated on ``type``; only the
choice kinds (select, radio, multiselect) carry ``options``. The editor works on
``DraftField``, a permissive shape that may be incomplete until it is saved.
"""
import enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class FieldType(str, enum.Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    SELECT = "select"
    RADIO = "radio"
    MULTISELECT = "multiselect"
    CHECKBOX = "checkbox"
    FILE = "file"


CHOICE_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.MULTISELECT})


# --- PERSISTED FIELD DEFINITIONS ---

class _FieldBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    job_posting_id: Optional[int] = None
    name: str = Field(min_length=1)
    label: str = Field(min_length=1)
    required: bool = False
    order: int = Field(default=0, ge=0)
    placeholder: Optional[str] = None
    help_text: Optional[str] = None

    @field_validator("name", "label", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class _ChoiceFieldBase(_FieldBase):
    options: List[str]

    @field_validator("options")
    @classmethod
    def _at_least_one_option(cls, value: List[str]) -> List[str]:
        cleaned = [option.strip() for option in value if option and option.strip()]
        if not cleaned:
            raise ValueError("must have at least one option")
        return cleaned


class TextField(_FieldBase):
    type: Literal["text"] = "text"

class TextareaField(_FieldBase):
    type: Literal["textarea"] = "textarea"

class NumberField(_FieldBase):
    type: Literal["number"] = "number"

class EmailField(_FieldBase):
    type: Literal["email"] = "email"

class PhoneField(_FieldBase):
    type: Literal["phone"] = "phone"

class DateField(_FieldBase):
    type: Literal["date"] = "date"

class SelectField(_ChoiceFieldBase):
    type: Literal["select"] = "select"

class RadioField(_ChoiceFieldBase):
    type: Literal["radio"] = "radio"

class MultiselectField(_ChoiceFieldBase):
    type: Literal["multiselect"] = "multiselect"

class CheckboxField(_FieldBase):
    type: Literal["checkbox"] = "checkbox"

class FileField(_FieldBase):
    type: Literal["file"] = "file"


FieldDefinition = Annotated[
    Union[
        TextField, TextareaField, NumberField, EmailField, PhoneField, DateField,
        SelectField, RadioField, MultiselectField, CheckboxField, FileField,
    ],
    Field(discriminator="type"),
]

FIELD_DEFINITION_ADAPTER: TypeAdapter = TypeAdapter(FieldDefinition)
FIELD_DEFINITION_LIST_ADAPTER: TypeAdapter = TypeAdapter(List[FieldDefinition])

FIELD_CLASSES: Dict[FieldType, type] = {
    FieldType.TEXT: TextField,
    FieldType.TEXTAREA: TextareaField,
    FieldType.NUMBER: NumberField,
    FieldType.EMAIL: EmailField,
    FieldType.PHONE: PhoneField,
    FieldType.DATE: DateField,
    FieldType.SELECT: SelectField,
    FieldType.RADIO: RadioField,
    FieldType.MULTISELECT: MultiselectField,
    FieldType.CHECKBOX: CheckboxField,
    FieldType.FILE: FileField,
}


def require_every_field_type(table: Mapping, table_name: str) -> None:
    """Fail at import time when a dispatch table does not cover every FieldType."""
    missing = set(FieldType) - set(table)
    if missing:
        names = ", ".join(sorted(t.value for t in missing))
        raise RuntimeError(f"{table_name} has no entry for field type(s): {names}")


require_every_field_type(FIELD_CLASSES, "FIELD_CLASSES")


def field_type_of(field: FieldDefinition) -> FieldType:
    return FieldType(field.type)


# --- EDITOR DRAFT ---

class DraftField(BaseModel):
    """
    Editor-side field. Nothing is validated here: labels may be blank and
    options survive a type change. `auto_name` marks a generated placeholder
    name that is replaced by the slugified label on save.
    """
    id: Optional[int] = None
    name: str = ""
    label: str = ""
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: List[str] = Field(default_factory=list)
    order: int = 0
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    auto_name: bool = False

    @classmethod
    def from_definition(cls, field: FieldDefinition) -> "DraftField":
        return cls(
            id=field.id,
            name=field.name,
            label=field.label,
            type=FieldType(field.type),
            required=field.required,
            options=list(getattr(field, "options", [])),
            order=field.order,
            placeholder=field.placeholder,
            help_text=field.help_text,
        )


EDITABLE_ATTRIBUTES = frozenset({"name", "label", "type", "required", "options", "placeholder", "help_text"})


# --- ERRORS AND NOTICES ---

class FieldIssue(BaseModel):
    """A field-scoped validation failure, shown inline next to the offending field."""
    message: str
    field_index: Optional[int] = None
    field_name: Optional[str] = None
    label: Optional[str] = None


class Notice(BaseModel):
    level: Literal["success", "error", "info"]
    title: str
    description: str


# --- SUGGESTIONS ---

class SuggestedField(BaseModel):
    """One field proposed by a suggester; keys follow the field_* wire names."""
    model_config = ConfigDict(populate_by_name=True)

    label: str = Field(default="", alias="field_label")
    type: FieldType = Field(default=FieldType.TEXT, alias="field_type")
    required: bool = Field(default=False, alias="field_required")
    placeholder: Optional[str] = Field(default=None, alias="field_placeholder")
    help_text: Optional[str] = Field(default=None, alias="field_help_text")
    options: Optional[List[str]] = Field(default=None, alias="field_options")


class JobContext(BaseModel):
    title: str = ""
    description: str = ""
    requirements: str = ""


# --- RENDERER OUTPUT ---

class WidgetKind(str, enum.Enum):
    INPUT = "input"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO_GROUP = "radio_group"
    CHECKBOX_GROUP = "checkbox_group"
    CHECKBOX = "checkbox"


class FormWidget(BaseModel):
    name: str
    label: str
    field_type: FieldType
    widget: WidgetKind
    input_type: Optional[str] = None
    required: bool = False
    options: List[str] = Field(default_factory=list)
    multiple: bool = False
    placeholder: Optional[str] = None
    help_text: Optional[str] = None


class SubmittedAnswerBundle(Mapping):
    """
    Read-only mapping of field name to validated answer.
    Multiselect answers are held as tuples and returned as lists by as_dict().
    """

    def __init__(self, answers: Dict[str, Any]):
        frozen = {
            key: tuple(value) if isinstance(value, list) else value
            for key, value in answers.items()
        }
        self._answers = MappingProxyType(frozen)

    def __getitem__(self, key: str) -> Any:
        return self._answers[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __repr__(self) -> str:
        return f"SubmittedAnswerBundle({self.as_dict()!r})"

    def as_dict(self) -> Dict[str, Any]:
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in self._answers.items()
        }
