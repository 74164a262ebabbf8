"""
Application form renderer.

Turns a job posting's persisted fields into widget descriptors for the
candidate-facing form, and validates posted answers into a
SubmittedAnswerBundle. Both steps dispatch on field type through tables that
must cover every FieldType; a missing entry fails at import.
"""
import logging
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Sequence

from app.core.exceptions import FormValidationError
from app.schemas.fields import (
    FieldDefinition,
    FieldIssue,
    FieldType,
    FormWidget,
    SubmittedAnswerBundle,
    WidgetKind,
    field_type_of,
    require_every_field_type,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)

_TRUE_VALUES = {"true", "on", "yes", "1"}
_FALSE_VALUES = {"false", "off", "no", "0"}


class InvalidAnswer(ValueError):
    """Raised by an answer parser; the message is shown next to the field."""


# --- WIDGETS ---

def _widget(field: FieldDefinition, widget: WidgetKind, **extra) -> FormWidget:
    return FormWidget(
        name=field.name,
        label=field.label,
        field_type=field_type_of(field),
        widget=widget,
        required=field.required,
        placeholder=field.placeholder,
        help_text=field.help_text,
        **extra,
    )


def _input(input_type: str) -> Callable[[FieldDefinition], FormWidget]:
    return lambda field: _widget(field, WidgetKind.INPUT, input_type=input_type)


WIDGET_BUILDERS: Dict[FieldType, Callable[[FieldDefinition], FormWidget]] = {
    FieldType.TEXT: _input("text"),
    FieldType.EMAIL: _input("email"),
    FieldType.PHONE: _input("tel"),
    FieldType.NUMBER: _input("number"),
    FieldType.DATE: _input("date"),
    FieldType.FILE: _input("file"),
    FieldType.TEXTAREA: lambda field: _widget(field, WidgetKind.TEXTAREA),
    FieldType.SELECT: lambda field: _widget(field, WidgetKind.SELECT, options=list(field.options)),
    FieldType.RADIO: lambda field: _widget(field, WidgetKind.RADIO_GROUP, options=list(field.options)),
    FieldType.MULTISELECT: lambda field: _widget(
        field, WidgetKind.CHECKBOX_GROUP, options=list(field.options), multiple=True
    ),
    # The label doubles as the checkbox text
    FieldType.CHECKBOX: lambda field: _widget(field, WidgetKind.CHECKBOX),
}


# --- ANSWER PARSERS ---

def _parse_text(field: FieldDefinition, raw: Any) -> str:
    if isinstance(raw, (list, dict)):
        raise InvalidAnswer(f"{field.label} must be text")
    return str(raw).strip()


def _parse_email(field: FieldDefinition, raw: Any) -> str:
    value = _parse_text(field, raw)
    if not EMAIL_PATTERN.match(value):
        raise InvalidAnswer("Invalid email address")
    return value


def _parse_number(field: FieldDefinition, raw: Any):
    if isinstance(raw, bool):
        raise InvalidAnswer(f"{field.label} must be a number")
    if isinstance(raw, (int, float)):
        number = raw
    else:
        text = str(raw).strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise InvalidAnswer(f"{field.label} must be a number")
    if isinstance(number, float) and not math.isfinite(number):
        raise InvalidAnswer(f"{field.label} must be a number")
    return number


def _parse_date(field: FieldDefinition, raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    text = str(raw).strip()
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        raise InvalidAnswer(f"{field.label} must be a valid date")


def _parse_single_choice(field: FieldDefinition, raw: Any) -> str:
    value = _parse_text(field, raw)
    if value not in field.options:
        raise InvalidAnswer(f'"{value}" is not an option for {field.label}')
    return value


def _parse_multi_choice(field: FieldDefinition, raw: Any) -> List[str]:
    chosen = raw if isinstance(raw, (list, tuple, set)) else [raw]
    chosen = {str(value).strip() for value in chosen}
    unknown = sorted(chosen - set(field.options))
    if unknown:
        raise InvalidAnswer(f"Not an option for {field.label}: {', '.join(unknown)}")
    # Option order, not selection order
    ordered = []
    for option in field.options:
        if option in chosen and option not in ordered:
            ordered.append(option)
    return ordered


def _parse_checkbox(field: FieldDefinition, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise InvalidAnswer(f"{field.label} must be checked or unchecked")


def _parse_file(field: FieldDefinition, raw: Any) -> str:
    if not isinstance(raw, str):
        raise InvalidAnswer(f"{field.label} must be a file reference")
    return raw.strip()


ANSWER_PARSERS: Dict[FieldType, Callable[[FieldDefinition, Any], Any]] = {
    FieldType.TEXT: _parse_text,
    FieldType.TEXTAREA: _parse_text,
    FieldType.PHONE: _parse_text,
    FieldType.EMAIL: _parse_email,
    FieldType.NUMBER: _parse_number,
    FieldType.DATE: _parse_date,
    FieldType.SELECT: _parse_single_choice,
    FieldType.RADIO: _parse_single_choice,
    FieldType.MULTISELECT: _parse_multi_choice,
    FieldType.CHECKBOX: _parse_checkbox,
    FieldType.FILE: _parse_file,
}

require_every_field_type(WIDGET_BUILDERS, "WIDGET_BUILDERS")
require_every_field_type(ANSWER_PARSERS, "ANSWER_PARSERS")


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple, set, dict)):
        return len(raw) == 0
    return False


class ApplicationFormRenderer:
    """Stateless: the same instance can serve every job posting."""

    def render(self, fields: Sequence[FieldDefinition]) -> List[FormWidget]:
        ordered = sorted(fields, key=lambda field: field.order)
        return [WIDGET_BUILDERS[field_type_of(field)](field) for field in ordered]

    def _collect(self, fields: Sequence[FieldDefinition], answers: Mapping[str, Any]):
        bundle: Dict[str, Any] = {}
        issues: List[FieldIssue] = []

        for index, field in enumerate(sorted(fields, key=lambda f: f.order)):
            raw = answers.get(field.name)

            def fail(message: str) -> None:
                issues.append(FieldIssue(field_index=index, field_name=field.name, label=field.label, message=message))

            if _is_blank(raw):
                if field.required:
                    fail(f"{field.label} is required")
                continue
            try:
                value = ANSWER_PARSERS[field_type_of(field)](field, raw)
            except InvalidAnswer as e:
                fail(str(e))
                continue
            if field.required and (value is False or value == ""):
                fail(f"{field.label} is required")
                continue
            bundle[field.name] = value

        ignored = set(answers) - {field.name for field in fields}
        if ignored:
            logger.debug(f"Ignoring answers for unknown fields: {sorted(ignored)}")
        return bundle, issues

    def validate(self, fields: Sequence[FieldDefinition], answers: Mapping[str, Any]) -> List[FieldIssue]:
        """Field-scoped problems with `answers`; empty when they are submit-ready."""
        return self._collect(fields, answers)[1]

    def build_bundle(self, fields: Sequence[FieldDefinition], answers: Mapping[str, Any]) -> SubmittedAnswerBundle:
        """
        Validate `answers` against `fields` and return the submit-ready bundle.
        Raises FormValidationError listing every failing field; no partial bundle is returned.
        """
        bundle, issues = self._collect(fields, answers)
        if issues:
            raise FormValidationError([issue.model_dump() for issue in issues])
        return SubmittedAnswerBundle(bundle)
