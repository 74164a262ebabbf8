"""
Schema editor: the recruiter's working copy of a job posting's custom fields.

All edits happen on an in-memory draft; the store only sees a complete,
validated list when save() is called. The list helpers below are pure
(they return new lists) so ordering and naming rules can be exercised
without an editor instance.
"""
import enum
import logging
from typing import List, Literal, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, Field

from app.schemas.fields import (
    CHOICE_TYPES,
    EDITABLE_ATTRIBUTES,
    FIELD_CLASSES,
    DraftField,
    FieldDefinition,
    FieldIssue,
    FieldType,
    JobContext,
    Notice,
    SuggestedField,
)
from app.services.field_naming import DEFAULT_FIELD_NAME, slugify, unique_name

logger = logging.getLogger(__name__)


class SchemaStore(Protocol):
    def load_schema(self, job_posting_id: int) -> List[FieldDefinition]: ...

    def replace_schema(self, job_posting_id: int, fields: Sequence[FieldDefinition]) -> List[FieldDefinition]: ...


class FieldSuggester(Protocol):
    def suggest(self, context: JobContext) -> List[SuggestedField]: ...


# --- PURE DRAFT HELPERS ---

def redensify(fields: Sequence[DraftField]) -> List[DraftField]:
    """Copies of `fields` with order set to 0..N-1 by position."""
    return [field.model_copy(update={"order": index}, deep=True) for index, field in enumerate(fields)]


def reorder_fields(fields: Sequence[DraftField], from_index: int, to_index: int) -> List[DraftField]:
    """Move the field at `from_index` to `to_index` (drag and drop), re-densing order."""
    size = len(fields)
    if not 0 <= from_index < size or not 0 <= to_index < size:
        raise IndexError(f"Cannot move field {from_index} to {to_index} in a list of {size}")
    moved = list(fields)
    moved.insert(to_index, moved.pop(from_index))
    return redensify(moved)


def resolve_names(fields: Sequence[DraftField]) -> List[str]:
    """
    Final answer keys for the draft, by position.
    Author-supplied names are kept as typed; generated or blank names are
    replaced by the slugified label, suffixed until unique.
    """
    explicit = {
        index: field.name.strip()
        for index, field in enumerate(fields)
        if not field.auto_name and field.name.strip()
    }
    taken = set(explicit.values())
    names = []
    for index, field in enumerate(fields):
        if index in explicit:
            names.append(explicit[index])
            continue
        name = unique_name(slugify(field.label) or DEFAULT_FIELD_NAME, taken)
        taken.add(name)
        names.append(name)
    return names


def validate_draft(fields: Sequence[DraftField]) -> List[FieldIssue]:
    """Every reason the draft cannot be saved; empty when it is valid."""
    issues: List[FieldIssue] = []
    names = resolve_names(fields)
    seen_names = {}

    for index, field in enumerate(fields):
        label = field.label.strip()
        if not label:
            issues.append(FieldIssue(
                field_index=index,
                field_name=names[index],
                message=f"Field {index + 1} must have a label",
            ))
        if field.type in CHOICE_TYPES and not any(option.strip() for option in field.options):
            issues.append(FieldIssue(
                field_index=index,
                field_name=names[index],
                label=label or None,
                message=f'Field "{label or index + 1}" must have at least one option',
            ))
        if names[index] in seen_names:
            issues.append(FieldIssue(
                field_index=index,
                field_name=names[index],
                label=label or None,
                message=f'Field name "{names[index]}" is already used by field {seen_names[names[index]] + 1}',
            ))
        else:
            seen_names[names[index]] = index

    return issues


def to_definitions(fields: Sequence[DraftField], job_posting_id: int) -> List[FieldDefinition]:
    """Convert a validated draft into typed definitions; options are dropped for non-choice kinds."""
    definitions = []
    for index, (field, name) in enumerate(zip(fields, resolve_names(fields))):
        payload = {
            "id": field.id,
            "job_posting_id": job_posting_id,
            "name": name,
            "label": field.label,
            "required": field.required,
            "order": index,
            "placeholder": field.placeholder or None,
            "help_text": field.help_text or None,
        }
        if field.type in CHOICE_TYPES:
            payload["options"] = field.options
        definitions.append(FIELD_CLASSES[field.type](**payload))
    return definitions


def merge_suggestions(
    fields: Sequence[DraftField], suggestions: Sequence[SuggestedField]
) -> Tuple[List[DraftField], int]:
    """
    Append suggested fields to the draft. Names are slugified from the suggested
    label and made unique against the draft and the rest of the batch.
    """
    taken = {field.name for field in fields}
    merged = list(fields)
    for suggestion in suggestions:
        label = (suggestion.label or "").strip() or "Custom Field"
        name = unique_name(slugify(label) or DEFAULT_FIELD_NAME, taken)
        taken.add(name)
        merged.append(DraftField(
            name=name,
            label=label,
            type=suggestion.type,
            required=bool(suggestion.required),
            options=list(suggestion.options or []) if suggestion.type in CHOICE_TYPES else [],
            placeholder=suggestion.placeholder or None,
            help_text=suggestion.help_text or None,
        ))
    return redensify(merged), len(merged) - len(fields)


# --- EDITOR ---

class EditorState(str, enum.Enum):
    LOADED = "loaded"
    EDITING = "editing"
    SAVING = "saving"


class SaveResult(BaseModel):
    ok: bool
    notice: Notice
    reason: Optional[Literal["validation", "store", "busy"]] = None
    errors: List[FieldIssue] = Field(default_factory=list)
    fields: List[FieldDefinition] = Field(default_factory=list)


class SchemaEditor:
    """
    Draft state machine: LOADED -> EDITING on any change, EDITING -> SAVING on save(),
    then back to LOADED on success or EDITING (draft untouched) on failure.
    Every outcome leaves a user-facing message in `notice`.
    """

    def __init__(self, store: SchemaStore, job_posting_id: int, suggester: Optional[FieldSuggester] = None):
        self.store = store
        self.job_posting_id = job_posting_id
        self.suggester = suggester
        self.fields: List[DraftField] = []
        self.baseline: List[FieldDefinition] = []
        self.state = EditorState.LOADED
        self.notice: Optional[Notice] = None
        self.saving = False
        self.suggesting = False

    @classmethod
    def from_draft(
        cls,
        store: SchemaStore,
        job_posting_id: int,
        fields: Sequence[DraftField],
        suggester: Optional[FieldSuggester] = None,
    ) -> "SchemaEditor":
        """An editor resuming a draft built elsewhere (e.g. posted by the browser)."""
        editor = cls(store, job_posting_id, suggester=suggester)
        editor.fields = redensify(fields)
        editor.state = EditorState.EDITING
        return editor

    @property
    def dirty(self) -> bool:
        return self.state == EditorState.EDITING

    def load(self) -> List[DraftField]:
        self.baseline = self.store.load_schema(self.job_posting_id)
        self.fields = [DraftField.from_definition(field) for field in self.baseline]
        self.state = EditorState.LOADED
        return self.fields

    def _touch(self) -> None:
        if self.state != EditorState.SAVING:
            self.state = EditorState.EDITING

    # -- structural edits --

    def add_field(self) -> DraftField:
        taken = {field.name for field in self.fields}
        field = DraftField(
            name=unique_name(f"{DEFAULT_FIELD_NAME}_{len(self.fields) + 1}", taken),
            type=FieldType.TEXT,
            required=False,
            order=len(self.fields),
            auto_name=True,
        )
        self.fields.append(field)
        self._touch()
        return field

    def remove_field(self, index: int) -> DraftField:
        if not 0 <= index < len(self.fields):
            raise IndexError(f"No field at position {index}")
        removed = self.fields[index]
        remaining = self.fields[:index] + self.fields[index + 1:]
        self.fields = redensify(remaining)
        self._touch()
        return removed

    def reorder(self, new_order: Sequence[int]) -> None:
        """Apply a full reordering: new_order[i] is the current index of the field to show at i."""
        if sorted(new_order) != list(range(len(self.fields))):
            raise ValueError("new_order must be a permutation of the current field positions")
        self.fields = redensify([self.fields[index] for index in new_order])
        self._touch()

    def move_field(self, from_index: int, to_index: int) -> None:
        self.fields = reorder_fields(self.fields, from_index, to_index)
        self._touch()

    def update_field(self, index: int, **changes) -> DraftField:
        unknown = set(changes) - EDITABLE_ATTRIBUTES
        if unknown:
            raise ValueError(f"Cannot edit field attribute(s): {', '.join(sorted(unknown))}")
        if "type" in changes:
            changes["type"] = FieldType(changes["type"])
        if "options" in changes:
            changes["options"] = list(changes["options"] or [])
        if "name" in changes:
            changes["auto_name"] = False
        field = self.fields[index].model_copy(update=changes, deep=True)
        self.fields[index] = field
        self._touch()
        return field

    # -- option edits --

    def add_option(self, index: int) -> None:
        self.fields[index].options.append("")
        self._touch()

    def update_option(self, index: int, option_index: int, value: str) -> None:
        self.fields[index].options[option_index] = value
        self._touch()

    def remove_option(self, index: int, option_index: int) -> None:
        del self.fields[index].options[option_index]
        self._touch()

    # -- suggestions --

    def suggest_fields(self, context: JobContext) -> int:
        """
        Append suggested fields for the job. Best effort: failures and empty
        results leave the draft as it was. Returns the number of fields added.
        """
        if self.suggesting:
            self.notice = Notice(level="info", title="Please wait", description="Suggestions are already being generated.")
            return 0
        if self.suggester is None:
            self.notice = Notice(level="info", title="No suggestions", description="Field suggestions are not available.")
            return 0

        self.suggesting = True
        try:
            suggestions = self.suggester.suggest(context)
        except Exception as e:
            logger.warning(f"Field suggestion failed for job {self.job_posting_id}: {e}")
            self.notice = Notice(level="info", title="Suggestions unavailable", description="Failed to suggest fields. You can still add fields manually.")
            return 0
        finally:
            self.suggesting = False

        if not suggestions:
            self.notice = Notice(level="info", title="No suggestions", description="AI did not return any fields for this job.")
            return 0

        self.fields, added = merge_suggestions(self.fields, suggestions)
        self._touch()
        self.notice = Notice(level="success", title="AI suggestions added", description=f"{added} field(s) appended.")
        return added

    # -- persistence --

    def save(self) -> SaveResult:
        if self.saving:
            self.notice = Notice(level="info", title="Please wait", description="Custom fields are already being saved.")
            return SaveResult(ok=False, reason="busy", notice=self.notice)

        issues = validate_draft(self.fields)
        if issues:
            self.notice = Notice(level="error", title="Validation Error", description=issues[0].message)
            return SaveResult(ok=False, reason="validation", notice=self.notice, errors=issues)

        definitions = to_definitions(self.fields, self.job_posting_id)
        self.saving = True
        self.state = EditorState.SAVING
        try:
            saved = self.store.replace_schema(self.job_posting_id, definitions)
        except Exception as e:
            logger.error(f"Saving custom fields for job {self.job_posting_id} failed: {e}")
            self.state = EditorState.EDITING
            self.notice = Notice(level="error", title="Error", description="Failed to save custom fields")
            return SaveResult(ok=False, reason="store", notice=self.notice)
        finally:
            self.saving = False

        self.baseline = list(saved)
        self.fields = [DraftField.from_definition(field) for field in saved]
        self.state = EditorState.LOADED
        self.notice = Notice(level="success", title="Success", description="Custom fields saved successfully")
        return SaveResult(ok=True, notice=self.notice, fields=saved)
