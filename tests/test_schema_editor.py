import random

import pytest

from app.core.exceptions import SchemaStoreError
from app.schemas.fields import DraftField, FieldType, JobContext, SuggestedField
from app.services.schema_editor import (
    EditorState,
    SchemaEditor,
    merge_suggestions,
    redensify,
    reorder_fields,
    resolve_names,
    validate_draft,
)


class InMemoryStore:
    """Stand-in for FieldSchemaStore that records how often it is written."""

    def __init__(self):
        self.schemas = {}
        self.replace_calls = 0
        self._next_id = 1

    def load_schema(self, job_posting_id):
        return list(self.schemas.get(job_posting_id, []))

    def replace_schema(self, job_posting_id, fields):
        self.replace_calls += 1
        stored = []
        for order, field in enumerate(fields):
            stored.append(field.model_copy(update={"id": self._next_id, "job_posting_id": job_posting_id, "order": order}))
            self._next_id += 1
        self.schemas[job_posting_id] = stored
        return list(stored)


class FailingStore(InMemoryStore):
    def replace_schema(self, job_posting_id, fields):
        self.replace_calls += 1
        raise SchemaStoreError()


class StaticSuggester:
    def __init__(self, suggestions):
        self.suggestions = suggestions
        self.calls = 0

    def suggest(self, context):
        self.calls += 1
        return list(self.suggestions)


class BrokenSuggester:
    def suggest(self, context):
        raise ConnectionError("suggestion service unreachable")


def _draft(label, type=FieldType.TEXT, **kwargs):
    return DraftField(label=label, type=type, auto_name=True, **kwargs)


def _orders(fields):
    return [field.order for field in fields]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def editor(store):
    editor = SchemaEditor(store, job_posting_id=42)
    editor.load()
    return editor


# --- pure helpers ---

def test_redensify_assigns_positions_without_mutating_input():
    fields = [DraftField(name="a", order=7), DraftField(name="b", order=7)]
    dense = redensify(fields)
    assert _orders(dense) == [0, 1]
    assert _orders(fields) == [7, 7]


def test_reorder_fields_moves_and_redensifies():
    fields = redensify([DraftField(name=n) for n in "abcd"])
    moved = reorder_fields(fields, 0, 2)
    assert [f.name for f in moved] == ["b", "c", "a", "d"]
    assert _orders(moved) == [0, 1, 2, 3]
    assert [f.name for f in fields] == ["a", "b", "c", "d"]


def test_reorder_fields_rejects_out_of_range():
    with pytest.raises(IndexError):
        reorder_fields([DraftField(name="a")], 0, 3)


def test_resolve_names_keeps_explicit_and_slugifies_generated():
    fields = [
        DraftField(name="experience", label="Years", auto_name=False),
        _draft("Experience"),
        _draft("Experience"),
        DraftField(name="", label="Start date"),
    ]
    assert resolve_names(fields) == ["experience", "experience_1", "experience_2", "start_date"]


def test_validate_draft_reports_blank_label_and_missing_options():
    fields = [
        _draft(""),
        _draft("Shift", type=FieldType.RADIO, options=["", "  "]),
        _draft("Notes"),
    ]
    issues = validate_draft(fields)
    assert [issue.field_index for issue in issues] == [0, 1]
    assert issues[0].message == "Field 1 must have a label"
    assert issues[1].message == 'Field "Shift" must have at least one option'
    assert issues[1].label == "Shift"


def test_validate_draft_ignores_options_on_non_choice_fields():
    fields = [_draft("Notes", type=FieldType.TEXTAREA, options=[])]
    assert validate_draft(fields) == []


def test_validate_draft_flags_duplicate_explicit_names():
    fields = [
        DraftField(name="city", label="City"),
        DraftField(name="city", label="Town"),
    ]
    issues = validate_draft(fields)
    assert len(issues) == 1
    assert issues[0].field_index == 1


def test_merge_suggestions_dedupes_against_draft_and_batch():
    draft = [DraftField(name="years_of_relevant_experience", label="Years")]
    suggestions = [
        SuggestedField(label="Years of Relevant Experience", type=FieldType.NUMBER, required=True),
        SuggestedField(label="Years of relevant experience!", type=FieldType.NUMBER),
        SuggestedField(label="Work Preference", type=FieldType.RADIO, options=["Remote", "Hybrid"]),
        SuggestedField(label="Portfolio", type=FieldType.TEXT, options=["ignored"]),
    ]
    merged, added = merge_suggestions(draft, suggestions)

    assert added == 4
    names = [field.name for field in merged]
    assert names == [
        "years_of_relevant_experience",
        "years_of_relevant_experience_1",
        "years_of_relevant_experience_2",
        "work_preference",
        "portfolio",
    ]
    assert len(set(names)) == len(names)
    assert _orders(merged) == [0, 1, 2, 3, 4]
    assert merged[3].options == ["Remote", "Hybrid"]
    assert merged[4].options == []


# --- editor operations ---

def test_add_field_defaults(editor):
    field = editor.add_field()
    assert field.type == FieldType.TEXT
    assert field.required is False
    assert field.order == 0
    assert field.auto_name is True
    assert editor.state == EditorState.EDITING

    second = editor.add_field()
    assert second.order == 1
    assert second.name != field.name


def test_order_stays_dense_through_random_edits(editor):
    rng = random.Random(1234)
    for _ in range(200):
        action = rng.choice(["add", "remove", "move", "reorder"])
        size = len(editor.fields)
        if action == "add" or size == 0:
            editor.add_field()
        elif action == "remove":
            editor.remove_field(rng.randrange(size))
        elif action == "move":
            editor.move_field(rng.randrange(size), rng.randrange(size))
        else:
            permutation = list(range(size))
            rng.shuffle(permutation)
            editor.reorder(permutation)
        assert _orders(editor.fields) == list(range(len(editor.fields)))


def test_reorder_requires_a_permutation(editor):
    editor.add_field()
    editor.add_field()
    with pytest.raises(ValueError):
        editor.reorder([0, 0])


def test_update_field_merges_changes(editor):
    editor.add_field()
    editor.update_field(0, label="Favourite stack", type="select", options=["Python"])
    field = editor.fields[0]
    assert field.type == FieldType.SELECT
    assert field.options == ["Python"]
    assert field.auto_name is True

    editor.update_field(0, name="stack")
    assert editor.fields[0].auto_name is False


def test_update_field_rejects_unknown_attributes(editor):
    editor.add_field()
    with pytest.raises(ValueError):
        editor.update_field(0, order=5)


def test_option_editing(editor):
    editor.add_field()
    editor.update_field(0, label="Shift", type=FieldType.RADIO)
    editor.add_option(0)
    editor.add_option(0)
    editor.update_option(0, 0, "Day")
    editor.update_option(0, 1, "Day")
    editor.add_option(0)
    editor.update_option(0, 2, "Night")
    editor.remove_option(0, 1)
    assert editor.fields[0].options == ["Day", "Night"]


def test_options_survive_type_change_but_are_not_saved(editor, store):
    editor.add_field()
    editor.update_field(0, label="Shift", type=FieldType.RADIO, options=["Day", "Night"])
    editor.update_field(0, type=FieldType.TEXT)
    assert editor.fields[0].options == ["Day", "Night"]

    result = editor.save()
    assert result.ok
    assert not hasattr(store.schemas[42][0], "options")


# --- save ---

def test_save_blocked_when_choice_field_has_no_options(editor, store):
    editor.add_field()
    editor.update_field(0, label="Years", type=FieldType.NUMBER)
    editor.add_field()
    editor.update_field(1, label="Stack", type=FieldType.MULTISELECT)

    result = editor.save()

    assert not result.ok
    assert result.reason == "validation"
    assert store.replace_calls == 0
    assert [issue.field_index for issue in result.errors] == [1]
    assert editor.notice.level == "error"
    assert editor.state == EditorState.EDITING


def test_save_blocked_on_blank_label(editor, store):
    editor.add_field()
    result = editor.save()
    assert not result.ok
    assert result.errors[0].message == "Field 1 must have a label"
    assert store.replace_calls == 0


def test_save_failure_keeps_draft():
    store = FailingStore()
    editor = SchemaEditor(store, job_posting_id=7)
    editor.load()
    editor.add_field()
    editor.update_field(0, label="Portfolio URL", placeholder="https://")
    before = [field.model_dump() for field in editor.fields]

    result = editor.save()

    assert not result.ok
    assert result.reason == "store"
    assert result.notice.description == "Failed to save custom fields"
    assert editor.state == EditorState.EDITING
    assert editor.saving is False
    assert [field.model_dump() for field in editor.fields] == before


def test_save_success_replaces_baseline(editor, store):
    editor.add_field()
    editor.update_field(0, label="Notice period", type=FieldType.SELECT, options=["Now", "", "1 month"])

    result = editor.save()

    assert result.ok
    assert editor.state == EditorState.LOADED
    assert editor.notice.description == "Custom fields saved successfully"
    saved = store.schemas[42][0]
    assert saved.name == "notice_period"
    assert saved.options == ["Now", "1 month"]
    assert editor.fields[0].id == saved.id
    assert editor.fields[0].auto_name is False


def test_second_save_while_saving_is_refused(store):
    editor = SchemaEditor(store, job_posting_id=42)
    nested = {}

    class ReentrantStore(InMemoryStore):
        def replace_schema(self, job_posting_id, fields):
            nested["result"] = editor.save()
            return super().replace_schema(job_posting_id, fields)

    editor.store = ReentrantStore()
    editor.add_field()
    editor.update_field(0, label="City")

    assert editor.save().ok
    assert nested["result"].reason == "busy"
    assert editor.store.replace_calls == 1


def test_saving_twice_is_idempotent(editor, store):
    editor.add_field()
    editor.update_field(0, label="City")
    editor.add_field()
    editor.update_field(1, label="Relocate?", type=FieldType.CHECKBOX)
    editor.save()
    first = [(f.name, f.label, f.order) for f in store.load_schema(42)]

    editor.save()
    second = [(f.name, f.label, f.order) for f in store.load_schema(42)]

    assert first == second == [("city", "City", 0), ("relocate", "Relocate?", 1)]


# --- suggestions ---

def test_suggestions_are_appended(store):
    suggester = StaticSuggester([
        SuggestedField(label="Years of Relevant Experience", type=FieldType.NUMBER, required=True),
        SuggestedField(label="Work Preference", type=FieldType.RADIO, options=["Remote", "On-site"]),
    ])
    editor = SchemaEditor(store, 42, suggester=suggester)
    editor.load()
    editor.add_field()
    editor.update_field(0, label="City")

    added = editor.suggest_fields(JobContext(title="Engineer"))

    assert added == 2
    assert [f.label for f in editor.fields] == ["City", "Years of Relevant Experience", "Work Preference"]
    assert _orders(editor.fields) == [0, 1, 2]
    assert editor.notice.description == "2 field(s) appended."
    assert editor.suggesting is False


def test_suggestion_failure_leaves_draft_unchanged(store):
    editor = SchemaEditor(store, 42, suggester=BrokenSuggester())
    editor.add_field()
    before = [field.model_dump() for field in editor.fields]

    assert editor.suggest_fields(JobContext()) == 0
    assert [field.model_dump() for field in editor.fields] == before
    assert editor.notice.level == "info"
    assert editor.suggesting is False


def test_empty_suggestions_show_notice(store):
    editor = SchemaEditor(store, 42, suggester=StaticSuggester([]))
    assert editor.suggest_fields(JobContext()) == 0
    assert editor.notice.title == "No suggestions"
    assert editor.fields == []


def test_editor_without_suggester(store):
    editor = SchemaEditor(store, 42)
    assert editor.suggest_fields(JobContext()) == 0
    assert editor.notice.level == "info"


# --- end to end on the real store ---

def test_editor_round_trip_against_database(db_session):
    from app.models.job import JobPosting
    from app.services.field_schema_store import FieldSchemaStore

    db_session.add(JobPosting(id=42, title="Data Analyst"))
    db_session.commit()
    store = FieldSchemaStore(db_session)

    editor = SchemaEditor(store, 42)
    assert editor.load() == []
    editor.add_field()
    editor.add_field()
    editor.update_field(0, label="Years of experience", type=FieldType.NUMBER, required=True)
    editor.update_field(1, label="Preferred start date", type=FieldType.DATE, required=False)

    assert editor.save().ok

    loaded = store.load_schema(42)
    assert [f.name for f in loaded] == ["years_of_experience", "preferred_start_date"]
    assert [f.order for f in loaded] == [0, 1]
    assert [f.type for f in loaded] == ["number", "date"]
    assert [f.required for f in loaded] == [True, False]
