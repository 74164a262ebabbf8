from app.main import app
from app.schemas.fields import SuggestedField
from app.services.field_suggestions import get_field_suggester


class FixedSuggester:
    def __init__(self, fields):
        self.fields = fields

    def suggest(self, context):
        return self.fields


class DownSuggester:
    def suggest(self, context):
        raise RuntimeError("model unavailable")


def _scenario_draft():
    return {"fields": [
        {"label": "Years of experience", "type": "number", "required": True},
        {"label": "Preferred start date", "type": "date"},
    ]}


def test_get_fields_empty(client, job):
    response = client.get(f"/api/jobs/{job.id}/fields")
    assert response.status_code == 200
    assert response.json() == {"job_posting_id": job.id, "fields": []}


def test_unknown_job_is_404(client):
    for response in (
        client.get("/api/jobs/999/fields"),
        client.put("/api/jobs/999/fields", json=_scenario_draft()),
        client.get("/api/jobs/999/form"),
    ):
        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["errors"][0]["msg"] == "Job not found"


def test_save_derives_names_from_labels(client, job):
    response = client.put(f"/api/jobs/{job.id}/fields", json=_scenario_draft())
    assert response.status_code == 200
    body = response.json()
    assert body["notice"] == {
        "level": "success",
        "title": "Success",
        "description": "Custom fields saved successfully",
    }
    assert [(f["name"], f["type"], f["order"]) for f in body["fields"]] == [
        ("years_of_experience", "number", 0),
        ("preferred_start_date", "date", 1),
    ]

    stored = client.get(f"/api/jobs/{job.id}/fields").json()["fields"]
    assert [f["name"] for f in stored] == ["years_of_experience", "preferred_start_date"]
    assert stored[0]["required"] is True


def test_save_keeps_explicit_names_and_choice_options(client, job):
    draft = {"fields": [
        {"name": "stack", "label": "Main stack", "type": "select", "options": ["Python", " ", "Go"]},
        {"name": "stack_notes", "label": "Anything else?", "type": "textarea", "options": ["stale"]},
    ]}
    fields = client.put(f"/api/jobs/{job.id}/fields", json=draft).json()["fields"]

    assert fields[0]["name"] == "stack"
    assert fields[0]["options"] == ["Python", "Go"]
    assert "options" not in fields[1]


def test_invalid_draft_returns_field_scoped_errors(client, job):
    client.put(f"/api/jobs/{job.id}/fields", json=_scenario_draft())

    draft = {"fields": [
        {"label": "", "type": "text"},
        {"label": "Work mode", "type": "radio", "options": []},
        {"name": "city", "label": "City"},
        {"name": "city", "label": "Town"},
    ]}
    response = client.put(f"/api/jobs/{job.id}/fields", json=draft)
    assert response.status_code == 422

    errors = response.json()["errors"]
    assert [e["index"] for e in errors] == [0, 1, 3]
    assert all(e["code"] == "SCHEMA_VALIDATION_ERROR" for e in errors)
    assert errors[1]["label"] == "Work mode"
    assert errors[2]["field"] == "city"

    # Nothing was replaced
    stored = client.get(f"/api/jobs/{job.id}/fields").json()["fields"]
    assert [f["name"] for f in stored] == ["years_of_experience", "preferred_start_date"]


def test_saving_empty_draft_clears_fields(client, job):
    client.put(f"/api/jobs/{job.id}/fields", json=_scenario_draft())
    response = client.put(f"/api/jobs/{job.id}/fields", json={"fields": []})
    assert response.status_code == 200
    assert client.get(f"/api/jobs/{job.id}/fields").json()["fields"] == []


def test_suggest_appends_to_draft_without_saving(client, job):
    app.dependency_overrides[get_field_suggester] = lambda: FixedSuggester([
        SuggestedField(label="Years of experience", type="number", required=True),
        SuggestedField(label="Work mode", type="radio", options=["Remote", "Hybrid"]),
    ])
    draft = {"fields": [{"name": "years_of_experience", "label": "Years", "type": "number"}]}

    response = client.post(f"/api/jobs/{job.id}/fields/suggest", json=draft)
    assert response.status_code == 200
    body = response.json()

    assert body["added"] == 2
    assert body["notice"]["title"] == "AI suggestions added"
    assert [(f["name"], f["order"]) for f in body["fields"]] == [
        ("years_of_experience", 0),
        ("years_of_experience_1", 1),
        ("work_mode", 2),
    ]
    assert body["fields"][2]["options"] == ["Remote", "Hybrid"]
    assert client.get(f"/api/jobs/{job.id}/fields").json()["fields"] == []


def test_suggest_failure_keeps_draft(client, job):
    app.dependency_overrides[get_field_suggester] = lambda: DownSuggester()
    draft = {"fields": [{"name": "city", "label": "City"}]}

    body = client.post(f"/api/jobs/{job.id}/fields/suggest", json=draft).json()
    assert body["added"] == 0
    assert body["notice"]["level"] == "info"
    assert [f["name"] for f in body["fields"]] == ["city"]


def test_suggest_uses_rule_based_suggester_without_api_key(client, job):
    body = client.post(f"/api/jobs/{job.id}/fields/suggest", json={"fields": []}).json()
    labels = [f["label"] for f in body["fields"]]
    assert "Years of Relevant Experience" in labels
    assert "Portfolio or GitHub URL" in labels
    assert "Work Preference" in labels


def test_end_to_end_scenario(client, job):
    """Recruiter defines two questions; a candidate must answer the required number."""
    client.put(f"/api/jobs/{job.id}/fields", json=_scenario_draft())

    form = client.get(f"/api/jobs/{job.id}/form").json()
    assert [(w["name"], w["widget"], w["input_type"]) for w in form["widgets"]] == [
        ("years_of_experience", "input", "number"),
        ("preferred_start_date", "input", "date"),
    ]

    missing = client.post(f"/api/jobs/{job.id}/form/validate", json={"answers": {}})
    assert missing.status_code == 422
    assert [e["label"] for e in missing.json()["errors"]] == ["Years of experience"]
    assert missing.json()["errors"][0]["msg"] == "Years of experience is required"

    ok = client.post(f"/api/jobs/{job.id}/form/validate", json={"answers": {"years_of_experience": "5"}})
    assert ok.status_code == 200
    assert ok.json()["answers"] == {"years_of_experience": 5}
