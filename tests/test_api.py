"""
Tests for the FastAPI app — validate, check, correct, and health endpoints.
"""

import json

import pytest
from fastapi.testclient import TestClient

from sopgate.api.dependencies import get_audit_logger
from sopgate.audit.logger import AuditLogger
from sopgate.config import settings
from sopgate.main import app
from sopgate.models.validation_models import AuditEntry

client = TestClient(app)

SERVICE_PATH = "src/users/users.service.ts"


@pytest.fixture(autouse=True)
def audit_log(tmp_path):
    """Route audit entries to a per-test file."""
    audit = AuditLogger(str(tmp_path / "audit.jsonl"))
    app.dependency_overrides[get_audit_logger] = lambda: audit
    yield audit
    app.dependency_overrides.pop(get_audit_logger, None)


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "1.0.0"
    assert data["categories"] == 17
    assert data["rules"] > 60


def test_validate_empty_files():
    response = client.post("/validate", json={"files": []})
    assert response.status_code == 400


def test_validate_service(service_with_violations, audit_log):
    response = client.post(
        "/validate",
        json={"files": [{"path": SERVICE_PATH, "content": service_with_violations}]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["passed"] is True
    assert data["files_analyzed"] == 1
    assert data["blockers"] == 0
    assert data["warnings"] == 1
    assert len(data["results"]) == 12

    [entry] = audit_log.read_recent()
    assert entry["action"] == "validate"
    assert entry["run_id"] == data["run_id"]
    assert entry["passed"] is True


def test_validate_strict_profile(service_with_violations):
    response = client.post(
        "/validate",
        json={
            "files": [{"path": SERVICE_PATH, "content": service_with_violations}],
            "profile": "strict",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["passed"] is False
    assert data["reason"] == "1 warnings (max: 0)"


def test_validate_selected_rule(service_with_violations):
    response = client.post(
        "/validate",
        json={
            "files": [{"path": SERVICE_PATH, "content": service_with_violations}],
            "rules": ["INV-LOGGER"],
        },
    )
    data = response.json()
    assert data["categories"] == ["exception-types"]
    [result] = data["results"]
    assert [v["rule_id"] for v in result["violations"]] == ["INV-LOGGER"]


@pytest.mark.parametrize(
    "selection",
    [
        {"categories": ["not-a-category"]},
        {"sops": ["99-unknown"]},
        {"rules": ["INV-NOPE"]},
        {"profile": "lenient"},
    ],
)
def test_validate_rejects_unknown_selection(selection):
    body = {"files": [{"path": "a.ts", "content": "const a = 1;"}], **selection}
    response = client.post("/validate", json=body)
    assert response.status_code == 400


def test_validate_markdown(service_with_violations):
    response = client.post(
        "/validate?format=markdown",
        json={"files": [{"path": SERVICE_PATH, "content": service_with_violations}]},
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    assert response.text.startswith("## SOP Validation: Passed")


def test_validate_missing_content_is_422():
    response = client.post("/validate", json={"files": [{"path": "a.ts"}]})
    assert response.status_code == 422


def test_check_controller():
    content = "@Controller('teams')\nexport class TeamsController {\n  @Delete(':id')\n  remove() {}\n}"
    response = client.post("/check", json={"path": "src/teams/teams.controller.ts", "content": content})
    assert response.status_code == 200
    data = response.json()
    assert data["passed"] is False
    assert [b["rule_id"] for b in data["blockers"]] == ["INV-API-GUARD"]
    assert data["categories"] == ["api-design", "supabase-auth", "code-quality"]


def test_correct_service(service_with_violations, audit_log):
    response = client.post(
        "/correct",
        json={"files": [{"path": SERVICE_PATH, "content": service_with_violations}]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "correction_complete"
    [result] = data["results"]
    assert result["success"] is True
    assert "NotFoundException" in result["final_content"]
    assert data["suggestions"] == []

    [entry] = audit_log.read_recent()
    assert entry["action"] == "correct"
    assert entry["fixes_applied"] == 3


def test_correct_reports_skipped_files(monkeypatch):
    monkeypatch.setattr(settings, "max_file_size_bytes", 200)
    files = [
        {"path": "src/big.service.ts", "content": "// " + "x" * 500},
        {"path": "src/ok.service.ts", "content": "export const ok = 1;\n"},
    ]
    response = client.post("/correct", json={"files": files})
    assert response.status_code == 200
    data = response.json()
    assert [r["filename"] for r in data["results"]] == ["src/ok.service.ts"]
    assert data["load_diagnostics"] == [
        {"file": "src/big.service.ts", "error": "File exceeds 200 bytes"}
    ]


def test_correct_rejects_unknown_category():
    response = client.post(
        "/correct",
        json={"files": [{"path": "a.ts", "content": ""}], "categories": ["nope"]},
    )
    assert response.status_code == 400


def test_correct_empty_files():
    response = client.post("/correct", json={"files": []})
    assert response.status_code == 400


# ── Audit log ──


def test_audit_log_round_trip(tmp_path):
    audit = AuditLogger(str(tmp_path / "trail.jsonl"))
    assert audit.read_recent() == []
    for i in range(3):
        audit.log(AuditEntry(run_id=f"r{i}", action="check", files_analyzed=1, passed=True))

    entries = audit.read_recent(count=2)
    assert [e["run_id"] for e in entries] == ["r1", "r2"]
    assert "timestamp" in entries[0]


def test_audit_log_skips_malformed_lines(tmp_path):
    path = tmp_path / "trail.jsonl"
    path.write_text("not json\n" + json.dumps({"run_id": "ok"}) + "\n", encoding="utf-8")
    assert AuditLogger(str(path)).read_recent() == [{"run_id": "ok"}]


def test_audit_log_filters_by_action(tmp_path):
    audit = AuditLogger(str(tmp_path / "trail.jsonl"))
    audit.log(AuditEntry(run_id="v1", action="validate", files_analyzed=2, passed=False))
    audit.log(AuditEntry(run_id="c1", action="correct", files_analyzed=1, passed=True, fixes_applied=3))
    audit.log(AuditEntry(run_id="v2", action="validate", files_analyzed=1, passed=True))

    assert [e["run_id"] for e in audit.read_recent(action="validate")] == ["v1", "v2"]
    [entry] = audit.read_recent(action="correct")
    assert entry["fixes_applied"] == 3
