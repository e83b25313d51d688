"""Integration tests for the HTTP endpoints."""

import io

import openpyxl
import pytest
from fastapi.testclient import TestClient

from schedule_engine.main import app


@pytest.fixture
def client():
    return TestClient(app)


def task_payload(task_id, start, end, predecessors=None, name=None):
    return {
        "id": task_id,
        "name": name or f"Task {task_id}",
        "start_date": start,
        "end_date": end,
        "predecessors": [
            {"predecessor_id": p[0], "type": p[1], "lag": p[2] if len(p) > 2 else 0}
            for p in (predecessors or [])
        ],
    }


@pytest.fixture
def snapshot():
    return [
        task_payload("P", "2025-06-01", "2025-06-15", name="Foundation"),
        task_payload("T", "2025-06-14", "2025-06-18", [("P", "FS"), ("GHOST", "SS")]),
        task_payload("U", "2025-06-01", "2025-06-02", [("T", "FS", 1)]),
    ]


class TestEngineEndpoints:
    """Test cases for the single-task endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_earliest_start(self, client, snapshot):
        response = client.post("/earliest-start", json={"task_id": "T", "tasks": snapshot})

        assert response.status_code == 200
        data = response.json()
        assert data["earliest_start"] == "2025-06-15"
        assert data["dangling_predecessors"] == ["GHOST"]

    def test_earliest_start_unconstrained(self, client, snapshot):
        response = client.post("/earliest-start", json={"task_id": "P", "tasks": snapshot})
        assert response.json()["earliest_start"] is None

    def test_auto_schedule(self, client, snapshot):
        response = client.post("/auto-schedule", json={"task_id": "T", "tasks": snapshot})

        assert response.status_code == 200
        assert response.json() == {"task_id": "T", "start_date": "2025-06-15", "end_date": "2025-06-19"}

    def test_validate(self, client, snapshot):
        response = client.post("/validate", json={"task_id": "T", "tasks": snapshot})

        data = response.json()
        assert data["is_valid"] is False
        assert data["violations"] == ["Task cannot start before Foundation finishes"]
        assert data["dangling_predecessors"] == ["GHOST"]

    def test_unknown_task_is_404(self, client, snapshot):
        response = client.post("/validate", json={"task_id": "NOPE", "tasks": snapshot})
        assert response.status_code == 404

    def test_reversed_dates_rejected(self, client):
        bad = [task_payload("T", "2025-06-20", "2025-06-18")]
        response = client.post("/validate", json={"task_id": "T", "tasks": bad})
        assert response.status_code == 422

    def test_huge_lag_is_not_a_server_error(self, client):
        tasks = [
            task_payload("P", "2025-06-01", "2025-06-15", name="Foundation"),
            task_payload("T", "2025-06-15", "2025-06-18", [("P", "FS", 5_000_000)]),
        ]

        response = client.post("/validate", json={"task_id": "T", "tasks": tasks})

        assert response.status_code == 200
        assert response.json()["violations"] == ["Task cannot start before Foundation finishes"]


class TestGraphEndpoints:
    """Test cases for the snapshot-wide endpoints."""

    def test_validate_all(self, client, snapshot):
        response = client.post("/validate-all", json={"tasks": snapshot})

        violations = response.json()["violations"]
        assert set(violations) == {"T", "U"}

    def test_cascade(self, client, snapshot):
        response = client.post("/cascade", json={"task_id": "P", "tasks": snapshot})

        assert response.status_code == 200
        updated = response.json()["updated_tasks"]
        assert [t["id"] for t in updated] == ["T", "U"]
        assert updated[1]["start_date"] == "2025-06-20"
        assert updated[1]["end_date"] == "2025-06-21"

    def test_cascade_cycle_is_409(self, client):
        tasks = [
            task_payload("A", "2025-01-01", "2025-01-02"),
            task_payload("B", "2025-01-01", "2025-01-02", [("A", "FS"), ("C", "FS")]),
            task_payload("C", "2025-01-01", "2025-01-02", [("B", "FS")]),
        ]
        response = client.post("/cascade", json={"task_id": "A", "tasks": tasks})

        assert response.status_code == 409
        assert "Dependency cycle" in response.json()["detail"]


class TestParseExcel:
    """Test cases for spreadsheet upload."""

    def test_parse_xlsx(self, client):
        wb = openpyxl.Workbook()
        wb.active.append(["Task", "Start", "End", "Predecessors"])
        wb.active.append(["Survey", "2025-01-01", "2025-01-03", None])
        wb.active.append(["Clearing", "2025-01-03", "2025-01-05", "1FS"])
        buf = io.BytesIO()
        wb.save(buf)

        response = client.post(
            "/parse-excel",
            files={"file": ("plan.xlsx", buf.getvalue(), "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
        )

        assert response.status_code == 200
        tasks = response.json()["tasks"]
        assert [t["name"] for t in tasks] == ["Survey", "Clearing"]
        assert tasks[1]["predecessors"][0]["predecessor_id"] == "1"

    def test_parse_csv(self, client):
        content = b"name,start,end\nSurvey,2025-01-01,2025-01-03\n"
        response = client.post("/parse-excel", files={"file": ("plan.csv", content, "text/csv")})
        assert response.status_code == 200
        assert response.json()["tasks"][0]["id"] == "1"

    def test_bad_extension(self, client):
        response = client.post("/parse-excel", files={"file": ("plan.txt", b"hello", "text/plain")})
        assert response.status_code == 400

    def test_bad_rows_are_400(self, client):
        content = b"name,start,end\nSurvey,2025-01-05,soon\n"
        response = client.post("/parse-excel", files={"file": ("plan.csv", content, "text/csv")})
        assert response.status_code == 400
        assert "Row 1" in response.json()["detail"]
