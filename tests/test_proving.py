"""Tests for proving methods: the three-batch rule and its endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from taquero.core.metrics import metrics
from taquero.models.proving import ProvingMethod
from taquero.services.proving_rules import (
    PROVEN_BATCH_COUNT,
    MethodStatus,
    accumulate,
    reset,
    status_for,
)
from taquero.services.proving_service import ProvingService


API = "/api/v1"


def new_cooking_method(method_id: str = "m1") -> dict:
    return {
        "methodId": method_id,
        "itemDescription": "Carnitas",
        "cookingMethod": "Slow braise 3h",
        "createdBy": "Ana",
        "createdAt": "2025-03-01T09:00:00Z",
    }


def cooking_batch(method_id: str, number: int, **extra) -> dict:
    batch = {
        "methodId": method_id,
        "batchNumber": number,
        "completedBy": "Luis",
        "date": "2025-03-0%d" % number,
        "temperature": 75,
        "timeAtTemp": "2 min",
    }
    batch.update(extra)
    return batch


class TestProvingRules:
    """Tests for the batch accumulator."""

    def test_status_below_threshold(self):
        for count in range(PROVEN_BATCH_COUNT):
            assert status_for(count) == MethodStatus.IN_PROGRESS

    def test_status_at_threshold(self):
        assert status_for(3) == MethodStatus.PROVEN

    def test_proven_never_rolls_back(self):
        assert status_for(1, "proven") == MethodStatus.PROVEN

    def test_accumulate_third_batch_proves(self):
        method = {"id": "m1", "status": "in-progress", "batches": [], "provenAt": None}
        for n in (1, 2):
            method = accumulate(method, {"batchNumber": n})
            assert method["status"] == "in-progress"
            assert method["provenAt"] is None

        method = accumulate(method, {"batchNumber": 3}, now="2025-03-03T10:00:00Z")
        assert method["status"] == "proven"
        assert method["provenAt"] == "2025-03-03T10:00:00Z"

    def test_accumulate_keeps_first_proven_at(self):
        method = {"status": "proven", "batches": [{}, {}, {}], "provenAt": "2025-03-03T10:00:00Z"}
        updated = accumulate(method, {"batchNumber": 4}, now="2025-04-01T00:00:00Z")
        assert updated["status"] == "proven"
        assert updated["provenAt"] == "2025-03-03T10:00:00Z"
        assert len(updated["batches"]) == 4

    def test_accumulate_does_not_mutate_input(self):
        method = {"status": "in-progress", "batches": []}
        accumulate(method, {"batchNumber": 1})
        assert method["batches"] == []

    def test_reset_clears_everything(self):
        method = {"id": "m1", "status": "proven", "batches": [{}, {}, {}], "provenAt": "x"}
        cleared = reset(method)
        assert cleared == {"id": "m1", "status": "in-progress", "batches": [], "provenAt": None}


class TestProvingEndpoints:
    """Tests for the proving API."""

    def test_create_method_without_batch(self, client: TestClient):
        response = client.post(f"{API}/proving/cooking", json=new_cooking_method())
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Method saved successfully"
        assert body["status"] == "in-progress"
        assert body["batchCount"] == 0

        methods = client.get(f"{API}/proving/cooking").json()["data"]
        assert len(methods) == 1
        assert methods[0]["id"] == "m1"
        assert methods[0]["itemDescription"] == "Carnitas"
        assert methods[0]["batches"] == []

    def test_third_batch_proves_method(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        for n in (1, 2):
            body = client.post(f"{API}/proving/cooking", json=cooking_batch("m1", n)).json()
            assert body["status"] == "in-progress"
            assert body["batchCount"] == n

        body = client.post(f"{API}/proving/cooking", json=cooking_batch("m1", 3)).json()
        assert body["message"] == "Batch added successfully"
        assert body["status"] == "proven"
        assert body["batchCount"] == 3

        method = client.get(f"{API}/proving/cooking/m1").json()["data"]
        assert method["status"] == "proven"
        assert method["provenAt"] is not None
        assert [b["batchNumber"] for b in method["batches"]] == [1, 2, 3]
        assert method["batches"][0]["temperature"] == 75

    def test_fourth_batch_stays_proven(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        for n in (1, 2, 3):
            client.post(f"{API}/proving/cooking", json=cooking_batch("m1", n))
        proven_at = client.get(f"{API}/proving/cooking/m1").json()["data"]["provenAt"]

        body = client.post(f"{API}/proving/cooking", json=cooking_batch("m1", 4)).json()
        assert body["status"] == "proven"
        assert body["batchCount"] == 4
        assert client.get(f"{API}/proving/cooking/m1").json()["data"]["provenAt"] == proven_at

    def test_submitted_status_is_ignored(self, client: TestClient):
        """Test a client claiming proven on the first batch is overruled by the count."""
        payload = {**new_cooking_method(), **cooking_batch("m1", 1), "status": "proven"}
        body = client.post(f"{API}/proving/cooking", json=payload).json()
        assert body["status"] == "in-progress"
        assert body["batchCount"] == 1

    def test_new_method_missing_fields(self, client: TestClient):
        response = client.post(f"{API}/proving/cooling", json={"methodId": "c1", "createdBy": "Ana"})
        assert response.status_code == 422
        assert response.json()["fields"] == ["foodItem", "coolingMethod"]

    def test_batch_requires_completed_by(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        response = client.post(f"{API}/proving/cooking", json=cooking_batch("m1", 1, completedBy=""))
        assert response.status_code == 422
        assert response.json()["fields"] == ["completedBy"]

    def test_reset_returns_to_in_progress(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        for n in (1, 2, 3):
            client.post(f"{API}/proving/cooking", json=cooking_batch("m1", n))

        response = client.post(f"{API}/proving/cooking/m1/reset")
        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"

        method = client.get(f"{API}/proving/cooking/m1").json()["data"]
        assert method["status"] == "in-progress"
        assert method["batches"] == []
        assert method["provenAt"] is None

    def test_reset_unknown_method_is_404(self, client: TestClient):
        response = client.post(f"{API}/proving/reheating/ghost/reset")
        assert response.status_code == 404
        assert response.json()["error"] == "Method not found"

    def test_delete_in_progress_method(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        client.post(f"{API}/proving/cooking", json=cooking_batch("m1", 1))
        response = client.post(f"{API}/proving/cooking/m1/delete")
        assert response.status_code == 200
        assert client.get(f"{API}/proving/cooking").json()["count"] == 0

    def test_delete_proven_method_is_409(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        for n in (1, 2, 3):
            client.post(f"{API}/proving/cooking", json=cooking_batch("m1", n))
        response = client.post(f"{API}/proving/cooking/m1/delete")
        assert response.status_code == 409
        assert client.get(f"{API}/proving/cooking").json()["count"] == 1

    def test_kinds_are_separate(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method("shared"))
        assert client.get(f"{API}/proving/reheating").json()["count"] == 0

    @pytest.mark.parametrize("kind", ["cooking", "cooling", "reheating"])
    def test_known_kinds_readable(self, client: TestClient, kind: str):
        response = client.get(f"{API}/proving/{kind}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": [], "count": 0}

    def test_unknown_kind_is_404(self, client: TestClient):
        assert client.get(f"{API}/proving/freezing").status_code == 404

    def test_resubmitting_same_details_is_unchanged(self, client: TestClient):
        """Test a method-only submission that changes nothing is not counted as an update."""
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        updated_before = metrics.sheet_writes.get(("proving-cooking", "updated"), 0)

        body = client.post(f"{API}/proving/cooking", json=new_cooking_method()).json()
        assert body["message"] == "Method unchanged"
        assert body["outcome"] == "unchanged"
        assert metrics.sheet_writes.get(("proving-cooking", "updated"), 0) == updated_before
        assert client.get(f"{API}/proving/cooking/m1").json()["data"]["version"] == 1

    def test_resubmitting_new_details_updates_method(self, client: TestClient):
        client.post(f"{API}/proving/cooking", json=new_cooking_method())
        client.post(f"{API}/proving/cooking", json=cooking_batch("m1", 1))

        payload = {**new_cooking_method(), "cookingMethod": "Pressure cook 40 min"}
        body = client.post(f"{API}/proving/cooking", json=payload).json()
        assert body["message"] == "Method updated successfully"
        assert body["outcome"] == "updated"

        method = client.get(f"{API}/proving/cooking/m1").json()["data"]
        assert method["cookingMethod"] == "Pressure cook 40 min"
        assert method["itemDescription"] == "Carnitas"
        assert len(method["batches"]) == 1
        assert method["version"] == 3


class TestProvingStoreFailures:
    """Tests for failures inside the method store itself."""

    def test_read_failure_envelope(self, client: TestClient, monkeypatch):
        def broken(self, kind):
            raise RuntimeError("sheet unavailable")

        monkeypatch.setattr(ProvingService, "list_methods", broken)
        response = client.get(f"{API}/proving/cooling")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "sheet unavailable"}

    def test_concurrent_create_of_same_method_is_409(self, client: TestClient, db_session: Session, monkeypatch):
        db_session.add(ProvingMethod(kind="cooking", method_id="m1", status="in-progress", details={}))
        db_session.commit()
        # The lookup runs before the other writer's method is visible
        monkeypatch.setattr(ProvingService, "_find", lambda self, kind, method_id: None)

        response = client.post(f"{API}/proving/cooking", json=new_cooking_method())
        assert response.status_code == 409
        assert response.json()["success"] is False
        assert db_session.query(ProvingMethod).filter(ProvingMethod.method_id == "m1").count() == 1
