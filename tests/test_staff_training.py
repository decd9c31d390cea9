"""Tests for the staff training register: the action endpoint and the client store."""

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from taquero.client.staff_training_store import StaffTrainingStore
from taquero.client.storage import MemoryBucketStorage
from taquero.client.transport import HttpxSheetTransport, WriteStatus
from taquero.models.staff_training import StaffMember, TrainingRecord


API = "/api/v1"
URL = "http://sheets.test/api/v1/staff-training"


def staff_member(staff_id: str = "s1", **extra) -> dict:
    member = {
        "id": staff_id,
        "name": "Rosa Delgado",
        "initials": "RD",
        "position": "Line cook",
        "email": "rosa@example.com",
        "createdAt": "2025-03-01T09:00:00Z",
    }
    member.update(extra)
    return member


def training(record_id: str = "t1", staff_id: str = "s1", **extra) -> dict:
    record = {
        "id": record_id,
        "staffId": staff_id,
        "topic": "Allergen awareness",
        "trainerInitials": "AM",
        "date": "2025-03-02",
    }
    record.update(extra)
    return record


def post_action(client: TestClient, action: str, data):
    return client.post(f"{API}/staff-training", json={"action": action, "data": data})


class TestStaffEndpoints:
    """Tests for staff member actions."""

    def test_add_then_read(self, client: TestClient):
        response = post_action(client, "addStaff", staff_member())
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Staff member saved successfully"
        assert body["outcome"] == "created"

        body = client.get(f"{API}/staff-training").json()
        assert body["count"] == 1
        member = body["data"][0]
        assert member["id"] == "s1"
        assert member["initials"] == "RD"
        assert member["phone"] is None
        assert member["createdAt"] == "2025-03-01T09:00:00Z"
        assert member["trainingRecords"] == []
        assert member["version"] == 1

    def test_staff_listed_in_order_added(self, client: TestClient):
        for staff_id in ("s2", "s1", "s3"):
            post_action(client, "addStaff", staff_member(staff_id))
        ids = [m["id"] for m in client.get(f"{API}/staff-training").json()["data"]]
        assert ids == ["s2", "s1", "s3"]

    def test_re_adding_same_id_overwrites(self, client: TestClient, db_session: Session):
        post_action(client, "addStaff", staff_member())
        response = post_action(client, "addStaff", staff_member(position="Head chef"))
        assert response.json()["outcome"] == "updated"
        assert db_session.query(StaffMember).count() == 1
        assert client.get(f"{API}/staff-training/s1").json()["data"]["position"] == "Head chef"

    def test_add_missing_fields(self, client: TestClient, db_session: Session):
        response = post_action(client, "addStaff", {"id": "s1", "name": "Rosa"})
        assert response.status_code == 422
        assert response.json()["fields"] == ["initials", "position"]
        assert db_session.query(StaffMember).count() == 0

    def test_update_merges_details(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        response = post_action(client, "updateStaff", {"id": "s1", "phone": "555-0101", "version": 1})
        assert response.status_code == 200
        assert response.json()["message"] == "Staff member updated successfully"

        member = client.get(f"{API}/staff-training/s1").json()["data"]
        assert member["phone"] == "555-0101"
        assert member["name"] == "Rosa Delgado"
        assert member["version"] == 2

    def test_update_with_stale_version_conflicts(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        post_action(client, "updateStaff", {"id": "s1", "phone": "1", "version": 1})
        response = post_action(client, "updateStaff", {"id": "s1", "phone": "2", "version": 1})
        assert response.status_code == 409
        assert client.get(f"{API}/staff-training/s1").json()["data"]["phone"] == "1"

    def test_update_cannot_blank_required_field(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        response = post_action(client, "updateStaff", {"id": "s1", "name": "  "})
        assert response.status_code == 422
        assert response.json()["fields"] == ["name"]

    def test_update_unknown_staff_is_404(self, client: TestClient):
        response = post_action(client, "updateStaff", {"id": "ghost", "phone": "1"})
        assert response.status_code == 404
        assert response.json()["error"] == "Staff member not found"

    def test_delete_removes_training_too(self, client: TestClient, db_session: Session):
        post_action(client, "addStaff", staff_member())
        post_action(client, "addTraining", training())
        response = post_action(client, "deleteStaff", {"id": "s1"})
        assert response.status_code == 200
        assert client.get(f"{API}/staff-training").json()["count"] == 0
        assert db_session.query(TrainingRecord).count() == 0

    def test_get_unknown_staff_is_404(self, client: TestClient):
        assert client.get(f"{API}/staff-training/ghost").status_code == 404


class TestTrainingEndpoints:
    """Tests for training record actions."""

    def test_training_nested_newest_first(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        post_action(client, "addTraining", training("t1"))
        response = post_action(client, "addTraining", training("t2", topic="Cooling logs", notes="Refresher"))
        assert response.json()["message"] == "Training record saved successfully"

        records = client.get(f"{API}/staff-training/s1").json()["data"]["trainingRecords"]
        assert [r["id"] for r in records] == ["t2", "t1"]
        assert records[0]["staffId"] == "s1"
        assert records[0]["notes"] == "Refresher"
        assert records[1]["notes"] is None

    def test_training_requires_existing_staff(self, client: TestClient):
        response = post_action(client, "addTraining", training(staff_id="ghost"))
        assert response.status_code == 404
        assert response.json()["error"] == "Staff member not found"

    def test_training_missing_fields(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        response = post_action(client, "addTraining", {"id": "t1", "staffId": "s1"})
        assert response.status_code == 422
        assert response.json()["fields"] == ["topic", "trainerInitials", "date"]

    def test_update_training(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        post_action(client, "addTraining", training())
        response = post_action(client, "updateTraining", {"id": "t1", "staffId": "s1", "notes": "Passed quiz"})
        assert response.status_code == 200

        record = client.get(f"{API}/staff-training/s1").json()["data"]["trainingRecords"][0]
        assert record["notes"] == "Passed quiz"
        assert record["topic"] == "Allergen awareness"

    def test_update_unknown_training_is_404(self, client: TestClient):
        post_action(client, "addStaff", staff_member())
        response = post_action(client, "updateTraining", {"id": "nope", "staffId": "s1", "notes": "x"})
        assert response.status_code == 404
        assert response.json()["error"] == "Training record not found"

    def test_delete_training(self, client: TestClient, db_session: Session):
        post_action(client, "addStaff", staff_member())
        post_action(client, "addTraining", training("t1"))
        post_action(client, "addTraining", training("t2"))

        response = post_action(client, "deleteTraining", {"id": "t1", "staffId": "s1"})
        assert response.json()["message"] == "Training record deleted successfully"
        records = client.get(f"{API}/staff-training/s1").json()["data"]["trainingRecords"]
        assert [r["id"] for r in records] == ["t2"]
        assert db_session.query(TrainingRecord).count() == 1


class TestActionEnvelope:
    """Tests for the action/data request shape."""

    def test_missing_action(self, client: TestClient):
        response = client.post(f"{API}/staff-training", json={"data": staff_member()})
        assert response.status_code == 422
        assert response.json()["fields"] == ["action"]

    def test_unknown_action(self, client: TestClient):
        response = post_action(client, "promoteStaff", {"id": "s1"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Unknown action: promoteStaff"}

    def test_data_as_json_string(self, client: TestClient):
        response = post_action(client, "addStaff", json.dumps(staff_member()))
        assert response.status_code == 200
        assert client.get(f"{API}/staff-training").json()["count"] == 1

    def test_unreadable_data(self, client: TestClient):
        response = post_action(client, "addStaff", "{not json")
        assert response.status_code == 422
        assert response.json()["fields"] == ["data"]

    def test_read_failure_envelope(self, client: TestClient, monkeypatch):
        from taquero.services.staff_training_service import StaffTrainingService

        def broken(self):
            raise RuntimeError("register unavailable")

        monkeypatch.setattr(StaffTrainingService, "list_staff", broken)
        response = client.get(f"{API}/staff-training")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "register unavailable"}


class TestStaffTrainingStore:
    """Tests for the client-side register with a scripted transport."""

    def make_store(self, fake_transport, bucket_storage, url=URL) -> StaffTrainingStore:
        return StaffTrainingStore(transport=fake_transport, storage=bucket_storage, url=url)

    @pytest.mark.asyncio
    async def test_add_staff_appends_and_posts_action(self, fake_transport, bucket_storage):
        store = self.make_store(fake_transport, bucket_storage)
        await store.add_staff_member({"id": "s1", "name": "Rosa", "initials": "RD", "position": "Cook"})
        await store.add_staff_member({"name": "Luis", "initials": "LM", "position": "Porter"})

        members = store.get_staff_members()
        assert [m["name"] for m in members] == ["Rosa", "Luis"]
        assert members[1]["id"]
        assert members[0]["trainingRecords"] == []
        assert members[0]["createdAt"]

        method, url, payload = fake_transport.calls[0]
        assert (method, url) == ("POST", URL)
        assert payload["action"] == "addStaff"
        assert payload["data"]["id"] == "s1"

    @pytest.mark.asyncio
    async def test_add_known_staff_keeps_one_entry(self, fake_transport, bucket_storage):
        store = self.make_store(fake_transport, bucket_storage)
        await store.add_staff_member({"id": "s1", "name": "Rosa", "initials": "RD", "position": "Cook"})
        await store.add_training_record("s1", {"id": "t1", "topic": "HACCP", "trainerInitials": "AM", "date": "2025-03-02"})
        await store.add_staff_member({"id": "s1", "name": "Rosa", "initials": "RD", "position": "Head chef"})

        assert len(store.staff_members) == 1
        member = store.get_staff_member("s1")
        assert member["position"] == "Head chef"
        assert [r["id"] for r in member["trainingRecords"]] == ["t1"]

    @pytest.mark.asyncio
    async def test_training_added_newest_first(self, fake_transport, bucket_storage):
        store = self.make_store(fake_transport, bucket_storage)
        await store.add_staff_member({"id": "s1", "name": "Rosa", "initials": "RD", "position": "Cook"})
        await store.add_training_record("s1", {"id": "t1", "topic": "HACCP", "trainerInitials": "AM", "date": "2025-03-02"})
        await store.add_training_record("s1", {"id": "t2", "topic": "Cooling", "trainerInitials": "AM", "date": "2025-03-03"})

        records = store.get_staff_member("s1")["trainingRecords"]
        assert [r["id"] for r in records] == ["t2", "t1"]
        assert records[0]["staffId"] == "s1"
        assert fake_transport.calls[-1][2] == {
            "action": "addTraining",
            "data": {"id": "t2", "staffId": "s1", "topic": "Cooling", "trainerInitials": "AM", "date": "2025-03-03"},
        }

    @pytest.mark.asyncio
    async def test_training_for_unknown_staff_makes_no_call(self, fake_transport, bucket_storage):
        store = self.make_store(fake_transport, bucket_storage)
        result = await store.add_training_record("ghost", {"topic": "HACCP"})
        assert result.status == WriteStatus.NOT_FOUND
        assert fake_transport.calls == []

    @pytest.mark.asyncio
    async def test_update_and_delete_training(self, fake_transport, bucket_storage):
        store = self.make_store(fake_transport, bucket_storage)
        await store.add_staff_member({"id": "s1", "name": "Rosa", "initials": "RD", "position": "Cook"})
        await store.add_training_record("s1", {"id": "t1", "topic": "HACCP", "trainerInitials": "AM", "date": "2025-03-02"})

        assert (await store.update_training_record("s1", "t1", {"notes": "Passed", "staffId": "other"})).ok
        record = store.get_staff_member("s1")["trainingRecords"][0]
        assert record["notes"] == "Passed"
        assert record["staffId"] == "s1"
        assert fake_transport.calls[-1][2]["action"] == "updateTraining"

        assert (await store.delete_training_record("s1", "t1")).ok
        assert store.get_staff_member("s1")["trainingRecords"] == []
        assert fake_transport.calls[-1][2] == {"action": "deleteTraining", "data": {"id": "t1", "staffId": "s1"}}

        result = await store.delete_training_record("s1", "t1")
        assert result.status == WriteStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_and_delete_staff(self, fake_transport, bucket_storage):
        bucket_storage.save(
            "taquero-staff-training",
            {"staffMembers": [{"id": "s1", "name": "Rosa", "initials": "RD", "position": "Cook",
                               "trainingRecords": [], "version": 1}]},
        )
        store = self.make_store(fake_transport, bucket_storage)

        assert (await store.update_staff_member("s1", {"phone": "555-0101"})).ok
        assert fake_transport.calls[-1][2]["data"]["version"] == 1
        assert store.get_staff_member("s1")["version"] == 2

        assert (await store.delete_staff_member("s1")).ok
        assert store.get_staff_members() == []
        assert fake_transport.calls[-1][2] == {"action": "deleteStaff", "data": {"id": "s1"}}

    @pytest.mark.asyncio
    async def test_failed_fetch_keeps_cached_staff(self, fake_transport, bucket_storage):
        fake_transport.get_responses.append(
            {"success": True, "data": [{"id": "s1", "name": "Rosa", "trainingRecords": []}], "count": 1}
        )
        store = self.make_store(fake_transport, bucket_storage)
        assert await store.fetch() is True

        fake_transport.fail_next_get("offline")
        assert await store.fetch() is False
        assert [m["id"] for m in store.get_staff_members()] == ["s1"]
        assert store.fetch_error == "offline"
        assert bucket_storage.load("taquero-staff-training")["staffMembers"][0]["id"] == "s1"

    @pytest.mark.asyncio
    async def test_round_trip_against_service(self, asgi_client):
        store = StaffTrainingStore(
            transport=HttpxSheetTransport(client=asgi_client),
            storage=MemoryBucketStorage(),
            url="http://test/api/v1/staff-training",
        )
        assert (await store.add_staff_member({"id": "s1", "name": "Rosa", "initials": "RD", "position": "Cook"})).ok
        assert (await store.add_training_record(
            "s1", {"id": "t1", "topic": "HACCP", "trainerInitials": "AM", "date": "2025-03-02"}
        )).ok

        assert await store.fetch() is True
        member = store.get_staff_member("s1")
        assert member["version"] == 1
        assert [r["id"] for r in member["trainingRecords"]] == ["t1"]

        assert (await store.update_staff_member("s1", {"position": "Head chef"})).ok
        assert (await store.update_staff_member("s1", {"phone": "555-0101"})).ok

        await store.fetch()
        member = store.get_staff_member("s1")
        assert member["position"] == "Head chef"
        assert member["phone"] == "555-0101"
        assert member["version"] == 3
