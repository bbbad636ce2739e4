import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from academic_records.database import object_id, translate_errors
from academic_records.errors import DependencyError, NotFoundError


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


def test_unknown_route_is_json(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert "message" in r.get_json()


def test_dependency_failure_hides_detail(client, services, admin, monkeypatch):
    def broken(actor):
        with translate_errors():
            raise ServerSelectionTimeoutError("mongo-host:27017 timed out")

    monkeypatch.setattr(services.dashboard, "stats", broken)
    r = client.get("/api/stats", headers=admin["headers"])
    assert r.status_code == 500
    assert r.get_json() == {"message": "Server error"}


def test_translate_errors_lets_duplicates_through():
    with pytest.raises(DuplicateKeyError):
        with translate_errors():
            raise DuplicateKeyError("E11000")

    with pytest.raises(DependencyError) as exc:
        with translate_errors():
            raise ServerSelectionTimeoutError("down")
    assert exc.value.detail == "down"


def test_object_id_rejects_garbage():
    with pytest.raises(NotFoundError, match="Student not found"):
        object_id("123", "Student")


def test_indexes_created(db):
    names = db.students.index_information()
    assert any(info.get("unique") and len(info["key"]) == 3 for info in names.values())
    assert any(info.get("unique") for name, info in db.accounts.index_information().items() if "email" in name)
