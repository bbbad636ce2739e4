import mongomock
import pytest

from academic_records.app import create_app

PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "JWT_SECRET": "test-secret",
            "MONGO_DB_NAME": "academic_records_test",
            "SMTP_HOST": "",
            "PAYMENT_SWEEP_HOURS": 0,
        },
        client_factory=mongomock.MongoClient,
    )
    yield app
    app.extensions["records_db"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["records"]


@pytest.fixture
def db(app):
    return app.extensions["records_db"]


def signin(client, login, password=PASSWORD):
    r = client.post("/api/signin", json={"email": login, "password": password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()


def bearer(client, login, password=PASSWORD):
    return {"Authorization": f"Bearer {signin(client, login, password)['accessToken']}"}


def make_account(client, headers, kind, email, **extra):
    body = {"firstName": "Test", "lastName": kind.title(), "email": email, "password": PASSWORD}
    body.update(extra)
    r = client.post(f"/api/{kind}/create", json=body, headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["user"]


def make_student(client, headers, user_name, roll, klass="9", section="A", name=None):
    r = client.post("/api/student/create", headers=headers, json={
        "name": name or user_name.title(),
        "userName": user_name,
        "password": PASSWORD,
        "roll": roll,
        "class": klass,
        "section": section,
    })
    assert r.status_code == 201, r.get_json()
    return r.get_json()["student"]


@pytest.fixture
def super_admin(client):
    r = client.post("/api/setup-super-admin", json={
        "firstName": "Root", "lastName": "Owner", "email": "root@school.test", "password": PASSWORD,
    })
    assert r.status_code == 201, r.get_json()
    return {"user": r.get_json()["user"], "headers": bearer(client, "root@school.test")}


@pytest.fixture
def admin(client, super_admin):
    user = make_account(client, super_admin["headers"], "admin", "admin@school.test")
    return {"user": user, "headers": bearer(client, "admin@school.test")}


@pytest.fixture
def teacher(client, admin):
    user = make_account(client, admin["headers"], "teacher", "teacher@school.test",
                        assignedClasses=[{"class": "9", "section": "A"}])
    return {"user": user, "headers": bearer(client, "teacher@school.test")}


@pytest.fixture
def student(client, teacher):
    user = make_student(client, teacher["headers"], "rahim9a", 1)
    return {"user": user, "headers": bearer(client, "rahim9a")}
