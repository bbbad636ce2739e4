from datetime import datetime

from academic_records.services.accounts import next_admin_code
from conftest import PASSWORD, bearer, make_account


def test_next_admin_code_sequence():
    march = datetime(2024, 3, 15)
    assert next_admin_code([], march) == "2403001"
    assert next_admin_code(["2403001", "2403007", "2402999", None, "2403abc"], march) == "2403008"
    assert next_admin_code(["2312045"], datetime(2024, 1, 2)) == "2401001"


def test_super_admin_setup_is_one_time(client, super_admin):
    assert super_admin["user"]["role"] == "super_admin"
    r = client.post("/api/setup-super-admin", json={
        "firstName": "Second", "lastName": "Root", "email": "other@school.test", "password": PASSWORD})
    assert r.status_code == 409
    assert r.get_json()["message"] == "Super admin already exists"


def test_setup_validates_input(client):
    r = client.post("/api/setup-super-admin", json={"firstName": "Root"})
    assert r.status_code == 400
    assert r.get_json()["message"] == "All fields are required"

    r = client.post("/api/setup-super-admin", json={
        "firstName": "Root", "lastName": "Owner", "email": "root@school.test", "password": "123"})
    assert r.status_code == 400


def test_admin_codes_increase_within_the_month(client, super_admin):
    prefix = datetime.utcnow().strftime("%y%m")
    first = make_account(client, super_admin["headers"], "admin", "a1@school.test")
    second = make_account(client, super_admin["headers"], "admin", "a2@school.test")

    assert first["adminCode"] == prefix + "001"
    assert second["adminCode"] == prefix + "002"
    assert first["createdBy"] == super_admin["user"]["id"]


def test_admin_code_collision_is_retried(client, services, super_admin, monkeypatch):
    taken = make_account(client, super_admin["headers"], "admin", "a1@school.test")["adminCode"]
    codes = iter([taken, taken, "9912001"])
    monkeypatch.setattr(services.accounts, "generate_admin_code", lambda now=None: next(codes))

    created = make_account(client, super_admin["headers"], "admin", "a2@school.test")
    assert created["adminCode"] == "9912001"


def test_admin_code_collision_gives_up(client, services, db, super_admin, monkeypatch):
    taken = make_account(client, super_admin["headers"], "admin", "a1@school.test")["adminCode"]
    monkeypatch.setattr(services.accounts, "generate_admin_code", lambda now=None: taken)

    r = client.post("/api/admin/create", headers=super_admin["headers"], json={
        "firstName": "A", "lastName": "Two", "email": "a2@school.test", "password": PASSWORD})
    assert r.status_code == 409
    assert r.get_json()["message"] == "Admin code already exists. Please try again."
    assert db.accounts.find_one({"email": "a2@school.test"}) is None


def test_duplicate_email_conflicts(client, super_admin, admin):
    r = client.post("/api/admin/create", headers=super_admin["headers"], json={
        "firstName": "A", "lastName": "B", "email": "ADMIN@school.test", "password": PASSWORD})
    assert r.status_code == 409
    assert r.get_json()["message"] == "User already exists"


def test_only_super_admin_creates_admins(client, admin):
    r = client.post("/api/admin/create", headers=admin["headers"], json={
        "firstName": "A", "lastName": "B", "email": "x@school.test", "password": PASSWORD})
    assert r.status_code == 403


def test_teacher_needs_assigned_classes(client, admin):
    body = {"firstName": "T", "lastName": "B", "email": "t@school.test", "password": PASSWORD}
    r = client.post("/api/teacher/create", headers=admin["headers"], json=body)
    assert r.status_code == 400

    body["assignedClasses"] = [{"class": "9"}]
    r = client.post("/api/teacher/create", headers=admin["headers"], json=body)
    assert r.status_code == 400
    assert r.get_json()["message"] == "Each assigned class must have both class and section"


def test_teacher_cannot_create_accounts(client, teacher):
    r = client.post("/api/teacher/create", headers=teacher["headers"], json={
        "firstName": "T", "lastName": "B", "email": "t2@school.test", "password": PASSWORD,
        "assignedClasses": [{"class": "9", "section": "A"}]})
    assert r.status_code == 403


def test_user_listing_is_scoped(client, super_admin, admin, teacher):
    other_admin = make_account(client, super_admin["headers"], "admin", "other@school.test")
    other_headers = bearer(client, "other@school.test")
    make_account(client, other_headers, "teacher", "t10@school.test",
                 assignedClasses=[{"class": "10", "section": "B"}])

    everyone = client.get("/api/users", headers=super_admin["headers"]).get_json()["users"]
    assert len(everyone) == 5

    mine = client.get("/api/users", headers=admin["headers"]).get_json()["users"]
    assert [u["email"] for u in mine] == ["teacher@school.test"]
    assert mine[0]["createdBy"]["email"] == "admin@school.test"
    assert other_admin["id"] not in [u["id"] for u in mine]


def test_teacher_listing_filters(client, super_admin, admin, teacher):
    make_account(client, admin["headers"], "teacher", "t9b@school.test",
                 assignedClasses=[{"class": "9", "section": "B"}])
    make_account(client, admin["headers"], "teacher", "t10@school.test",
                 assignedClasses=[{"class": "10", "section": "A"}])

    r = client.get("/api/teachers?class=9", headers=admin["headers"])
    assert sorted(t["email"] for t in r.get_json()["teachers"]) == ["t9b@school.test", "teacher@school.test"]

    r = client.get("/api/teachers?class=9&section=B", headers=super_admin["headers"])
    assert [t["email"] for t in r.get_json()["teachers"]] == ["t9b@school.test"]

    # teachers only see colleagues sharing one of their classes
    r = client.get("/api/teachers", headers=teacher["headers"])
    body = r.get_json()
    assert body["userRole"] == "teacher"
    assert "t10@school.test" not in [t["email"] for t in body["teachers"]]


def test_admin_updates_own_teacher(client, admin, teacher):
    r = client.put(f"/api/user/{teacher['user']['id']}", headers=admin["headers"], json={
        "firstName": "Renamed", "assignedClasses": [{"class": "10", "section": "C"}]})
    assert r.status_code == 200
    user = r.get_json()["user"]
    assert user["firstName"] == "Renamed"
    assert user["assignedClasses"] == [{"class": "10", "section": "C"}]

    r = client.put(f"/api/user/{teacher['user']['id']}", headers=admin["headers"], json={"role": "admin"})
    assert r.status_code == 403
    assert r.get_json()["message"] == "Only the super admin can change roles or admin codes"


def test_super_admin_promotes_teacher(client, super_admin, teacher):
    r = client.put(f"/api/user/{teacher['user']['id']}", headers=super_admin["headers"], json={"role": "admin"})
    assert r.status_code == 200
    user = r.get_json()["user"]
    assert user["role"] == "admin"
    assert user["adminCode"]

    r = client.put(f"/api/user/{teacher['user']['id']}", headers=super_admin["headers"],
                   json={"role": "super_admin"})
    assert r.status_code == 400


def test_update_email_conflict(client, super_admin, admin, teacher):
    r = client.put(f"/api/user/{teacher['user']['id']}", headers=admin["headers"],
                   json={"email": "root@school.test"})
    assert r.status_code == 409


def test_self_service_password_change(client, teacher):
    r = client.put(f"/api/user/{teacher['user']['id']}", headers=teacher["headers"],
                   json={"password": "newpass99"})
    assert r.status_code == 200
    assert bearer(client, "teacher@school.test", "newpass99")


def test_delete_rules(client, super_admin, admin, teacher):
    r = client.delete(f"/api/user/{super_admin['user']['id']}", headers=super_admin["headers"])
    assert r.status_code == 403
    assert r.get_json()["message"] == "Super admin cannot be deleted"

    r = client.delete(f"/api/user/{admin['user']['id']}", headers=admin["headers"])
    assert r.status_code == 403

    r = client.delete(f"/api/user/{teacher['user']['id']}", headers=admin["headers"])
    assert r.status_code == 200
    assert client.get("/api/profile", headers=teacher["headers"]).status_code == 401

    r = client.delete("/api/user/not-an-id", headers=super_admin["headers"])
    assert r.status_code == 404


def test_dashboard_counts(client, super_admin, admin, teacher, student):
    r = client.get("/api/stats", headers=admin["headers"])
    assert r.status_code == 200
    body = r.get_json()
    assert (body["adminCount"], body["teacherCount"], body["studentCount"]) == (1, 1, 1)

    chart = client.get("/api/chart-data", headers=super_admin["headers"]).get_json()["data"]
    assert [row["count"] for row in chart] == [1, 1, 1]

    assert client.get("/api/stats", headers=teacher["headers"]).status_code == 403
