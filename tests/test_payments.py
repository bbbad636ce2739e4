from datetime import datetime, timedelta

from bson import ObjectId

from academic_records.scheduler import payment_sweep_job, start_scheduler


def test_new_student_owes_nothing(client, admin, student):
    r = client.get(f"/api/payments/{student['user']['id']}", headers=admin["headers"])
    assert r.status_code == 200
    status = r.get_json()["student"]
    assert status["paymentAmount"] == 0
    assert status["hasPaid"] is False
    assert status["daysLeft"] == 30
    assert status["isOverdue"] is False
    assert status["paymentDetails"] == []
    assert status["nextPaymentDue"]


def test_open_bill_then_pay_it(client, db, admin, student):
    sid = student["user"]["id"]
    r = client.put(f"/api/payments/{sid}", headers=admin["headers"],
                   json={"paymentAmount": 1000, "increasedAmount": 1200, "hasPaid": False})
    assert r.status_code == 200
    status = r.get_json()["student"]
    assert (status["paymentAmount"], status["hasPaid"]) == (1000, False)
    assert len(status["paymentDetails"]) == 1

    r = client.put(f"/api/payments/{sid}", headers=admin["headers"], json={"paymentAmount": 1000, "hasPaid": True})
    status = r.get_json()["student"]
    assert (status["paymentAmount"], status["hasPaid"]) == (0, True)
    assert [d["isPaid"] for d in status["paymentDetails"]] == [True]
    assert status["lastPaymentDate"]

    stored = db.students.find_one({"_id": ObjectId(sid)})
    assert stored["has_paid"] is True
    assert stored["last_payment_date"] is not None


def test_overdue_bill_owes_increased_amount(client, admin, student):
    r = client.put(f"/api/payments/{student['user']['id']}", headers=admin["headers"], json={
        "paymentAmount": 800, "increasedAmount": 900, "hasPaid": False, "dueDate": "2020-01-01T00:00:00Z"})
    assert r.status_code == 200
    assert r.get_json()["student"]["paymentAmount"] == 900


def test_payment_update_validation(client, admin, student):
    url = f"/api/payments/{student['user']['id']}"
    assert client.put(url, headers=admin["headers"], json={"hasPaid": True}).status_code == 400
    assert client.put(url, headers=admin["headers"], json={"paymentAmount": -5, "hasPaid": True}).status_code == 400
    assert client.put(url, headers=admin["headers"], json={"paymentAmount": 5, "hasPaid": "yes"}).status_code == 400
    r = client.put(url, headers=admin["headers"], json={"paymentAmount": 5, "hasPaid": False, "dueDate": "soon"})
    assert r.status_code == 400


def test_payment_permissions(client, teacher, student):
    url = f"/api/payments/{student['user']['id']}"
    assert client.get(url, headers=teacher["headers"]).status_code == 200
    assert client.get(url, headers=student["headers"]).status_code == 200
    assert client.put(url, headers=teacher["headers"], json={"paymentAmount": 1, "hasPaid": True}).status_code == 403
    assert client.put(url, headers=student["headers"], json={"paymentAmount": 1, "hasPaid": True}).status_code == 403


def test_lapsed_payment_reads_as_unpaid(client, db, admin, student):
    sid = ObjectId(student["user"]["id"])
    paid_at = datetime.utcnow() - timedelta(days=40)
    db.students.update_one({"_id": sid}, {"$set": {
        "has_paid": True,
        "payment_amount": 0,
        "last_payment_date": paid_at,
        "payment_details": [{"initial_amount": 500, "increased_amount": 600, "due_date": paid_at,
                             "is_paid": True, "created_at": paid_at}],
    }})

    status = client.get(f"/api/payments/{sid}", headers=admin["headers"]).get_json()["student"]
    assert (status["hasPaid"], status["paymentAmount"]) == (False, 500)
    assert (status["daysLeft"], status["isOverdue"]) == (0, True)
    assert db.students.find_one({"_id": sid})["has_paid"] is False


def test_sweep_then_read_matches_read_alone(client, db, services, admin, teacher):
    swept = client.post("/api/student/create", headers=teacher["headers"], json={
        "name": "Swept", "userName": "swept9a", "password": "secret123", "roll": 3, "class": "9", "section": "A",
    }).get_json()["student"]
    read = client.post("/api/student/create", headers=teacher["headers"], json={
        "name": "Read", "userName": "read9a", "password": "secret123", "roll": 4, "class": "9", "section": "A",
    }).get_json()["student"]

    for sid in (swept["id"], read["id"]):
        r = client.put(f"/api/payments/{sid}", headers=admin["headers"], json={"paymentAmount": 500, "hasPaid": True})
        assert r.get_json()["student"]["paymentAmount"] == 0
        db.students.update_one({"_id": ObjectId(sid)}, {"$set": {
            "last_payment_date": datetime.utcnow() - timedelta(days=31)}})

    before = client.get(f"/api/payments/{read['id']}", headers=admin["headers"]).get_json()["student"]
    assert services.payments.sweep() == 1
    after = client.get(f"/api/payments/{swept['id']}", headers=admin["headers"]).get_json()["student"]

    for status in (before, after):
        assert (status["paymentAmount"], status["hasPaid"]) == (500, False)
    for sid in (swept["id"], read["id"]):
        stored = db.students.find_one({"_id": ObjectId(sid)})
        assert (stored["payment_amount"], stored["has_paid"]) == (500, False)


def mark_paid(db, student_id, days_ago):
    db.students.update_one({"_id": ObjectId(student_id)}, {"$set": {
        "has_paid": True, "last_payment_date": datetime.utcnow() - timedelta(days=days_ago)}})


def test_auto_reset_is_super_admin_only_and_idempotent(client, db, super_admin, admin, teacher, student):
    mark_paid(db, student["user"]["id"], 31)
    fresh = client.post("/api/student/create", headers=admin["headers"], json={
        "name": "Fresh", "userName": "fresh9a", "password": "secret123", "roll": 2, "class": "9", "section": "A",
    }).get_json()["student"]
    mark_paid(db, fresh["id"], 2)

    assert client.post("/api/payments/auto-reset", headers=admin["headers"]).status_code == 403

    r = client.post("/api/payments/auto-reset", headers=super_admin["headers"])
    assert r.status_code == 200
    assert r.get_json()["resetCount"] == 1
    assert db.students.find_one({"user_name": "rahim9a"})["has_paid"] is False
    assert db.students.find_one({"user_name": "fresh9a"})["has_paid"] is True

    r = client.post("/api/payments/auto-reset", headers=super_admin["headers"])
    assert r.get_json()["resetCount"] == 0


def test_sweep_covers_never_paid_students(db, services, student):
    sid = ObjectId(student["user"]["id"])
    db.students.update_one({"_id": sid}, {"$set": {"has_paid": True}})

    assert services.payments.sweep(datetime.utcnow() + timedelta(days=31)) == 1
    assert db.students.find_one({"_id": sid})["has_paid"] is False


def test_scheduled_sweep_job(app, db, student):
    mark_paid(db, student["user"]["id"], 45)
    assert payment_sweep_job(app) == 1
    assert start_scheduler(app) is None
