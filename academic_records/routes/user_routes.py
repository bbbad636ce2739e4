# academic_records/routes/user_routes.py

from flask import Blueprint, g, jsonify, request

from academic_records.utils.auth import records, token_required

user = Blueprint("user", __name__)


# =====================================================
# ✅ SUPER ADMIN CREATES ADMIN
# =====================================================
@user.post("/admin/create")
@token_required
def create_admin():
    data = request.get_json(silent=True) or {}
    created = records().accounts.create_admin(g.actor, data)
    return jsonify({"message": "Admin created successfully", "user": created}), 201


# =====================================================
# ✅ ADMIN CREATES TEACHER
# =====================================================
@user.post("/teacher/create")
@token_required
def create_teacher():
    data = request.get_json(silent=True) or {}
    created = records().accounts.create_teacher(g.actor, data)
    return jsonify({"message": "Teacher created successfully", "user": created}), 201


# =====================================================
# ✅ LIST USERS / TEACHERS (SCOPED)
# =====================================================
@user.get("/users")
@token_required
def list_users():
    users = records().accounts.list_accounts(g.actor)
    return jsonify({"message": f"{len(users)} users found", "users": users}), 200


@user.get("/teachers")
@token_required
def list_teachers():
    teachers = records().accounts.list_teachers(
        g.actor, request.args.get("class"), request.args.get("section")
    )
    return jsonify({
        "message": f"{len(teachers)} teachers found",
        "teachers": teachers,
        "userRole": g.actor.role.value,
    }), 200


# =====================================================
# ✅ UPDATE / DELETE USER
# =====================================================
@user.put("/user/<user_id>")
@token_required
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    updated = records().accounts.update_account(g.actor, user_id, data)
    return jsonify({"message": "User updated successfully", "user": updated}), 200


@user.delete("/user/<user_id>")
@token_required
def delete_user(user_id):
    records().accounts.delete_account(g.actor, user_id)
    return jsonify({"message": "User deleted successfully"}), 200
