# academic_records/routes/auth_routes.py

from flask import Blueprint, g, jsonify, request

from academic_records.authz import Role
from academic_records.models.account import serialize_account
from academic_records.models.student import serialize_student
from academic_records.utils.auth import records, token_required

auth = Blueprint("auth", __name__)


# =====================================================
# ✅ ONE-TIME SUPER ADMIN BOOTSTRAP
# =====================================================
@auth.post("/setup-super-admin")
def setup_super_admin():
    data = request.get_json(silent=True) or {}
    user = records().accounts.setup_super_admin(data)
    return jsonify({"message": "Super admin created successfully", "user": user}), 201


# =====================================================
# ✅ SIGN IN (email for staff, username for students)
# =====================================================
@auth.post("/signin")
def signin():
    data = request.get_json(silent=True) or {}
    tokens, kind, doc = records().tokens.sign_in(data.get("email"), data.get("password"))

    if kind == "student":
        user = serialize_student(doc)
        user["role"] = Role.STUDENT.value
    else:
        user = serialize_account(doc)

    return jsonify({"message": "Signed in successfully", **tokens, "user": user}), 200


# =====================================================
# ✅ ROTATE REFRESH TOKEN
# =====================================================
@auth.post("/refresh")
def refresh():
    data = request.get_json(silent=True) or {}
    tokens = records().tokens.rotate_refresh(data.get("refreshToken"))
    return jsonify({"message": "Token refreshed", **tokens}), 200


# =====================================================
# ✅ LOGOUT (drops only the presented refresh token)
# =====================================================
@auth.post("/logout")
@token_required
def logout():
    data = request.get_json(silent=True) or {}
    records().tokens.logout(g.actor.id, data.get("refreshToken"))
    return jsonify({"message": "Logged out successfully"}), 200


@auth.get("/profile")
@token_required
def profile():
    user = records().accounts.get_profile(g.actor, g.actor_doc)
    return jsonify({"message": "Profile loaded", "user": user}), 200
