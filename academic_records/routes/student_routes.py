# academic_records/routes/student_routes.py

from flask import Blueprint, g, jsonify, request

from academic_records.utils.auth import records, token_required

student = Blueprint("student", __name__)


# =====================================================
# ✅ ADD STUDENT
# =====================================================
@student.post("/student/create")
@token_required
def create_student():
    data = request.get_json(silent=True) or {}
    created = records().students.create_student(g.actor, data)
    return jsonify({"message": "Student created successfully", "student": created}), 201


# =====================================================
# ✅ LIST STUDENTS (SCOPED TO THE CALLER)
# =====================================================
@student.get("/student")
@token_required
def list_students():
    students = records().students.list_students(
        g.actor, request.args.get("class"), request.args.get("section")
    )
    body = {
        "message": f"{len(students)} students found",
        "students": students,
        "userRole": g.actor.role.value,
    }
    if g.actor.assigned_classes:
        body["assignedClasses"] = list(g.actor.assigned_classes)
    return jsonify(body), 200


# =====================================================
# ✅ SINGLE STUDENT
# =====================================================
@student.get("/student/<student_id>")
@token_required
def get_student(student_id):
    found = records().students.get_student(g.actor, student_id)
    return jsonify({"message": "Student found", "student": found}), 200


@student.put("/student/<student_id>")
@token_required
def update_student(student_id):
    data = request.get_json(silent=True) or {}
    updated = records().students.update_student(g.actor, student_id, data)
    return jsonify({"message": "Student updated successfully", "student": updated}), 200


@student.delete("/student/<student_id>")
@token_required
def delete_student(student_id):
    records().students.delete_student(g.actor, student_id)
    return jsonify({"message": "Student deleted successfully"}), 200
