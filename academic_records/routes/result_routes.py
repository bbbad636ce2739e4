# academic_records/routes/result_routes.py

from flask import Blueprint, g, jsonify, request

from academic_records.utils.auth import records, token_required

result = Blueprint("result", __name__)


# =====================================================
# ✅ SUBJECTS BY CLASS
# =====================================================
@result.get("/subjects/<class_name>")
@token_required
def subjects(class_name):
    names = records().results.subjects_for(class_name)
    return jsonify({"message": f"{len(names)} subjects for class {class_name}", "subjects": names}), 200


# =====================================================
# ✅ SUBMIT RESULT (mcq / cq / combined)
# =====================================================
@result.post("/submit/<exam_type>")
@token_required
def submit(exam_type):
    data = request.get_json(silent=True) or {}
    saved = records().results.submit(g.actor, exam_type, data)
    label = "Combined" if exam_type == "combined" else exam_type.upper()
    return jsonify({"message": f"{label} result submitted successfully", "data": saved}), 201


# =====================================================
# ✅ LATEST RESULT OF A STUDENT
# =====================================================
@result.get("/results/<student_id>")
@token_required
def student_results(student_id):
    found = records().results.latest_for_student(g.actor, student_id)
    return jsonify({"message": "Result found", **found}), 200


@result.get("/results/<student_id>/<exam_type>")
@token_required
def student_results_by_type(student_id, exam_type):
    found = records().results.latest_for_student(g.actor, student_id, exam_type)
    return jsonify({"message": "Result found", **found}), 200


# =====================================================
# ✅ ALL VISIBLE RESULTS (FILTERABLE)
# =====================================================
@result.get("/result")
@token_required
def list_results():
    rows = records().results.list_results(
        g.actor,
        klass=request.args.get("class"),
        student_id=request.args.get("studentId"),
        semester=request.args.get("semester"),
    )
    return jsonify({"message": f"{len(rows)} results found", "results": rows}), 200
