# academic_records/routes/payment_routes.py

from flask import Blueprint, g, jsonify, request

from academic_records.utils.auth import records, token_required

payment = Blueprint("payment", __name__)


# =====================================================
# ✅ AUTO RESET (SCHEDULED OR MANUAL)
# =====================================================
@payment.post("/payments/auto-reset")
@token_required
def auto_reset():
    count = records().payments.auto_reset(g.actor)
    return jsonify({
        "message": f"Payment cycle reset completed. {count} students updated.",
        "resetCount": count,
    }), 200


# =====================================================
# ✅ PAYMENT STATUS WITH DAYS LEFT
# =====================================================
@payment.get("/payments/<student_id>")
@token_required
def get_payment(student_id):
    status = records().payments.get_status(g.actor, student_id)
    return jsonify({"message": "Payment status loaded", "student": status}), 200


@payment.put("/payments/<student_id>")
@token_required
def update_payment(student_id):
    data = request.get_json(silent=True) or {}
    status = records().payments.update_payment(g.actor, student_id, data)
    return jsonify({"message": "Student payment information updated successfully", "student": status}), 200
