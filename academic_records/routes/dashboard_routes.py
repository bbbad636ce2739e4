# academic_records/routes/dashboard_routes.py

from flask import Blueprint, g, jsonify

from academic_records.utils.auth import records, token_required

dashboard = Blueprint("dashboard", __name__)


@dashboard.get("/stats")
@token_required
def stats():
    counts = records().dashboard.stats(g.actor)
    return jsonify({"message": "Dashboard statistics", **counts}), 200


@dashboard.get("/chart-data")
@token_required
def chart_data():
    return jsonify({"message": "Chart data", "data": records().dashboard.chart_data(g.actor)}), 200
