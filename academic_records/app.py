# academic_records/app.py
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from academic_records.config import Config
from academic_records.database import Database
from academic_records.errors import DependencyError, RecordsError
from academic_records.routes.auth_routes import auth
from academic_records.routes.dashboard_routes import dashboard
from academic_records.routes.payment_routes import payment
from academic_records.routes.result_routes import result
from academic_records.routes.student_routes import student
from academic_records.routes.user_routes import user
from academic_records.scheduler import start_scheduler
from academic_records.services import Services

logger = logging.getLogger(__name__)


def create_app(overrides=None, client_factory=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    CORS(app)

    # =====================================================
    # DATABASE + SERVICES
    # =====================================================
    db_kwargs = {"client_factory": client_factory} if client_factory else {}
    database = Database(
        app.config["MONGO_URI"],
        app.config["MONGO_DB_NAME"],
        timeout_ms=app.config["MONGO_TIMEOUT_MS"],
        **db_kwargs,
    )
    database.ensure_indexes()
    app.extensions["records_db"] = database
    app.extensions["records"] = Services(database, app.config)

    # =====================================================
    # BLUEPRINTS
    # =====================================================
    for blueprint in (auth, user, student, result, payment, dashboard):
        app.register_blueprint(blueprint, url_prefix="/api")

    register_error_handlers(app)

    # =====================================================
    # HEALTH CHECK
    # =====================================================
    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    if not app.config.get("TESTING"):
        app.extensions["records_scheduler"] = start_scheduler(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(DependencyError)
    def dependency_failed(exc):
        logger.error("Dependency failure: %s", exc.detail)
        return jsonify({"message": exc.message}), exc.status_code

    @app.errorhandler(RecordsError)
    def records_failed(exc):
        return jsonify({"message": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def http_failed(exc):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def unexpected(exc):
        logger.exception("Unhandled error: %s", exc)
        return jsonify({"message": "Server error"}), 500


# =====================================================
# LOCAL RUN ONLY (PRODUCTION USES GUNICORN)
# =====================================================
if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000)
