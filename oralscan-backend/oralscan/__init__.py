# oralscan/__init__.py
from flask import Flask, jsonify
from flask_cors import CORS

from .core.config import Config, database_url_from, model_configs_from
from .core.errors import InvalidClientId
from .core.logging_config import configure_logging
from .api.analyze_routes import analyze_bp
from .api.history_routes import history_bp
from .api.storage_routes import storage_bp
from .ml.classification.model_loader import ModelSession, load_keras_model
from .services.cloud_history_service import create_history_backend
from .services.history_service import LocalHistoryStore


def create_app(overrides=None, model_loader=None, db_engine=None):
    """
    overrides   : dict config tambahan (dipakai test)
    model_loader: pengganti tf.keras load_model (dipakai test)
    db_engine   : engine SQLAlchemy siap pakai (dipakai test, sqlite in-memory)
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    # Izinkan akses dari frontend (Vite dev server)
    CORS(
        app,
        resources={r"/api/*": {"origins": "*"}},
        allow_headers=["Content-Type", "X-Client-Id"],
        expose_headers=["X-Client-Id", "Content-Disposition"],
    )

    # state pipeline: satu per app
    app.extensions["model_session"] = ModelSession(
        model_configs_from(app.config),
        mode=app.config["DEFAULT_MODE"],
        loader=model_loader or load_keras_model,
    )
    app.extensions["local_history"] = LocalHistoryStore(
        app.config["HISTORY_DIR"], max_items=app.config["HISTORY_MAX_ITEMS"]
    )
    app.extensions["cloud_history"] = create_history_backend(
        database_url_from(app.config),
        app.config["STORAGE_ANALYSIS_DIR"],
        engine=db_engine,
    )

    app.register_blueprint(analyze_bp, url_prefix="/api")
    app.register_blueprint(history_bp, url_prefix="/api")
    app.register_blueprint(storage_bp, url_prefix="/api/storage")

    @app.errorhandler(InvalidClientId)
    def invalid_client_id(e):
        return jsonify({"error": InvalidClientId.user_message}), 400

    return app
