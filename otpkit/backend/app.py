"""
FLASK APP - OTPKIT HTTP API
===========================

Sets up the Flask app, enables CORS and registers the OTP blueprint.

Configuration (later entries win):
- built-in defaults below
- OTPKIT_* environment variables (e.g. OTPKIT_OTP_DEFAULT_ISSUER=MyWebApp)
- the mapping passed to create_app()

Run a development server:
    python -m otpkit.backend.app
"""
import logging
import os

from flask import Flask
from flask_cors import CORS

from .routes import otp_bp

DEFAULT_CONFIG = {
    "SECRET_KEY": "otpkit-dev-key",
    "OTP_DEFAULT_ISSUER": "otpkit",
    "OTP_GROUP_SIZE": 0,
}


def create_app(config=None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("OTPKIT")
    if config:
        app.config.from_mapping(config)

    # Allow frontends on other origins to call the API
    CORS(app)

    app.register_blueprint(otp_bp)

    @app.route("/", methods=["GET"])
    def index():
        return {
            "service": "otpkit",
            "endpoints": sorted(
                rule.rule for rule in app.url_map.iter_rules() if rule.rule.startswith(otp_bp.url_prefix)
            ),
        }

    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)
    return app


if __name__ == "__main__":
    create_app().run(
        debug=True,
        host=os.environ.get("OTPKIT_HOST", "127.0.0.1"),
        port=int(os.environ.get("OTPKIT_PORT", "5000")),
    )
