"""
HTTP API for otpkit (Flask).

    from otpkit.backend import create_app
    app = create_app({"OTP_DEFAULT_ISSUER": "MyWebApp"})
"""

from .app import create_app

__all__ = ["create_app"]
