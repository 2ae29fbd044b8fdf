"""
OTPKIT API ROUTES - FLASK BLUEPRINT

Every endpoint takes a JSON body. Generator state travels as an otpauth://
URI: the client sends the URI it holds, HOTP responses return the advanced
URI the client has to keep.

eg..:
curl -X POST http://localhost:5000/api/init -H "Content-Type: application/json" -d '{"label": "alice@example"}'
curl -X POST http://localhost:5000/api/code -H "Content-Type: application/json" -d '{"uri": "otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP"}'
"""

import base64
import io

import qrcode
from flask import Blueprint, current_app, jsonify, request

from ..errors import InvalidArgument, OtpError
from ..names import ChallengeType, parse_challenge_type
from ..otp_generator import OtpGenerator
from ..settings import DEFAULT_DIGITS, DEFAULT_PERIOD, HotpGeneratorSettings, TotpGeneratorSettings

otp_bp = Blueprint("otp", __name__, url_prefix="/api")


@otp_bp.errorhandler(OtpError)
def handle_otp_error(e):
    current_app.logger.info("Rejected %s %s: %s", request.method, request.path, e)
    return jsonify({"error": str(e)}), 400


def _body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgument("JSON object body is required")
    return data


def _require(data: dict, *names):
    missing = [name for name in names if data.get(name) in (None, "")]
    if missing:
        raise InvalidArgument("Missing required field(s): {}".format(", ".join(missing)))


def _int_field(data: dict, name: str, default: int) -> int:
    value = data.get(name, default)
    if isinstance(value, bool):
        raise InvalidArgument("Field {!r} must be an integer".format(name))
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgument("Field {!r} must be an integer".format(name)) from None


def _generator(data: dict) -> OtpGenerator:
    _require(data, "uri")
    return OtpGenerator.parse_uri(data["uri"])


@otp_bp.route("/init", methods=["POST"])
def init_settings():
    """
    CREATE NEW SETTINGS WITH A RANDOM SECRET

    Body: {"label": "alice@example", "type": "totp", "issuer": "MyWebApp",
           "digits": 6, "period": 30, "algorithm": "sha1", "encoding": "base32",
           "counter": 0}
    Only "label" is required.
    """
    data = _body()
    _require(data, "label")
    challenge_type = parse_challenge_type(data.get("type", "totp"))
    options = dict(
        secret_encoding=data.get("encoding", "base32"),
        algorithm=data.get("algorithm", "sha1"),
        digits=_int_field(data, "digits", DEFAULT_DIGITS),
    )
    issuer = data.get("issuer", current_app.config["OTP_DEFAULT_ISSUER"])

    if challenge_type is ChallengeType.COUNTER:
        counter = data.get("counter")
        if counter is not None:
            counter = _int_field(data, "counter", 0)
        settings = HotpGeneratorSettings.generate(data["label"], issuer, counter=counter, **options)
    else:
        period = _int_field(data, "period", DEFAULT_PERIOD)
        settings = TotpGeneratorSettings.generate(data["label"], issuer, period=period, **options)

    current_app.logger.info("Created %s settings for %r", settings.type.name, settings.label)
    return jsonify({"uri": settings.to_uri(), "type": settings.type.name.lower()}), 201


@otp_bp.route("/code", methods=["POST"])
def get_code():
    """
    CURRENT CODE

    Body: {"uri": "...", "group_size": 3, "offset": 0}
    Output (TOTP): {"code": "123 456", "remaining": 17}
    Output (HOTP): {"code": "123456", "uri": "<advanced URI>"}
    """
    data = _body()
    generator = _generator(data)
    group_size = _int_field(data, "group_size", current_app.config["OTP_GROUP_SIZE"])
    offset = _int_field(data, "offset", 0)

    code = generator.generate(group_size=group_size, offset=offset)
    settings = generator.settings
    if settings.type is ChallengeType.COUNTER:
        return jsonify({"code": code, "uri": settings.to_uri()})
    return jsonify({"code": code, "remaining": settings.remaining_seconds()})


@otp_bp.route("/window", methods=["POST"])
def get_window():
    """
    CODES AROUND THE CURRENT COUNTER

    Body: {"uri": "...", "window": 1}
    Output: {"codes": ["...", "...", "..."]}   oldest first
    """
    data = _body()
    generator = _generator(data)
    window = _int_field(data, "window", 0)
    digits = generator.settings.digits
    codes = [str(raw).zfill(digits) for raw in generator.generate_window(window)]
    return jsonify({"codes": codes})


@otp_bp.route("/verify", methods=["POST"])
def verify_code():
    """
    VERIFY A CODE

    Body: {"uri": "...", "code": "123456", "window": 1}
    Output: {"valid": true, "offset": 0}  or  {"valid": false}
    """
    data = _body()
    _require(data, "code")
    generator = _generator(data)
    # JSON integers keep their value; find_offset zero-pads them
    offset = generator.find_offset(data["code"], _int_field(data, "window", 0))
    if offset is None:
        return jsonify({"valid": False})
    return jsonify({"valid": True, "offset": offset})


@otp_bp.route("/parse", methods=["POST"])
def parse_uri():
    """
    PARSE AN OTPAUTH URI

    Body: {"uri": "..."}
    """
    data = _body()
    settings = _generator(data).settings
    result = {
        "type": settings.type.name.lower(),
        "label": settings.label,
        "issuer": settings.issuer,
        "algorithm": settings.algorithm.name,
        "digits": settings.digits,
        "encoding": settings.secret_encoding.name.lower(),
        "has_additional": bool(settings.additional),
    }
    if settings.type is ChallengeType.COUNTER:
        result["counter"] = settings.counter
    else:
        result["period"] = settings.period
    return jsonify(result)


@otp_bp.route("/qr_code", methods=["POST"])
def get_qr_code():
    """
    QR CODE FOR AUTHENTICATOR APPS

    Body: {"uri": "..."}
    Output: {"qr_code": "data:image/png;base64,..."}
    """
    data = _body()
    uri = _generator(data).to_uri()

    qr = qrcode.QRCode(box_size=10, border=4)
    qr.add_data(uri)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    img_str = base64.b64encode(buffer.getvalue()).decode("ascii")
    return jsonify({"qr_code": "data:image/png;base64," + img_str})
