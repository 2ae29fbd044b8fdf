"""
otpkit package
==============

One-time password generation and verification (HOTP / TOTP) per RFC 4226 and
RFC 6238, with otpauth:// URI support for authenticator apps.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC(secret, counter || additional)) mod 10^digits
  → the counter advances on every generated code.

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor(unix_time / period)
  → default period 30 seconds.

- Dynamic truncation:
  4 bytes taken from the digest at offset (last byte & 0x0F), top bit cleared.

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from otpkit import OtpGenerator, TotpGeneratorSettings
>>> settings = TotpGeneratorSettings.generate("alice@example", "MyService")
>>> uri = settings.to_uri()              # scan this as a QR code
>>> gen = OtpGenerator.parse_uri(uri)
>>> code = gen.generate(group_size=3)    # e.g. "123 456"
>>> gen.verify(code)
True
"""

from .codes import format_code, format_grouped, raw_code
from .encoding import codec_for, codec_from_name
from .errors import ComputationFailure, EncodingFailure, InvalidArgument, OtpError
from .mac import provider_for, provider_from_name
from .names import ByteEncoding, ChallengeType, CodeTransformer, HmacAlgorithm
from .otp_generator import OtpGenerator
from .settings import HotpGeneratorSettings, OtpGeneratorSettings, TotpGeneratorSettings

__version__ = "1.0.0"

__all__ = [
    "ByteEncoding",
    "ChallengeType",
    "CodeTransformer",
    "ComputationFailure",
    "EncodingFailure",
    "HmacAlgorithm",
    "HotpGeneratorSettings",
    "InvalidArgument",
    "OtpError",
    "OtpGenerator",
    "OtpGeneratorSettings",
    "TotpGeneratorSettings",
    "codec_for",
    "codec_from_name",
    "format_code",
    "format_grouped",
    "provider_for",
    "provider_from_name",
    "raw_code",
]
