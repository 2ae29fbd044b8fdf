"""
errors.py — Exception types raised by otpkit.

- InvalidArgument: bad configuration (digits out of range, unknown names,
  malformed otpauth URIs, missing parameters).
- EncodingFailure: a codec could not encode/decode the given text or bytes.
- ComputationFailure: the MAC or truncation step produced no output.

The low-level ``try_*`` helpers never raise these; they return ``None`` and
the convenience wrappers turn that into one of the exceptions below.
"""


class OtpError(Exception):
    """Base class for every error raised by otpkit."""


class InvalidArgument(OtpError, ValueError):
    pass


class EncodingFailure(OtpError, ValueError):
    pass


class ComputationFailure(OtpError, RuntimeError):
    pass
