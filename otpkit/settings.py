"""
settings.py — Generator settings for HOTP (counter) and TOTP (time) codes.

Both variants share the same configuration (label, issuer, secret, secret
encoding, algorithm, digits, additional data) and differ in how they produce
the moving value fed into the challenge:

- HotpGeneratorSettings: a stored 64-bit counter, read-and-advanced
  atomically by counter_value().
- TotpGeneratorSettings: floor(unix_time / period), no stored state.

Challenge bytes = 8-byte big-endian signed counter value + additional data.

Settings convert to and from otpauth:// URIs (see uri.py for the envelope).
"""

import abc
import logging
import os
import struct
import threading
import time
from typing import Iterator, Optional, Tuple, Union

from . import uri as otpauth
from .codes import check_digits
from .encoding import codec_for
from .errors import EncodingFailure, InvalidArgument
from .names import ByteEncoding, ChallengeType, HmacAlgorithm, parse_algorithm, parse_encoding

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # Google Authenticator default
DEFAULT_PERIOD = 30         # TOTP step (seconds)
SECRET_BYTES = 20           # 160-bit secret (RFC 4226 recommendation)
DEFAULT_ALGORITHM = HmacAlgorithm.SHA1
DEFAULT_ENCODING = ByteEncoding.BASE32

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# names written into otpauth URIs
ALGORITHM_URI_NAMES = {
    HmacAlgorithm.MD5: "MD5",
    HmacAlgorithm.SHA1: "SHA1",
    HmacAlgorithm.SHA256: "SHA256",
    HmacAlgorithm.SHA384: "SHA384",
    HmacAlgorithm.SHA512: "SHA512",
}
ENCODING_URI_NAMES = {
    ByteEncoding.BASE16: "base16",
    ByteEncoding.BASE32: "base32",
    ByteEncoding.BASE64: "base64",
}


def _random_secret() -> bytes:
    return os.urandom(SECRET_BYTES)


class OtpGeneratorSettings(abc.ABC):
    """
    Shared configuration of a one-time password generator.

    Arguments:
        label: display label (e.g. "ACME Co:john@example.com")
        issuer: issuer name, may be empty
        secret: shared MAC key, must not be empty
        secret_encoding: encoding used when the secret travels as text
        algorithm: HMAC algorithm
        digits: code length, 2..9
        additional: extra bytes appended to every challenge

    Raises:
        InvalidArgument: on any invalid value
    """

    challenge_type = None  # type: ChallengeType

    def __init__(
        self,
        label: str,
        issuer: Optional[str],
        secret: bytes,
        secret_encoding: Union[ByteEncoding, str] = DEFAULT_ENCODING,
        algorithm: Union[HmacAlgorithm, str] = DEFAULT_ALGORITHM,
        digits: int = DEFAULT_DIGITS,
        additional: Optional[bytes] = None,
    ):
        if label is None:
            raise InvalidArgument("Label must not be None")
        if not isinstance(secret, (bytes, bytearray, memoryview)):
            raise InvalidArgument("Secret must be bytes, got {!r}".format(type(secret).__name__))
        if len(secret) == 0:
            raise InvalidArgument("Secret must not be empty")

        self._label = str(label)
        self._issuer = "" if issuer is None else str(issuer)
        self._secret = bytes(secret)
        self._secret_encoding = parse_encoding(secret_encoding)
        self._algorithm = parse_algorithm(algorithm)
        self._digits = check_digits(digits)
        self._additional = bytes(additional) if additional else b""

    # --- read-only configuration -------------------------------------------
    @property
    def type(self) -> ChallengeType:
        return self.challenge_type

    @property
    def label(self) -> str:
        return self._label

    @property
    def issuer(self) -> str:
        return self._issuer

    @property
    def secret(self) -> bytes:
        return self._secret

    @property
    def secret_encoding(self) -> ByteEncoding:
        return self._secret_encoding

    @property
    def algorithm(self) -> HmacAlgorithm:
        return self._algorithm

    @property
    def digits(self) -> int:
        return self._digits

    @property
    def additional(self) -> bytes:
        return self._additional

    # --- moving factor -----------------------------------------------------
    @abc.abstractmethod
    def counter_value(self) -> int:
        """Return the value for the next challenge."""

    @abc.abstractmethod
    def current_value(self) -> int:
        """Return the value counter_value() would produce, without side effects."""

    def challenge_for(self, value: int) -> bytes:
        """
        Build the HMAC message for an explicit counter value.

        Layout: 8-byte big-endian two's complement ``value`` + additional data,
        always ``8 + len(additional)`` bytes long.

        Raises:
            InvalidArgument: ``value`` does not fit in a signed 64-bit integer
        """
        if not INT64_MIN <= value <= INT64_MAX:
            raise InvalidArgument("Counter value {} does not fit in 64 bits".format(value))
        return struct.pack(">q", value) + self._additional

    def challenge_bytes(self, offset: int = 0) -> bytes:
        """Build the HMAC message for counter_value() + ``offset``."""
        return self.challenge_for(self.counter_value() + offset)

    # --- otpauth URI -------------------------------------------------------
    @abc.abstractmethod
    def _uri_parameters(self) -> Iterator[Tuple[str, str]]:
        """Yield the variant-specific query parameters."""

    def to_uri(self) -> str:
        """
        Serialize these settings to an otpauth:// URI.

        Raises:
            EncodingFailure: secret or additional data could not be encoded
        """
        codec = codec_for(self._secret_encoding)
        params = [(otpauth.PARAM_SECRET, codec.encode(self._secret))]
        if self._issuer.strip():
            params.append((otpauth.PARAM_ISSUER, self._issuer))
        params.append((otpauth.PARAM_ALGORITHM, ALGORITHM_URI_NAMES[self._algorithm]))
        params.append((otpauth.PARAM_DIGITS, str(self._digits)))
        # base32 is implicit
        if self._secret_encoding is not ByteEncoding.BASE32:
            params.append((otpauth.PARAM_ENCODING, ENCODING_URI_NAMES[self._secret_encoding]))
        if self._additional:
            params.append((otpauth.PARAM_ADDITIONAL, codec.encode(self._additional)))
        params.extend(self._uri_parameters())
        return otpauth.build_uri(self.challenge_type, self._label, params)

    @staticmethod
    def parse_uri(uri: str) -> "OtpGeneratorSettings":
        """
        Parse an otpauth:// URI into HOTP or TOTP settings.

        Defaults: algorithm=sha1, digits=6, encoding=base32, period=30.

        Raises:
            InvalidArgument: wrong scheme or type, missing secret, malformed
                secret/additional data, bad numbers, missing HOTP counter
        """
        challenge_type, label, params = otpauth.split_uri(uri)

        secret_text = params.get(otpauth.PARAM_SECRET)
        if not secret_text:
            raise InvalidArgument("otpauth URI is missing the secret")

        encoding = parse_encoding(params.get(otpauth.PARAM_ENCODING, "base32"))
        algorithm = parse_algorithm(params.get(otpauth.PARAM_ALGORITHM, "sha1"))
        digits = _parse_int(params.get(otpauth.PARAM_DIGITS, str(DEFAULT_DIGITS)), otpauth.PARAM_DIGITS)
        codec = codec_for(encoding)

        try:
            secret = codec.decode(secret_text)
        except EncodingFailure as e:
            raise InvalidArgument("Failed to decode secret") from e

        additional = None
        additional_text = params.get(otpauth.PARAM_ADDITIONAL)
        if additional_text:
            try:
                additional = codec.decode(additional_text)
            except EncodingFailure as e:
                raise InvalidArgument("Failed to decode additional data") from e

        issuer = params.get(otpauth.PARAM_ISSUER, "")
        common = dict(
            label=label,
            issuer=issuer,
            secret=secret,
            secret_encoding=encoding,
            algorithm=algorithm,
            digits=digits,
            additional=additional,
        )

        if challenge_type is ChallengeType.COUNTER:
            if otpauth.PARAM_COUNTER not in params:
                raise InvalidArgument("otpauth URI is missing the counter value")
            counter = _parse_int(params[otpauth.PARAM_COUNTER], otpauth.PARAM_COUNTER)
            return HotpGeneratorSettings(counter=counter, **common)

        period = _parse_int(params.get(otpauth.PARAM_PERIOD, str(DEFAULT_PERIOD)), otpauth.PARAM_PERIOD)
        return TotpGeneratorSettings(period=period, **common)

    def __repr__(self):
        return "<{} label={!r} issuer={!r} algorithm={} digits={}>".format(
            type(self).__name__, self._label, self._issuer, self._algorithm.name, self._digits
        )


def _wrap_int64(value: int) -> int:
    return ((value - INT64_MIN) % (1 << 64)) + INT64_MIN


def _parse_int(text: str, name: str) -> int:
    # plain ASCII decimal only: no "_" separators, no non-ASCII digits
    stripped = text.strip() if isinstance(text, str) else ""
    if not stripped.isascii() or "_" in stripped:
        raise InvalidArgument("Invalid {} value: {!r}".format(name, text))
    try:
        return int(stripped, 10)
    except ValueError:
        raise InvalidArgument("Invalid {} value: {!r}".format(name, text)) from None


class HotpGeneratorSettings(OtpGeneratorSettings):
    """
    Counter-based (RFC 4226) settings.

    ``counter`` is the value the next code will be computed from. Only
    counter_value() advances it: each call returns the stored value and
    increments it by one, so concurrent callers never see the same value
    twice and never skip one.

    When ``counter`` is None a random non-negative 63-bit start value is
    drawn from os.urandom.
    """

    challenge_type = ChallengeType.COUNTER

    def __init__(self, label, issuer, secret, secret_encoding=DEFAULT_ENCODING, algorithm=DEFAULT_ALGORITHM,
                 digits=DEFAULT_DIGITS, additional=None, counter: Optional[int] = None):
        super().__init__(label, issuer, secret, secret_encoding, algorithm, digits, additional)
        if counter is None:
            counter = int.from_bytes(os.urandom(8), "big") >> 1
        if isinstance(counter, bool) or not isinstance(counter, int) or not INT64_MIN <= counter <= INT64_MAX:
            raise InvalidArgument("Counter must be a signed 64-bit integer, got {!r}".format(counter))
        self._counter = counter
        self._counter_lock = threading.Lock()

    @property
    def counter(self) -> int:
        return self._counter

    def counter_value(self) -> int:
        # fetch-and-increment, wrapping INT64_MAX -> INT64_MIN
        with self._counter_lock:
            value = self._counter
            self._counter = _wrap_int64(value + 1)
            following = self._counter
        logger.debug("HOTP counter %d -> %d", value, following)
        return value

    def current_value(self) -> int:
        return self._counter

    def _uri_parameters(self):
        yield otpauth.PARAM_COUNTER, str(self._counter)

    @classmethod
    def google_authenticator(cls, label: str, issuer: str, secret: bytes, counter: int) -> "HotpGeneratorSettings":
        """Settings understood by Google Authenticator: Base32, SHA1, 6 digits."""
        return cls(label, issuer, secret, ByteEncoding.BASE32, HmacAlgorithm.SHA1, DEFAULT_DIGITS, None, counter)

    @classmethod
    def generate(cls, label: str, issuer: str, **kwargs) -> "HotpGeneratorSettings":
        """New settings with a fresh random secret (and random counter unless given)."""
        return cls(label, issuer, _random_secret(), **kwargs)


class TotpGeneratorSettings(OtpGeneratorSettings):
    """
    Time-based (RFC 6238) settings: counter = floor(unix_time / period).

    No mutable state, safe to share between threads.
    """

    challenge_type = ChallengeType.TIME

    def __init__(self, label, issuer, secret, secret_encoding=DEFAULT_ENCODING, algorithm=DEFAULT_ALGORITHM,
                 digits=DEFAULT_DIGITS, additional=None, period: int = DEFAULT_PERIOD):
        super().__init__(label, issuer, secret, secret_encoding, algorithm, digits, additional)
        if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
            raise InvalidArgument("Period must be a positive number of seconds, got {!r}".format(period))
        self._period = period

    @property
    def period(self) -> int:
        return self._period

    def counter_value_at(self, timestamp: float) -> int:
        return int(timestamp // self._period)

    def counter_value(self) -> int:
        return self.counter_value_at(time.time())

    def current_value(self) -> int:
        return self.counter_value()

    def remaining_seconds(self, timestamp: float = None) -> int:
        """Seconds until the code for ``timestamp`` (default: now) expires."""
        if timestamp is None:
            timestamp = time.time()
        return int(self._period - (int(timestamp) % self._period))

    def _uri_parameters(self):
        yield otpauth.PARAM_PERIOD, str(self._period)

    @classmethod
    def google_authenticator(cls, label: str, issuer: str, secret: bytes) -> "TotpGeneratorSettings":
        """Settings understood by Google Authenticator: Base32, SHA1, 6 digits, 30s."""
        return cls(label, issuer, secret, ByteEncoding.BASE32, HmacAlgorithm.SHA1, DEFAULT_DIGITS, None,
                   DEFAULT_PERIOD)

    @classmethod
    def generate(cls, label: str, issuer: str, **kwargs) -> "TotpGeneratorSettings":
        """New settings with a fresh random secret."""
        return cls(label, issuer, _random_secret(), **kwargs)
