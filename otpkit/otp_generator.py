"""
otp_generator.py — One-time password generator (HOTP / TOTP).

Pipeline for one code:

    settings.counter_value() + offset
        -> challenge bytes (8-byte big-endian counter + additional data)
        -> HMAC(secret, challenge)            (mac.py)
        -> dynamic truncation                 (codes.py)
        -> number mod 10^digits, zero-padded  (codes.py)

Usage:
    >>> gen = OtpGenerator.parse_uri("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP")
    >>> code = gen.generate()           # six digits, e.g. "041277"
    >>> gen.generate(group_size=3)      # e.g. "041 277"
    >>> gen.verify(code)                # tolerates +/-1 period by default

For HOTP settings every zero-window generate()/generate_raw() call consumes
one counter value. Window walks and verification never move the counter.
"""

import hmac
import logging
from typing import Iterator, Optional, Union

from .codes import format_code, format_grouped, raw_code, transformer_for
from .errors import InvalidArgument
from .mac import provider_for
from .names import ChallengeType, CodeTransformer
from .settings import OtpGeneratorSettings

logger = logging.getLogger(__name__)

# window used when the caller passes 0
DEFAULT_WINDOWS = {
    ChallengeType.TIME: 1,
    ChallengeType.COUNTER: 2,
}


class OtpGenerator:
    """
    Generates one-time passwords from a settings object.

    Arguments:
        settings: HotpGeneratorSettings or TotpGeneratorSettings
        transformer: digest-to-number method, RFC 4226 by default
    """

    def __init__(self, settings: OtpGeneratorSettings, transformer: CodeTransformer = CodeTransformer.RFC4226):
        if not isinstance(settings, OtpGeneratorSettings):
            raise InvalidArgument("Expected generator settings, got {!r}".format(type(settings).__name__))
        self.settings = settings
        self._mac = provider_for(settings.algorithm)
        self._transformer = transformer_for(transformer)

    # --- single codes ------------------------------------------------------
    def _number_for(self, value: int) -> int:
        challenge = self.settings.challenge_for(value)
        digest = self._mac.compute(self.settings.secret, challenge)
        logger.debug("%s: HMAC-%s(key=secret, msg=counter=%d)",
                     self.settings.type.name, self.settings.algorithm.name, value)
        return self._transformer.transform(digest)

    def raw_code_for(self, value: int) -> int:
        """Raw numeric code for an explicit counter value; touches no state."""
        return raw_code(self._number_for(value), self.settings.digits)

    def generate_raw(self, offset: int = 0) -> int:
        """
        Numeric code for counter_value() + ``offset``.

        Suitable for comparison; use generate() for display (zero padding).
        """
        return self.raw_code_for(self.settings.counter_value() + offset)

    def generate(self, group_size: int = 0, offset: int = 0) -> str:
        """
        Formatted code for counter_value() + ``offset``.

        Arguments:
            group_size: if > 0, split digits into groups of this size,
                counted from the right ("12 345 678")
            offset: added to the counter value before computing
        """
        number = self._number_for(self.settings.counter_value() + offset)
        if group_size > 0:
            return format_grouped(number, self.settings.digits, group_size)
        return format_code(number, self.settings.digits)

    # --- drift windows -----------------------------------------------------
    def _resolve_window(self, window: int) -> int:
        if window < 0:
            raise InvalidArgument("Window must not be negative, got {!r}".format(window))
        return window or DEFAULT_WINDOWS[self.settings.type]

    def generate_window(self, window: int = 0) -> Iterator[int]:
        """
        Lazily yield the 2*window+1 raw codes for
        [current - window, current + window].

        ``window`` of 0 selects the default (1 for TOTP, 2 for HOTP). The
        centre is read when the first code is pulled; the stored HOTP
        counter is never advanced by the walk.
        """
        return self._walk(self._resolve_window(window))

    def _walk(self, window: int) -> Iterator[int]:
        centre = self.settings.current_value()
        for value in range(centre - window, centre + window + 1):
            yield self.raw_code_for(value)

    # --- verification ------------------------------------------------------
    def find_offset(self, code: Union[str, int], window: int = 0) -> Optional[int]:
        """
        Offset (relative to the window centre) of the first window code that
        matches ``code``, or None.

        String codes may contain spaces or dashes ("123 456").
        """
        expected = _normalize_code(code, self.settings.digits)
        if expected is None:
            return None

        window = self._resolve_window(window)
        for index, candidate in enumerate(self._walk(window)):
            if hmac.compare_digest(str(candidate).zfill(self.settings.digits), expected):
                return index - window
        return None

    def verify(self, code: Union[str, int], window: int = 0) -> bool:
        return self.find_offset(code, window) is not None

    # --- otpauth URI -------------------------------------------------------
    def to_uri(self) -> str:
        return self.settings.to_uri()

    @staticmethod
    def parse_uri(uri: str) -> "OtpGenerator":
        return OtpGenerator(OtpGeneratorSettings.parse_uri(uri))

    def __repr__(self):
        return "<OtpGenerator {!r}>".format(self.settings)


def _normalize_code(code: Union[str, int], digits: int) -> Optional[str]:
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        if code < 0:
            return None
        text = str(code).zfill(digits)
    elif isinstance(code, str):
        text = code.replace(" ", "").replace("-", "")
    else:
        return None
    if len(text) != digits or not (text.isascii() and text.isdigit()):
        return None
    return text
