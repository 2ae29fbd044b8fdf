"""
codes.py — Turning a MAC digest into the digits a user types.

Two steps:

- Dynamic truncation (RFC 4226 §5.3):
  offset = last_byte & 0x0F, read 4 bytes from offset as a big-endian
  integer and clear the top bit -> non-negative 31-bit number.

- Formatting:
  raw code = number mod 10^digits, zero-padded to exactly ``digits``
  characters, optionally split into groups ("123 456", "12 345 678").
"""

import struct
from typing import Optional, Union

from .errors import ComputationFailure, InvalidArgument
from .names import CodeTransformer, parse_transformer

# --- Config / constants ----------------------------------------------------
MIN_DIGITS = 2
MAX_DIGITS = 9
POWERS_OF_10 = tuple(10 ** i for i in range(MAX_DIGITS + 1))


# --- Dynamic truncation ----------------------------------------------------
class Rfc4226Transformer:
    """RFC 4226 dynamic truncation, as used by Google Authenticator."""

    kind = CodeTransformer.RFC4226

    def try_transform(self, digest: bytes) -> Optional[int]:
        """
        Apply dynamic truncation to an HMAC digest.

        Returns:
            31-bit non-negative integer, or None if the digest is too short
            for the offset encoded in its last byte.
        """
        if not digest:
            return None
        offset = digest[-1] & 0x0F
        if len(digest) < offset + 4:
            return None
        (value,) = struct.unpack_from(">I", digest, offset)
        return value & 0x7FFFFFFF

    def transform(self, digest: bytes) -> int:
        number = self.try_transform(digest)
        if number is None:
            raise ComputationFailure("Digest of {} bytes is too short to truncate".format(len(digest)))
        return number


_TRANSFORMERS = {
    CodeTransformer.RFC4226: Rfc4226Transformer(),
}


def transformer_for(kind: CodeTransformer) -> Rfc4226Transformer:
    try:
        return _TRANSFORMERS[kind]
    except (KeyError, TypeError):
        raise InvalidArgument("Unrecognized transformer: {!r}".format(kind)) from None


def transformer_from_name(name: Union[str, CodeTransformer]) -> Rfc4226Transformer:
    return transformer_for(parse_transformer(name))


# --- Formatting ------------------------------------------------------------
def valid_digits(digits: int) -> bool:
    return isinstance(digits, int) and not isinstance(digits, bool) and MIN_DIGITS <= digits <= MAX_DIGITS


def check_digits(digits: int) -> int:
    if not valid_digits(digits):
        raise InvalidArgument(
            "Number of digits must be between {} and {}, got {!r}".format(MIN_DIGITS, MAX_DIGITS, digits)
        )
    return digits


def raw_code(number: int, digits: int) -> int:
    """The comparable code value: ``number mod 10^digits``."""
    return number % POWERS_OF_10[check_digits(digits)]


def group_count(digits: int, group_size: int) -> int:
    """
    Number of separators inserted by format_grouped().

    n = digits // group_size, minus one when group_size divides digits
    evenly (the leftmost group would otherwise be empty).
    """
    n, m = divmod(digits, group_size)
    if n and not m:
        n -= 1
    return n


def try_format(number: int, digits: int) -> Optional[str]:
    if not valid_digits(digits):
        return None
    return str(number % POWERS_OF_10[digits]).zfill(digits)


def try_format_grouped(number: int, digits: int, group_size: int, separator: str = " ") -> Optional[str]:
    """
    Format a code and split it into groups counted from the right.

    The rightmost groups hold exactly ``group_size`` digits, the leftmost one
    holds whatever is left. Returns None for invalid digits, group sizes
    below 1 or a separator that is not a single character.
    """
    if not valid_digits(digits) or group_size < 1 or len(separator) != 1:
        return None
    text = try_format(number, digits)
    n = group_count(digits, group_size)
    if n == 0:
        return text

    head = digits - n * group_size
    groups = [text[:head]]
    groups.extend(text[i:i + group_size] for i in range(head, digits, group_size))
    return separator.join(groups)


def format_code(number: int, digits: int) -> str:
    """
    Zero-padded decimal rendering of ``number mod 10^digits``.

    Raises:
        InvalidArgument: digits outside [2, 9]
    """
    check_digits(digits)
    return try_format(number, digits)


def format_grouped(number: int, digits: int, group_size: int, separator: str = " ") -> str:
    """
    Grouped variant of format_code(), e.g. (1234567890, 8, 3) -> "34 567 890".

    Raises:
        InvalidArgument: digits outside [2, 9], group_size < 1 or a separator
            that is not exactly one character
    """
    check_digits(digits)
    if group_size < 1:
        raise InvalidArgument("Group size must be positive, got {!r}".format(group_size))
    if len(separator) != 1:
        raise InvalidArgument("Separator must be a single character, got {!r}".format(separator))
    return try_format_grouped(number, digits, group_size, separator)
