"""
names.py — Identifier sets and the case-insensitive name resolver.

Configuration strings (CLI flags, otpauth query parameters, JSON bodies) name
algorithms, encodings and generator types in many spellings: "SHA1", "sha-1",
"sha 1", "b32", "Base32", "totp", ... This module maps all of them onto enum
members.

The alias table for each enum type is built lazily on first lookup and cached
for the lifetime of the process. Building is deterministic, so two threads
racing on the first lookup produce identical tables and either one may win.
"""

import enum
import functools
import logging
from typing import Dict, Optional, Type, TypeVar, Union

from .errors import InvalidArgument

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=enum.Enum)


class HmacAlgorithm(enum.Enum):
    MD5 = 1
    SHA1 = 2
    SHA256 = 3
    SHA384 = 4
    SHA512 = 5


class ByteEncoding(enum.Enum):
    BASE16 = 1
    BASE32 = 2
    BASE64 = 3


class ChallengeType(enum.Enum):
    COUNTER = 1     # HOTP, RFC 4226
    TIME = 2        # TOTP, RFC 6238


class CodeTransformer(enum.Enum):
    # RFC 4226 dynamic truncation, also used by Google Authenticator
    RFC4226 = 1


# Accepted spellings per member. Members without an entry resolve by name.
ALIASES = {
    HmacAlgorithm: {
        HmacAlgorithm.MD5: ("md5", "md 5", "md-5"),
        HmacAlgorithm.SHA1: ("sha1", "sha 1", "sha-1"),
        HmacAlgorithm.SHA256: ("sha256", "sha 256", "sha-256"),
        HmacAlgorithm.SHA384: ("sha384", "sha 384", "sha-384"),
        HmacAlgorithm.SHA512: ("sha512", "sha 512", "sha-512"),
    },
    ByteEncoding: {
        ByteEncoding.BASE16: ("base16", "b16", "base 16"),
        ByteEncoding.BASE32: ("base32", "b32", "base 32"),
        ByteEncoding.BASE64: ("base64", "b64", "base 64"),
    },
    ChallengeType: {
        ChallengeType.TIME: ("totp", "time"),
        ChallengeType.COUNTER: ("hotp", "counter"),
    },
    CodeTransformer: {
        CodeTransformer.RFC4226: ("rfc", "rfc4226", "rfc 4226", "google", "google authenticator"),
    },
}


@functools.lru_cache(maxsize=None)
def _alias_table(enum_type: Type[E]) -> Dict[str, E]:
    aliases = ALIASES.get(enum_type, {})
    table = {}
    for member in enum_type:
        for alias in aliases.get(member, (member.name,)):
            table[alias.casefold()] = member
    logger.debug("Built alias table for %s (%d names)", enum_type.__name__, len(table))
    return table


def try_resolve(enum_type: Type[E], name: Union[str, E, None]) -> Optional[E]:
    """
    Look up ``name`` in the alias table of ``enum_type``.

    Returns the enum member, or None if nothing matches. A value that is
    already a member of ``enum_type`` is returned unchanged.
    """
    if isinstance(name, enum_type):
        return name
    if not isinstance(name, str):
        return None
    return _alias_table(enum_type).get(name.strip().casefold())


def resolve(enum_type: Type[E], name: Union[str, E], kind: str = None) -> E:
    """
    Same as try_resolve() but raises InvalidArgument on unknown names.

    Arguments:
        enum_type: identifier set to search
        name: alias string (any case) or enum member
        kind: human readable name for the error message ("algorithm", ...)
    Raises:
        InvalidArgument: no alias matches ``name``
    """
    member = try_resolve(enum_type, name)
    if member is None:
        raise InvalidArgument("Unrecognized {} name: {!r}".format(kind or enum_type.__name__, name))
    return member


def parse_algorithm(name: Union[str, HmacAlgorithm]) -> HmacAlgorithm:
    return resolve(HmacAlgorithm, name, "algorithm")


def parse_encoding(name: Union[str, ByteEncoding]) -> ByteEncoding:
    return resolve(ByteEncoding, name, "encoding")


def parse_challenge_type(name: Union[str, ChallengeType]) -> ChallengeType:
    return resolve(ChallengeType, name, "challenge type")


def parse_transformer(name: Union[str, CodeTransformer]) -> CodeTransformer:
    return resolve(CodeTransformer, name, "transformer")
