"""
uri.py — The otpauth:// wire format.

    otpauth://{type}/{label}?secret=...&issuer=...&algorithm=...&digits=...
              [&encoding=...][&additional=...]&counter=... | &period=...

This module only deals with the URI envelope: scheme, type host, the
URL-encoded label and the query string. Mapping query parameters onto
generator settings is done by ``settings.py``.

Note: the label is an opaque string here. "Issuer:account" labels are kept
as-is and never split.
"""

import logging
from typing import Dict, Iterable, Tuple
from urllib.parse import parse_qsl, quote, unquote_plus, urlencode, urlsplit

from .errors import InvalidArgument
from .names import ChallengeType, parse_challenge_type

logger = logging.getLogger(__name__)

SCHEME = "otpauth"
TYPE_HOSTS = {
    ChallengeType.TIME: "totp",
    ChallengeType.COUNTER: "hotp",
}

PARAM_SECRET = "secret"
PARAM_ISSUER = "issuer"
PARAM_ALGORITHM = "algorithm"
PARAM_DIGITS = "digits"
PARAM_ENCODING = "encoding"
PARAM_ADDITIONAL = "additional"
PARAM_COUNTER = "counter"
PARAM_PERIOD = "period"


def build_uri(challenge_type: ChallengeType, label: str, params: Iterable[Tuple[str, str]]) -> str:
    """
    Assemble an otpauth URI.

    Arguments:
        challenge_type: selects the "totp" or "hotp" host
        label: display label, URL-encoded into the path
        params: ordered (name, value) pairs for the query string

    Raises:
        InvalidArgument: unknown challenge type
    """
    try:
        host = TYPE_HOSTS[challenge_type]
    except (KeyError, TypeError):
        raise InvalidArgument("Unrecognized challenge type: {!r}".format(challenge_type)) from None

    query = urlencode(list(params), quote_via=quote)
    return "{}://{}/{}?{}".format(SCHEME, host, quote(label, safe=":@"), query)


def split_uri(uri: str) -> Tuple[ChallengeType, str, Dict[str, str]]:
    """
    Break an otpauth URI into (type, label, parameters).

    Parameter names are lower-cased; when a parameter repeats the first
    occurrence wins. Values are URL-decoded.

    Raises:
        InvalidArgument: not an otpauth URI or unknown type host
    """
    if not isinstance(uri, str):
        raise InvalidArgument("URI must be a string, got {!r}".format(type(uri).__name__))

    parts = urlsplit(uri.strip())
    if parts.scheme.lower() != SCHEME:
        raise InvalidArgument("Supplied URI is not an otpauth URI: scheme {!r}".format(parts.scheme))

    challenge_type = parse_challenge_type(parts.netloc)
    # decoded like the query values: "+" is a space
    label = unquote_plus(parts.path[1:] if parts.path.startswith("/") else parts.path)

    params = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key.lower(), value)

    logger.debug("Split otpauth URI: type=%s label=%r params=%s", challenge_type.name, label, sorted(params))
    return challenge_type, label, params
