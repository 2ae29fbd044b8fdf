"""
mac.py — HMAC providers for the supported hash algorithms.

A provider computes HMAC(secret, message) for one algorithm. Each call builds
a fresh ``hmac`` object from the key, so a single provider can be shared by
any number of threads without one call ever seeing another call's key.
"""

import hashlib
import hmac
import logging
from typing import Optional, Union

from .errors import ComputationFailure, InvalidArgument
from .names import HmacAlgorithm, parse_algorithm

logger = logging.getLogger(__name__)

# hashlib constructor name for each algorithm
DIGEST_NAMES = {
    HmacAlgorithm.MD5: "md5",
    HmacAlgorithm.SHA1: "sha1",
    HmacAlgorithm.SHA256: "sha256",
    HmacAlgorithm.SHA384: "sha384",
    HmacAlgorithm.SHA512: "sha512",
}


class MacProvider:
    """
    Keyed-hash (HMAC) provider for a single algorithm.

    Attributes:
        algorithm: HmacAlgorithm this provider computes
        output_size: digest length in bytes (MD5=16, SHA1=20, SHA256=32,
            SHA384=48, SHA512=64)
    """

    def __init__(self, algorithm: HmacAlgorithm):
        try:
            self._digest_name = DIGEST_NAMES[algorithm]
        except (KeyError, TypeError):
            raise InvalidArgument("Unrecognized algorithm: {!r}".format(algorithm)) from None
        self.algorithm = algorithm
        self._digestmod = getattr(hashlib, self._digest_name)
        self.output_size = self._digestmod().digest_size

    def try_compute(self, secret: bytes, message: bytes) -> Optional[bytes]:
        """Return HMAC(secret, message), or None if the digest has the wrong size."""
        digest = hmac.new(bytes(secret), bytes(message), self._digestmod).digest()
        if len(digest) != self.output_size:
            return None
        return digest

    def compute(self, secret: bytes, message: bytes) -> bytes:
        digest = self.try_compute(secret, message)
        if digest is None:
            raise ComputationFailure("HMAC-{} produced no output".format(self.algorithm.name))
        return digest

    def __repr__(self):
        return "<MacProvider HMAC-{}>".format(self.algorithm.name)


def provider_for(algorithm: HmacAlgorithm) -> MacProvider:
    """
    Create a provider for an algorithm id.

    Raises:
        InvalidArgument: ``algorithm`` is not a known HmacAlgorithm
    """
    provider = MacProvider(algorithm)
    logger.debug("Selected %r", provider)
    return provider


def provider_from_name(name: Union[str, HmacAlgorithm]) -> MacProvider:
    return provider_for(parse_algorithm(name))
