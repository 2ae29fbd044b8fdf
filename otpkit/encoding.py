"""
encoding.py — Byte codecs (Base16 / Base32 / Base64) for secrets and extra data.

Every codec exposes the same contract:

- estimate_encoded_size(n) / estimate_decoded_size(n): upper bounds, may
  over-estimate.
- try_encode(data) -> str | None, try_decode(text) -> bytes | None: never
  raise on malformed input, return None instead.
- encode(data) / decode(text): same, but raise EncodingFailure.

Output of Base32 and Base64 is unpadded (no trailing '='); decoders accept
both padded and unpadded text.
"""

import abc
import base64
import binascii
from typing import Optional, Union

from .errors import EncodingFailure, InvalidArgument
from .names import ByteEncoding, parse_encoding

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_BASE32_VALUES = {c: i for i, c in enumerate(BASE32_ALPHABET)}
_BASE32_VALUES.update({c.lower(): i for c, i in list(_BASE32_VALUES.items())})


class ByteCodec(abc.ABC):
    """Converts raw bytes to text and back."""

    encoding = None  # type: ByteEncoding

    @abc.abstractmethod
    def estimate_encoded_size(self, size: int) -> int:
        pass

    @abc.abstractmethod
    def estimate_decoded_size(self, size: int) -> int:
        pass

    @abc.abstractmethod
    def try_encode(self, data: bytes) -> Optional[str]:
        pass

    @abc.abstractmethod
    def try_decode(self, text: str) -> Optional[bytes]:
        pass

    def encode(self, data: bytes) -> str:
        result = self.try_encode(data)
        if result is None:
            raise EncodingFailure("Could not encode data as {}".format(self.encoding.name.lower()))
        return result

    def decode(self, text: str) -> bytes:
        result = self.try_decode(text)
        if result is None:
            raise EncodingFailure("Invalid {} text: {!r}".format(self.encoding.name.lower(), text))
        return result

    def __repr__(self):
        return "<{}>".format(type(self).__name__)


class Base16Codec(ByteCodec):
    encoding = ByteEncoding.BASE16

    def estimate_encoded_size(self, size):
        return size * 2

    def estimate_decoded_size(self, size):
        return size // 2

    def try_encode(self, data):
        return bytes(data).hex().upper()

    def try_decode(self, text):
        # unhexlify rejects odd lengths and non-hex characters
        try:
            return binascii.unhexlify(text)
        except (binascii.Error, ValueError, TypeError):
            return None


class Base32Codec(ByteCodec):
    """
    RFC 4648 Base32 without padding.

    Encoding packs the input MSB-first into 5-bit symbols; the last symbol is
    zero-filled in its low bits. Decoding is case-insensitive, stops at the
    first '=' and emits a byte whenever 8 bits are buffered. Bits left over
    after the last full byte are dropped without checking them.
    """

    encoding = ByteEncoding.BASE32

    def estimate_encoded_size(self, size):
        return (size * 8 + 4) // 5

    def estimate_decoded_size(self, size):
        return size * 5 // 8

    def try_encode(self, data):
        out = []
        buffer = 0
        bits = 0
        for byte in bytes(data):
            buffer = (buffer << 8) | byte
            bits += 8
            while bits >= 5:
                bits -= 5
                out.append(BASE32_ALPHABET[(buffer >> bits) & 0x1F])
            buffer &= (1 << bits) - 1
        if bits:
            out.append(BASE32_ALPHABET[(buffer << (5 - bits)) & 0x1F])
        return "".join(out)

    def try_decode(self, text):
        if not isinstance(text, str):
            return None
        out = bytearray()
        buffer = 0
        bits = 0
        for char in text:
            if char == "=":
                break
            value = _BASE32_VALUES.get(char)
            if value is None:
                return None
            buffer = (buffer << 5) | value
            bits += 5
            if bits >= 8:
                bits -= 8
                out.append((buffer >> bits) & 0xFF)
                buffer &= (1 << bits) - 1
        return bytes(out)


class Base64Codec(ByteCodec):
    encoding = ByteEncoding.BASE64

    def estimate_encoded_size(self, size):
        return ((4 * size // 3) + 3) & ~3

    def estimate_decoded_size(self, size):
        # unpadded input is padded back up before decoding
        return (size + 3) // 4 * 3

    def try_encode(self, data):
        return base64.b64encode(bytes(data)).decode("ascii").rstrip("=")

    def try_decode(self, text):
        if not isinstance(text, str):
            return None
        padded = text + "=" * (-len(text) % 4)
        try:
            return base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError):
            return None


_CODECS = {
    ByteEncoding.BASE16: Base16Codec(),
    ByteEncoding.BASE32: Base32Codec(),
    ByteEncoding.BASE64: Base64Codec(),
}


def codec_for(encoding: ByteEncoding) -> ByteCodec:
    """
    Return the codec for an encoding id.

    Raises:
        InvalidArgument: ``encoding`` is not a known ByteEncoding
    """
    try:
        return _CODECS[encoding]
    except (KeyError, TypeError):
        raise InvalidArgument("Unrecognized encoding: {!r}".format(encoding)) from None


def codec_from_name(name: Union[str, ByteEncoding]) -> ByteCodec:
    return codec_for(parse_encoding(name))
