# coding: utf-8

import base64
import os
import unittest

from otpkit.encoding import Base16Codec, Base32Codec, Base64Codec, codec_for, codec_from_name
from otpkit.errors import EncodingFailure, InvalidArgument
from otpkit.names import ByteEncoding


DECODE_CASES = [
    (ByteEncoding.BASE16, "6E6F7065", b"nope"),
    (ByteEncoding.BASE16, "6e6f7065", b"nope"),
    (ByteEncoding.BASE32, "ORSXG5A", b"test"),
    (ByteEncoding.BASE32, "ORSXG5A=", b"test"),
    (ByteEncoding.BASE32, "orSXG5A", b"test"),
    (ByteEncoding.BASE32, "MFZWIZTH", b"asdfg"),
    (ByteEncoding.BASE64, "dGVzdA", b"test"),
    (ByteEncoding.BASE64, "dGVzdA==", b"test"),
    (ByteEncoding.BASE64, "YXNk", b"asd"),
]

ENCODE_CASES = [
    (ByteEncoding.BASE16, b"nope", "6E6F7065"),
    (ByteEncoding.BASE32, b"test", "ORSXG5A"),
    (ByteEncoding.BASE32, b"asdfg", "MFZWIZTH"),
    (ByteEncoding.BASE64, b"test", "dGVzdA"),
    (ByteEncoding.BASE64, b"asd", "YXNk"),
]


class EncodingTestCase(unittest.TestCase):
    def test_decoding(self):
        for encoding, text, expected in DECODE_CASES:
            with self.subTest(encoding=encoding, text=text):
                codec = codec_for(encoding)
                result = codec.try_decode(text)
                self.assertEqual(result, expected)
                self.assertLessEqual(len(result), codec.estimate_decoded_size(len(text)))

    def test_encoding(self):
        for encoding, data, expected in ENCODE_CASES:
            with self.subTest(encoding=encoding, data=data):
                codec = codec_for(encoding)
                result = codec.try_encode(data)
                self.assertEqual(result, expected)
                self.assertLessEqual(len(result), codec.estimate_encoded_size(len(data)))

    def test_round_trip(self):
        samples = [b"", b"\x00", b"\xff\xfe", b"12345678901234567890", os.urandom(37)]
        for codec in (Base16Codec(), Base32Codec(), Base64Codec()):
            for data in samples:
                with self.subTest(codec=codec, data=data):
                    self.assertEqual(codec.decode(codec.encode(data)), data)

    def test_base32_matches_stdlib(self):
        codec = Base32Codec()
        for size in range(0, 12):
            data = bytes(range(200, 200 + size))
            expected = base64.b32encode(data).decode("ascii").rstrip("=")
            self.assertEqual(codec.encode(data), expected)

    def test_base32_ignores_text_after_padding(self):
        self.assertEqual(Base32Codec().decode("ORSXG5A=ZZZ"), b"test")

    def test_invalid_base16(self):
        codec = Base16Codec()
        self.assertIsNone(codec.try_decode("ABC"))
        self.assertIsNone(codec.try_decode("ZZ"))
        with self.assertRaises(EncodingFailure):
            codec.decode("0G")

    def test_invalid_base32(self):
        codec = Base32Codec()
        self.assertIsNone(codec.try_decode("ORSXG5A1"))
        self.assertIsNone(codec.try_decode("OR SX"))
        with self.assertRaises(EncodingFailure):
            codec.decode("!!!!")

    def test_invalid_base64(self):
        codec = Base64Codec()
        self.assertIsNone(codec.try_decode("dGVzd"))
        self.assertIsNone(codec.try_decode("dGV*dA"))
        with self.assertRaises(EncodingFailure):
            codec.decode("@@@@")

    def test_base64_decoded_estimate_covers_unpadded_input(self):
        codec = Base64Codec()
        self.assertGreaterEqual(codec.estimate_decoded_size(len("dGVzdA")), 4)

    def test_encoding_failure_is_value_error(self):
        with self.assertRaises(ValueError):
            Base32Codec().decode("1")

    def test_selection_by_name(self):
        self.assertIsInstance(codec_from_name("B32"), Base32Codec)
        self.assertIsInstance(codec_from_name("base 16"), Base16Codec)
        self.assertIsInstance(codec_from_name("Base64"), Base64Codec)
        self.assertIsInstance(codec_from_name(ByteEncoding.BASE64), Base64Codec)
        with self.assertRaises(InvalidArgument):
            codec_from_name("base58")
        with self.assertRaises(InvalidArgument):
            codec_for("base32")


if __name__ == "__main__":
    unittest.main()
