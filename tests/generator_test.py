# coding: utf-8

import hashlib
import hmac
import struct
import threading
import unittest
from unittest import mock

import pyotp

from otpkit.encoding import Base32Codec
from otpkit.errors import InvalidArgument
from otpkit.names import HmacAlgorithm
from otpkit.otp_generator import OtpGenerator
from otpkit.settings import HotpGeneratorSettings, TotpGeneratorSettings

OTP1_URI = ("otpauth://hotp/ACME%20Co:john@example.com?secret=HXDMVJECJJWSRB3HWIZR4IFUGFTMXBOZ"
            "&issuer=ACME%20Co&algorithm=SHA1&digits=6&counter=53317182")
OTP2_URI = ("otpauth://hotp/ACME%20Co:john@example.com?secret=DGW24UIKQZBELXEMY64PICAL5IGYMJM6"
            "&issuer=ACME%20Co&algorithm=SHA1&digits=6&counter=53317347")

RFC4226_SECRET = b"12345678901234567890"
RFC4226_CODES = ["755224", "287082", "359152", "969429", "338314",
                 "254676", "287922", "162583", "399871", "520489"]

RFC6238_SECRETS = {
    HmacAlgorithm.SHA1: b"12345678901234567890",
    HmacAlgorithm.SHA256: b"12345678901234567890123456789012",
    HmacAlgorithm.SHA512: b"1234567890123456789012345678901234567890123456789012345678901234",
}
RFC6238_CODES = [
    (59, "94287082", "46119246", "90693936"),
    (1111111109, "07081804", "68084774", "25091201"),
    (1111111111, "14050471", "67062674", "99943326"),
    (1234567890, "89005924", "91819424", "93441116"),
    (2000000000, "69279037", "90698825", "38618901"),
    (20000000000, "65353130", "77737706", "47863826"),
]

CLOCK = "otpkit.settings.time.time"


def hotp(counter=0, **kwargs):
    return OtpGenerator(HotpGeneratorSettings("alice", "ACME", RFC4226_SECRET, counter=counter, **kwargs))


class ReferenceUriTestCase(unittest.TestCase):
    def test_first_uri(self):
        otp = OtpGenerator.parse_uri(OTP1_URI)
        self.assertEqual(otp.generate_raw(), 586785)
        self.assertEqual(otp.generate_raw(1), 221484)

    def test_second_uri(self):
        otp = OtpGenerator.parse_uri(OTP2_URI)
        self.assertEqual(otp.generate_raw(), 958891)
        self.assertEqual(otp.generate_raw(3), 799448)

    def test_agrees_with_pyotp(self):
        secret = "HXDMVJECJJWSRB3HWIZR4IFUGFTMXBOZ"
        otp = OtpGenerator.parse_uri(OTP1_URI)
        oracle = pyotp.HOTP(secret)
        for counter in range(53317182, 53317192):
            self.assertEqual(otp.generate(), oracle.at(counter))


class HotpTestCase(unittest.TestCase):
    def test_rfc4226_appendix_d(self):
        otp = hotp(0)
        for counter, expected in enumerate(RFC4226_CODES):
            self.assertEqual(otp.raw_code_for(counter), int(expected))
        for expected in RFC4226_CODES:
            self.assertEqual(otp.generate(), expected)
        self.assertEqual(otp.settings.counter, len(RFC4226_CODES))

    def test_offset_is_applied_after_advancing(self):
        otp = hotp(0)
        self.assertEqual(otp.generate(offset=4), RFC4226_CODES[4])
        self.assertEqual(otp.settings.counter, 1)
        self.assertEqual(otp.generate_raw(-1), int(RFC4226_CODES[0]))

    def test_grouped_output(self):
        otp = hotp(0)
        self.assertEqual(otp.generate(group_size=3), "755 224")
        self.assertEqual(otp.generate(group_size=2), "28 70 82")

    def test_additional_data(self):
        otp = hotp(7, additional=b"ctx")
        digest = hmac.new(RFC4226_SECRET, struct.pack(">q", 7) + b"ctx", hashlib.sha1).digest()
        offset = digest[-1] & 0x0F
        number = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
        self.assertEqual(otp.generate_raw(), number % 10 ** 6)
        self.assertNotEqual(otp.raw_code_for(7), hotp(7).raw_code_for(7))

    def test_concurrent_generation_consumes_each_counter_once(self):
        start = 500
        otp = hotp(start)
        per_thread, thread_count = 50, 8
        codes = []
        lock = threading.Lock()

        def worker():
            produced = [otp.generate_raw() for _ in range(per_thread)]
            with lock:
                codes.extend(produced)

        threads = [threading.Thread(target=worker) for _ in range(thread_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        total = per_thread * thread_count
        reference = hotp(0)
        expected = [reference.raw_code_for(c) for c in range(start, start + total)]
        self.assertEqual(sorted(codes), sorted(expected))
        self.assertEqual(otp.settings.counter, start + total)


class TotpTestCase(unittest.TestCase):
    def test_rfc6238_vectors(self):
        algorithms = (HmacAlgorithm.SHA1, HmacAlgorithm.SHA256, HmacAlgorithm.SHA512)
        for row in RFC6238_CODES:
            timestamp, expected = row[0], row[1:]
            for algorithm, code in zip(algorithms, expected):
                with self.subTest(time=timestamp, algorithm=algorithm.name):
                    settings = TotpGeneratorSettings("alice", "", RFC6238_SECRETS[algorithm],
                                                     algorithm=algorithm, digits=8)
                    with mock.patch(CLOCK, return_value=timestamp):
                        self.assertEqual(OtpGenerator(settings).generate(), code)

    def test_agrees_with_pyotp(self):
        secret = b"\x13\x37" * 10
        settings = TotpGeneratorSettings("alice", "", secret, algorithm="sha256", digits=7, period=45)
        oracle = pyotp.TOTP(Base32Codec().encode(secret), digits=7, digest=hashlib.sha256, interval=45)
        otp = OtpGenerator(settings)
        for timestamp in (0, 44, 45, 1600000000, 1700000123):
            with mock.patch(CLOCK, return_value=timestamp):
                self.assertEqual(otp.generate(), oracle.at(timestamp))

    def test_generation_does_not_change_state(self):
        settings = TotpGeneratorSettings("alice", "", RFC4226_SECRET)
        otp = OtpGenerator(settings)
        with mock.patch(CLOCK, return_value=1000):
            self.assertEqual(otp.generate(), otp.generate())
            self.assertEqual(otp.generate_raw(1), otp.raw_code_for(1000 // 30 + 1))


class WindowTestCase(unittest.TestCase):
    def test_default_hotp_window(self):
        otp = hotp(5)
        codes = list(otp.generate_window())
        self.assertEqual(codes, [int(c) for c in RFC4226_CODES[3:8]])
        self.assertEqual(otp.settings.counter, 5)

    def test_explicit_window(self):
        otp = hotp(5)
        self.assertEqual(len(list(otp.generate_window(4))), 9)
        self.assertEqual(list(otp.generate_window(1)), [int(c) for c in RFC4226_CODES[4:7]])

    def test_default_totp_window(self):
        settings = TotpGeneratorSettings("alice", "", RFC4226_SECRET)
        otp = OtpGenerator(settings)
        with mock.patch(CLOCK, return_value=30 * 5 + 3):
            codes = list(otp.generate_window())
        self.assertEqual(codes, [int(c) for c in RFC4226_CODES[4:7]])

    def test_window_is_lazy(self):
        otp = hotp(5)
        walk = otp.generate_window(1)
        otp.settings.counter_value()
        self.assertEqual(next(walk), int(RFC4226_CODES[5]))

    def test_negative_window(self):
        with self.assertRaises(InvalidArgument):
            hotp(5).generate_window(-1)


class VerifyTestCase(unittest.TestCase):
    def test_find_offset(self):
        otp = hotp(5)
        self.assertEqual(otp.find_offset(RFC4226_CODES[5]), 0)
        self.assertEqual(otp.find_offset(RFC4226_CODES[6]), 1)
        self.assertEqual(otp.find_offset(RFC4226_CODES[3]), -2)
        self.assertIsNone(otp.find_offset(RFC4226_CODES[8]))
        self.assertEqual(otp.find_offset(RFC4226_CODES[8], window=3), 3)
        self.assertEqual(otp.settings.counter, 5)

    def test_code_forms(self):
        otp = hotp(0)
        self.assertTrue(otp.verify("755 224"))
        self.assertTrue(otp.verify("755-224"))
        self.assertTrue(otp.verify(755224))
        self.assertFalse(otp.verify("75522"))
        self.assertFalse(otp.verify("75522x"))
        self.assertFalse(otp.verify(-755224))
        self.assertFalse(otp.verify(True))
        self.assertFalse(otp.verify(None))

    def test_integer_code_with_leading_zero(self):
        settings = TotpGeneratorSettings("alice", "", RFC6238_SECRETS[HmacAlgorithm.SHA1], digits=8)
        otp = OtpGenerator(settings)
        with mock.patch(CLOCK, return_value=1111111109):
            self.assertTrue(otp.verify(7081804))
            self.assertTrue(otp.verify("07081804"))

    def test_totp_drift(self):
        settings = TotpGeneratorSettings("alice", "", RFC4226_SECRET)
        otp = OtpGenerator(settings)
        with mock.patch(CLOCK, return_value=29):
            previous = otp.generate()
        with mock.patch(CLOCK, return_value=59):
            self.assertEqual(otp.find_offset(previous), -1)
        with mock.patch(CLOCK, return_value=89):
            self.assertIsNone(otp.find_offset(previous))
            self.assertEqual(otp.find_offset(previous, window=2), -2)


class GeneratorUriTestCase(unittest.TestCase):
    def test_uri_tracks_counter(self):
        otp = OtpGenerator.parse_uri(OTP1_URI)
        self.assertEqual(otp.to_uri(), OTP1_URI)
        otp.generate()
        self.assertIn("counter=53317183", otp.to_uri())

    def test_rejects_non_settings(self):
        with self.assertRaises(InvalidArgument):
            OtpGenerator(OTP1_URI)


if __name__ == "__main__":
    unittest.main()
