#!/usr/bin/env python3
"""
otp_cli.py — Command line front end for otpkit.

Generator configuration is passed around as an otpauth:// URI, either on the
command line (--uri) or in a text file holding one (--uri-file).

Subcommands:
- init   : create new settings with a random secret, print the otpauth URI
- code   : print the current code (HOTP: also print the advanced URI)
- window : print the codes around the current counter
- verify : check a code against the window
- show   : print the parsed settings
- watch  : show TOTP codes in real time

eg..:
    otpkit init --type totp --label alice@example --issuer MyService
    otpkit code --uri "otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP" --group 3
    otpkit verify --uri-file alice.uri --code 123456 --window 2
    otpkit --verbose code --uri-file alice.uri
"""

import argparse
import logging
import sys
import time

from .encoding import codec_for
from .errors import OtpError
from .names import ChallengeType
from .otp_generator import OtpGenerator
from .settings import (
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    HotpGeneratorSettings,
    TotpGeneratorSettings,
)

logger = logging.getLogger(__name__)


def load_uri(args) -> str:
    if args.uri:
        return args.uri
    with open(args.uri_file, "r", encoding="utf-8") as f:
        return f.read().strip()


def load_generator(args) -> OtpGenerator:
    return OtpGenerator.parse_uri(load_uri(args))


# --- CLI command handlers ---
def cmd_help(args):
    print("No command specified. Use -h for help.")
    return 1


def cmd_init(args):
    options = dict(
        secret_encoding=args.encoding,
        algorithm=args.algorithm,
        digits=args.digits,
    )
    if args.type == "hotp":
        settings = HotpGeneratorSettings.generate(args.label, args.issuer, counter=args.counter, **options)
    else:
        settings = TotpGeneratorSettings.generate(args.label, args.issuer, period=args.period, **options)

    logger.debug("Generated %d-bit secret for %r", len(settings.secret) * 8, settings.label)
    print(settings.to_uri())
    return 0


def cmd_code(args):
    generator = load_generator(args)
    settings = generator.settings
    code = generator.generate(group_size=args.group, offset=args.offset)
    if settings.type is ChallengeType.COUNTER:
        print(code)
        # the counter moved; the caller has to persist the new state
        print(generator.to_uri())
    else:
        print("{}  (valid ~{:2d}s)".format(code, settings.remaining_seconds()))
    return 0


def cmd_window(args):
    generator = load_generator(args)
    digits = generator.settings.digits
    codes = list(generator.generate_window(args.window))
    half = len(codes) // 2
    for index, raw in enumerate(codes):
        print("{:+d}: {}".format(index - half, str(raw).zfill(digits)))
    logger.debug("Window of %d codes around the current counter", len(codes))
    return 0


def cmd_verify(args):
    generator = load_generator(args)
    offset = generator.find_offset(args.code, args.window)
    if offset is None:
        print("[-] Code is INVALID")
        return 1
    print("[+] Code is VALID (offset {:+d})".format(offset))
    return 0


def cmd_show(args):
    settings = load_generator(args).settings
    print("type:       {}".format(settings.type.name.lower()))
    print("label:      {}".format(settings.label))
    print("issuer:     {}".format(settings.issuer))
    print("algorithm:  {}".format(settings.algorithm.name))
    print("digits:     {}".format(settings.digits))
    print("encoding:   {}".format(settings.secret_encoding.name.lower()))
    if settings.additional:
        print("additional: {}".format(codec_for(settings.secret_encoding).encode(settings.additional)))
    if settings.type is ChallengeType.COUNTER:
        print("counter:    {}".format(settings.counter))
    else:
        print("period:     {}".format(settings.period))
    return 0


def cmd_watch(args):
    generator = load_generator(args)
    settings = generator.settings
    if settings.type is not ChallengeType.TIME:
        print("[!] watch only works with TOTP settings", file=sys.stderr)
        return 1

    print("Press Ctrl+C to quit. Generating TOTP in real time...\n")
    last_code = None
    try:
        while True:
            code = generator.generate(group_size=args.group)
            remaining = settings.remaining_seconds()
            if code != last_code:
                print("TOTP: {}  (valid ~{:2d}s)".format(code, remaining))
                last_code = code
            else:
                print(".. {:2d}s left".format(remaining), end="\r", flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")
    return 0


# --- Argparse builder ---
def _add_source(p: argparse.ArgumentParser):
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--uri", help="otpauth:// URI")
    source.add_argument("--uri-file", help="File containing an otpauth:// URI")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="otpkit", description="HOTP/TOTP generator working on otpauth:// URIs")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help)

    # init
    pi = sub.add_parser("init", help="Generate new settings with a random secret; print the otpauth URI")
    pi.add_argument("--type", choices=("totp", "hotp"), default="totp")
    pi.add_argument("--label", default="user@example", help="Label for the otpauth URI")
    pi.add_argument("--issuer", default="otpkit", help="Issuer for the otpauth URI")
    pi.add_argument("--digits", type=int, default=DEFAULT_DIGITS, help="Number of OTP digits")
    pi.add_argument("--period", type=int, default=DEFAULT_PERIOD, help="TOTP time step (seconds)")
    pi.add_argument("--algorithm", default="sha1", help="HMAC algorithm (md5, sha1, sha256, sha384, sha512)")
    pi.add_argument("--encoding", default="base32", help="Secret encoding (base16, base32, base64)")
    pi.add_argument("--counter", type=int, help="Initial HOTP counter (random if omitted)")
    pi.set_defaults(func=cmd_init)

    # code
    pc = sub.add_parser("code", help="Print the current code")
    _add_source(pc)
    pc.add_argument("--group", type=int, default=0, help="Digits per group (0 = no grouping)")
    pc.add_argument("--offset", type=int, default=0, help="Counter offset")
    pc.set_defaults(func=cmd_code)

    # window
    pw = sub.add_parser("window", help="Print the codes around the current counter")
    _add_source(pw)
    pw.add_argument("--window", type=int, default=0, help="Codes on each side (0 = default)")
    pw.set_defaults(func=cmd_window)

    # verify
    pv = sub.add_parser("verify", help="Verify a code")
    _add_source(pv)
    pv.add_argument("--code", required=True, help="OTP code to verify")
    pv.add_argument("--window", type=int, default=0, help="Allowed +/- drift (0 = default)")
    pv.set_defaults(func=cmd_verify)

    # show
    ps = sub.add_parser("show", help="Print the parsed settings")
    _add_source(ps)
    ps.set_defaults(func=cmd_show)

    # watch
    pt = sub.add_parser("watch", help="Show TOTP codes in real time")
    _add_source(pt)
    pt.add_argument("--group", type=int, default=0, help="Digits per group (0 = no grouping)")
    pt.set_defaults(func=cmd_watch)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[+] %(message)s")
    try:
        return args.func(args)
    except OtpError as e:
        print("[!] {}".format(e), file=sys.stderr)
        return 1
    except OSError as e:
        print("[!] Could not read URI file: {}".format(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
