#!/usr/bin/env python3
"""
Blindkey Command Line Interface

Runs the blinded single-show key exchange, or any of its primitives, from
the shell. All values are read and printed in the 0x-hex wire format.

Usage:
    blindkey keygen
    blindkey pubkey --scalar 0x...
    blindkey multiply --scalar 0x... --point 0x04...
    blindkey hkdf --ikm 0x... [--salt TEXT] [--info TEXT] [--length N]
    blindkey sign --key 0x... --payload TEXT
    blindkey verify --key 0x... --payload TEXT --signature 0x...
    blindkey demo [--producer 0x..] [--validator 0x..] [--blind 0x..] [--json]
    blindkey --version
    blindkey --help

Exit codes: 0 success, 1 error, 2 signature rejected.
"""

import sys
import os
import json
import time
import logging
import argparse

# Add python-core to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'python-core'))

from blindkey import __version__
from blindkey.config import ExchangeConfig
from blindkey.crypto import (
    CryptoError,
    bytes_to_hex,
    hex_to_bytes,
    generate_key_pair,
    public_point,
    scalar_multiply,
    hkdf_derive,
    hmac_sign,
    hmac_verify,
)
from blindkey.exchange import BlindedExchange

logger = logging.getLogger("blindkey.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_REJECTED = 2


def default_payload() -> str:
    """Claims used by the walkthrough when no payload is given."""
    now = int(time.time())
    return json.dumps({"sub": "user123", "iat": now, "exp": now + 3600})


class BlindkeyCLI:
    """Main CLI application for blindkey."""

    def __init__(self, out=None, config=None):
        self.out = out or sys.stdout
        self.config = config

    def run(self, args: list) -> int:
        """Run the CLI with given arguments."""
        if self.config is None:
            try:
                self.config = ExchangeConfig.from_env()
            except ValueError as e:
                print(f"Error: {e}", file=sys.stderr)
                return EXIT_ERROR

        parser = self.create_parser()
        parsed = parser.parse_args(args)

        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.WARNING,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

        if hasattr(parsed, 'func'):
            try:
                return parsed.func(parsed)
            except (CryptoError, ValueError) as e:
                logger.debug("Command failed", exc_info=True)
                print(f"Error: {e}", file=sys.stderr)
                return EXIT_ERROR
        else:
            parser.print_help(self.out)
            return EXIT_OK

    def emit(self, text: str = "") -> None:
        print(text, file=self.out)

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="blindkey",
            description="Blinded ECDH-HKDF single-show HMAC keys",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    blindkey keygen
    blindkey pubkey --scalar 0x01
    blindkey hkdf --ikm 0x6b17d1f2e12c4247f8bce6e563a440f277037d812deb33a0f4a13945d898c296 --info test-info
    blindkey demo --producer 0x01 --validator 0x02 --blind 0x03 --json

Environment:
    BLINDKEY_HKDF_SALT, BLINDKEY_HKDF_INFO, BLINDKEY_KEY_LENGTH
            """
        )

        parser.add_argument(
            '--version',
            action='version',
            version=f'blindkey {__version__}'
        )
        parser.add_argument('--verbose', '-v', action='store_true',
                            help='Enable debug logging')

        subparsers = parser.add_subparsers(title='commands', dest='command')

        self.add_keygen_command(subparsers)
        self.add_pubkey_command(subparsers)
        self.add_multiply_command(subparsers)
        self.add_hkdf_command(subparsers)
        self.add_sign_command(subparsers)
        self.add_verify_command(subparsers)
        self.add_demo_command(subparsers)

        return parser

    def add_keygen_command(self, subparsers):
        """Add keygen command to parser."""
        cmd = subparsers.add_parser('keygen', help='Generate a P-256 key pair')
        cmd.add_argument('--json', action='store_true', help='Output as JSON')
        cmd.set_defaults(func=self.handle_keygen)

    def add_pubkey_command(self, subparsers):
        """Add pubkey command to parser."""
        cmd = subparsers.add_parser('pubkey', help='Compute scalar * G')
        cmd.add_argument('--scalar', '-s', required=True, help='Private scalar (0x hex)')
        cmd.set_defaults(func=self.handle_pubkey)

    def add_multiply_command(self, subparsers):
        """Add multiply command to parser."""
        cmd = subparsers.add_parser('multiply', help='Compute scalar * point (blinding / ECDH)')
        cmd.add_argument('--scalar', '-s', required=True, help='Scalar (0x hex)')
        cmd.add_argument('--point', '-p', required=True, help='Uncompressed point (0x04 hex)')
        cmd.set_defaults(func=self.handle_multiply)

    def add_hkdf_command(self, subparsers):
        """Add hkdf command to parser."""
        cmd = subparsers.add_parser('hkdf', help='HKDF-SHA256 extract and expand')
        cmd.add_argument('--ikm', required=True, help='Input keying material (0x hex)')
        cmd.add_argument('--salt', default=self.config.hkdf_salt, help='Salt text (empty for zero salt)')
        cmd.add_argument('--info', default=self.config.hkdf_info, help='Info text')
        cmd.add_argument('--length', '-l', type=int, default=self.config.key_length,
                         help='Output length in bytes')
        cmd.set_defaults(func=self.handle_hkdf)

    def add_sign_command(self, subparsers):
        """Add sign command to parser."""
        cmd = subparsers.add_parser('sign', help='HMAC-SHA256 sign a payload')
        cmd.add_argument('--key', '-k', required=True, help='HMAC key (0x hex)')
        cmd.add_argument('--payload', required=True, help='Payload text')
        cmd.set_defaults(func=self.handle_sign)

    def add_verify_command(self, subparsers):
        """Add verify command to parser."""
        cmd = subparsers.add_parser('verify', help='Verify an HMAC-SHA256 signature')
        cmd.add_argument('--key', '-k', required=True, help='HMAC key (0x hex)')
        cmd.add_argument('--payload', required=True, help='Payload text')
        cmd.add_argument('--signature', required=True, help='Signature (0x hex)')
        cmd.set_defaults(func=self.handle_verify)

    def add_demo_command(self, subparsers):
        """Add demo command to parser."""
        cmd = subparsers.add_parser('demo', help='Run the full blinded exchange')
        cmd.add_argument('--producer', help='Producer (HSM) scalar d; random if omitted')
        cmd.add_argument('--validator', help='Validator scalar v; random if omitted')
        cmd.add_argument('--blind', help='Blind scalar b; fresh if omitted')
        cmd.add_argument('--salt', default=self.config.hkdf_salt, help='HKDF salt text')
        cmd.add_argument('--info', default=self.config.hkdf_info, help='HKDF info text')
        cmd.add_argument('--payload', help='Payload to sign (default: sample JWT claims)')
        cmd.add_argument('--json', action='store_true', help='Output as JSON')
        cmd.set_defaults(func=self.handle_demo)

    # Command handlers

    def handle_keygen(self, args):
        """Handle keygen command."""
        private, public = generate_key_pair()
        if args.json:
            self.emit(json.dumps({"private": private.hex(), "public": public.to_hex_dict()}, indent=2))
        else:
            self.emit(f"private: {private.hex()}")
            self.emit(f"public:  {public.hex()}")
        return EXIT_OK

    def handle_pubkey(self, args):
        """Handle pubkey command."""
        self.emit(public_point(args.scalar).hex())
        return EXIT_OK

    def handle_multiply(self, args):
        """Handle multiply command."""
        self.emit(scalar_multiply(args.scalar, args.point).hex())
        return EXIT_OK

    def handle_hkdf(self, args):
        """Handle hkdf command."""
        prk, okm = hkdf_derive(hex_to_bytes(args.ikm), args.salt, args.info, args.length)
        self.emit(f"prk: {bytes_to_hex(prk)}")
        self.emit(f"okm: {bytes_to_hex(okm)}")
        return EXIT_OK

    def handle_sign(self, args):
        """Handle sign command."""
        signature = hmac_sign(hex_to_bytes(args.key), args.payload.encode('utf-8'))
        self.emit(bytes_to_hex(signature))
        return EXIT_OK

    def handle_verify(self, args):
        """Handle verify command."""
        valid = hmac_verify(
            hex_to_bytes(args.key),
            args.payload.encode('utf-8'),
            hex_to_bytes(args.signature),
        )
        self.emit("valid" if valid else "invalid")
        return EXIT_OK if valid else EXIT_REJECTED

    def handle_demo(self, args):
        """Handle demo command."""
        config = ExchangeConfig.from_dict({
            **self.config.to_dict(),
            "hkdf_salt": args.salt,
            "hkdf_info": args.info,
        })
        exchange = BlindedExchange(config)
        payload = (args.payload if args.payload is not None else default_payload()).encode('utf-8')

        state = exchange.run(
            producer=args.producer,
            validator=args.validator,
            blind=args.blind,
            payload=payload,
        )
        valid = exchange.verify(state)

        if args.json:
            report = state.to_dict(include_secrets=True)
            report["signature_valid"] = valid
            self.emit(json.dumps(report, indent=2))
        else:
            self.emit(f"V  = v*G      {state.validator.public.hex()}")
            self.emit(f"B  = b*V      {state.blinded_validator_key.hex()}")
            self.emit(f"Sp = d*B      {state.hsm_shared_point.hex()}")
            self.emit(f"D  = d*(b*G)  {state.db_point.hex()}")
            self.emit(f"Sv = v*D      {state.validator_shared_point.hex()}")
            self.emit(f"Kp            {bytes_to_hex(state.producer_key)}")
            self.emit(f"Kv            {bytes_to_hex(state.validator_key)}")
            self.emit(f"signature     {bytes_to_hex(state.signature)}")
            self.emit(f"keys match: {state.keys_match}  signature valid: {valid}")
        return EXIT_OK if valid else EXIT_REJECTED


def main():
    """Main entry point."""
    cli = BlindkeyCLI()
    sys.exit(cli.run(sys.argv[1:]))


if __name__ == "__main__":
    main()
