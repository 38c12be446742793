"""
Command-line interface for opsauth
Signs requests, verifies signed header sets and prints canonical strings
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, Optional

from . import __version__
from .config import load_config, configure_logging
from .exceptions import OpsAuthError
from .signing import SigningRequest, build_canonical_request, supported_versions
from .signing.utils import generate_timestamp
from .verification import IncomingRequest, authenticate_request


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='opsauth',
        description='Sign and verify X-Ops signed-header requests'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'opsauth {__version__}'
    )

    parser.add_argument(
        '--config',
        help='Path to a JSON configuration file'
    )

    parser.add_argument(
        '--log-level',
        help='Override the configured log level'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_verify_parser(subparsers)
    setup_canonicalize_parser(subparsers)

    return parser


def _add_request_arguments(command_parser):
    command_parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    command_parser.add_argument('--path', required=True, help='Request path')
    body_group = command_parser.add_mutually_exclusive_group()
    body_group.add_argument('--body', help='Request body text')
    body_group.add_argument('--body-file', help='File containing the request body')


def setup_sign_parser(subparsers):
    """Setup the sign subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Produce authentication headers for a request')
    _add_request_arguments(sign_parser)
    sign_parser.add_argument('--user-id', required=True, help='Identity to sign as')
    sign_parser.add_argument('--private-key', required=True, help='PEM file with the RSA private key')
    sign_parser.add_argument(
        '--protocol-version',
        choices=supported_versions(),
        help='Protocol version (default: from configuration)'
    )
    sign_parser.add_argument('--timestamp', help='Fixed timestamp (YYYY-MM-DDTHH:MM:SSZ)')


def setup_verify_parser(subparsers):
    """Setup the verify subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify a signed header set')
    _add_request_arguments(verify_parser)
    verify_parser.add_argument('--headers', required=True, help='JSON file with the request headers')
    verify_parser.add_argument('--public-key', required=True, help='PEM file with the RSA public key or certificate')
    verify_parser.add_argument('--allowed-skew', type=int, help='Allowed clock skew in seconds')


def setup_canonicalize_parser(subparsers):
    """Setup the canonicalize subcommand."""
    canonical_parser = subparsers.add_parser('canonicalize', help='Print the canonical string of a request')
    _add_request_arguments(canonical_parser)
    canonical_parser.add_argument('--user-id', required=True, help='User id')
    canonical_parser.add_argument('--timestamp', help='Timestamp (default: now)')
    canonical_parser.add_argument(
        '--protocol-version',
        choices=supported_versions(),
        help='Protocol version (default: from configuration)'
    )


def _read_body(args) -> bytes:
    if args.body_file:
        return Path(args.body_file).read_bytes()
    if args.body is not None:
        return args.body.encode('utf-8')
    return b""


def handle_sign_command(args, config) -> int:
    """Handle the sign command."""
    private_key = Path(args.private_key).read_bytes()
    request = SigningRequest(
        method=args.method,
        path=args.path,
        user_id=args.user_id,
        body=_read_body(args),
        timestamp=args.timestamp,
        version=args.protocol_version or config.protocol_version,
        server_api_version=config.server_api_version
    )

    headers = config.signer(private_key).sign_request(request)
    print(json.dumps(headers, indent=2))
    return 0


def handle_verify_command(args, config) -> int:
    """Handle the verify command."""
    with open(args.headers, 'r', encoding='utf-8') as f:
        headers: Dict[str, str] = json.load(f)

    public_key = Path(args.public_key).read_bytes()
    skew = args.allowed_skew if args.allowed_skew is not None else config.allowed_skew_seconds

    request = IncomingRequest(method=args.method, path=args.path, body=_read_body(args))
    result = authenticate_request(request, headers, public_key, allowed_skew_seconds=skew)

    if result.ok:
        print(f"✓ Authenticated {result.user_id} (protocol {result.version})")
        return 0

    print(f"✗ {result.public_message} ({result.failure.value})", file=sys.stderr)
    return 1


def handle_canonicalize_command(args, config) -> int:
    """Handle the canonicalize command."""
    print(build_canonical_request(
        args.method,
        args.path,
        _read_body(args),
        args.timestamp or generate_timestamp(),
        args.user_id,
        args.protocol_version or config.protocol_version,
        config.server_api_version
    ))
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        configure_logging(args.log_level or config.log_level)

        if args.command == 'sign':
            return handle_sign_command(args, config)
        elif args.command == 'verify':
            return handle_verify_command(args, config)
        elif args.command == 'canonicalize':
            return handle_canonicalize_command(args, config)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (OpsAuthError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
