"""
Command-line interface for LiveText Python SDK
Signs requests offline, runs OCR on local images and serves the proxy
"""

import argparse
import base64
import json
import sys
from dataclasses import replace
from typing import Dict, List, Optional

from . import __version__
from .config.settings import Settings, configure_logging, load_settings
from .exceptions import LiveTextSDKError, ServerCommunicationError
from .http_client import create_client
from .server import run_server
from .signing import HmacSigner, SigningError, SigningRequest, parse_x_date


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='livetext',
        description='LiveText SDK command-line interface for signed visual API requests'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'LiveText Python SDK {__version__}'
    )
    parser.add_argument('--config', help='JSON settings file (environment variables override it)')
    parser.add_argument('--log-level', help='Logging level (default: from settings)')
    parser.add_argument('--access-key-id', help='Access key ID (default: VOL_ACCESS_KEY_ID)')
    parser.add_argument('--secret-access-key', help='Secret access key (default: VOL_SECRET_ACCESS_KEY)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_ocr_parser(subparsers)
    setup_serve_parser(subparsers)

    return parser


def setup_sign_parser(subparsers):
    """Setup request signing subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Sign a request and print the headers')
    sign_parser.add_argument('method', help='HTTP method')
    sign_parser.add_argument('host', help='Target host')
    sign_parser.add_argument('path', help='Absolute request path')
    sign_parser.add_argument(
        '--query',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help='Query parameter (repeatable)'
    )
    sign_parser.add_argument(
        '--content-type',
        default='application/x-www-form-urlencoded',
        help='Content-Type header value (default: application/x-www-form-urlencoded)'
    )
    body_group = sign_parser.add_mutually_exclusive_group()
    body_group.add_argument('--body', default='', help='Request body')
    body_group.add_argument('--body-file', help='Read the request body from a file')
    sign_parser.add_argument('--timestamp', help='Signing time as YYYYMMDDTHHMMSSZ (default: now)')
    sign_parser.add_argument('--service', help='Service identifier (default: from settings)')
    sign_parser.add_argument('--region', help='Region identifier (default: from settings)')
    sign_parser.add_argument(
        '--show-canonical',
        action='store_true',
        help='Also print the canonical request and string to sign'
    )


def setup_ocr_parser(subparsers):
    """Setup OCR subcommand."""
    ocr_parser = subparsers.add_parser('ocr', help='Recognize text in a local image')
    ocr_parser.add_argument('image', help='Image file')
    ocr_parser.add_argument('--timeout', type=float, help='Request timeout in seconds')


def setup_serve_parser(subparsers):
    """Setup proxy server subcommand."""
    serve_parser = subparsers.add_parser('serve', help='Run the OCR proxy server')
    serve_parser.add_argument('--host', default='127.0.0.1', help='Bind address (default: 127.0.0.1)')
    serve_parser.add_argument('--port', type=int, default=8787, help='Port (default: 8787)')


def parse_query_args(values: List[str]) -> Dict[str, str]:
    """Parse repeated KEY=VALUE arguments."""
    query = {}
    for item in values:
        key, sep, value = item.partition('=')
        if not key or not sep:
            raise ValueError(f"Query parameter must be KEY=VALUE: {item}")
        if key in query:
            raise ValueError(f"Duplicate query parameter: {key}")
        query[key] = value
    return query


def resolve_settings(args) -> Settings:
    """Load settings and apply command-line overrides."""
    settings = load_settings(args.config)

    overrides = {}
    if args.access_key_id:
        overrides['access_key_id'] = args.access_key_id
    if args.secret_access_key:
        overrides['secret_access_key'] = args.secret_access_key
    if args.log_level:
        overrides['log_level'] = args.log_level
    if getattr(args, 'service', None):
        overrides['service'] = args.service
    if getattr(args, 'region', None):
        overrides['region'] = args.region

    return replace(settings, **overrides) if overrides else settings


def handle_sign_command(args, settings: Settings) -> int:
    """Handle request signing command."""
    if args.body_file:
        with open(args.body_file, 'rb') as f:
            body = f.read()
    else:
        body = args.body

    try:
        query = parse_query_args(args.query)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    timestamp = parse_x_date(args.timestamp) if args.timestamp else None

    request = SigningRequest(
        method=args.method,
        host=args.host,
        path=args.path,
        query=query,
        headers={'content-type': args.content_type},
        body=body,
    )
    result = HmacSigner(settings.to_signing_config()).sign_request(request, timestamp)

    output = dict(result.headers)
    output['Content-Type'] = args.content_type
    if args.show_canonical:
        output = {
            'headers': output,
            'canonical_request': result.canonical_request,
            'string_to_sign': result.string_to_sign,
        }

    print(json.dumps(output, indent=2))
    return 0


def handle_ocr_command(args, settings: Settings) -> int:
    """Handle OCR command."""
    with open(args.image, 'rb') as f:
        image_base64 = base64.b64encode(f.read()).decode('ascii')

    with create_client(settings) as client:
        result = client.ocr_image(image_base64, timeout=args.timeout)

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def handle_serve_command(args, settings: Settings) -> int:
    """Handle proxy server command."""
    if not settings.has_credentials:
        print("Warning: no credentials configured; /api/ocr will return 500", file=sys.stderr)
    run_server(settings, host=args.host, port=args.port)
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

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = resolve_settings(args)
        configure_logging(settings)

        if args.command == 'sign':
            return handle_sign_command(args, settings)
        elif args.command == 'ocr':
            return handle_ocr_command(args, settings)
        elif args.command == 'serve':
            return handle_serve_command(args, settings)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except ServerCommunicationError as e:
        print(f"Server communication error: {e}", file=sys.stderr)
        return 1
    except (LiveTextSDKError, SigningError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
