"""
MockGen CLI

Command-line interface for endpoint discovery, mock generation and the
mock server.

Commands:
    scan        - Discover endpoints and write .mockgen/endpoints.json
    generate    - Write the mock bundle .mockgen/mock.json
    openapi     - Write an OpenAPI description (.mockgen/swagger.json|yaml)
    serve       - Start the mock server

Examples:
    mockgen scan ./my-app
    mockgen generate ./my-app --split
    mockgen openapi ./my-app --format yaml
    mockgen serve ./my-app --port 3000
"""

import argparse
import logging
import sys
from pathlib import Path

from .common import BindError, write_json
from .config import ProjectPaths, load_config
from .mock import MockConfig, MockGenerator, MockServer, OpenAPIBuilder, build_mock_bundle, write_mock_files
from .scan import EndpointExtractor, format_endpoints

logger = logging.getLogger("mockgen.cli")


def _scan(args):
    root = Path(args.root).resolve()
    extractor = EndpointExtractor(workers=args.workers)
    return root, extractor.scan_workspace(root)


def cmd_scan(args):
    """
    Discover endpoints and write the endpoints bundle.

    Args:
        args: Parsed command-line arguments
    """
    print("🔍 MockGen Scan")
    root, endpoints = _scan(args)

    if not endpoints:
        print("   No endpoints found. Make sure the folder contains JS/TS, Python, Rust, Java or Go sources.")
        return

    out = write_json(ProjectPaths(root).endpoints_file, format_endpoints(endpoints, root))
    print(f"   Exported {len(endpoints)} endpoints → {out}")

    if args.verbose:
        for entry in format_endpoints(endpoints, root):
            print(f"   {entry['method']:7} {entry['url']}  ({entry['location']})")


def cmd_generate(args):
    """
    Generate the mock bundle for every discovered endpoint.

    Args:
        args: Parsed command-line arguments
    """
    print("🧪 MockGen Generate")
    root, endpoints = _scan(args)
    paths = ProjectPaths(root)
    generator = MockGenerator(config=load_config(root))

    bundle = build_mock_bundle(endpoints, generator, stateful_posts=args.stateful)
    out = write_json(paths.mock_bundle_file, bundle)
    print(f"   Wrote {len(bundle)} mocks → {out}")

    if args.split:
        written = write_mock_files(endpoints, paths.mocks_dir, generator)
        print(f"   Wrote {len(written)} mock files → {paths.mocks_dir}")


def cmd_openapi(args):
    """
    Write an OpenAPI description of the discovered endpoints.

    Args:
        args: Parsed command-line arguments
    """
    print("📘 MockGen OpenAPI")
    root, endpoints = _scan(args)
    config = load_config(root)

    builder = OpenAPIBuilder(MockGenerator(config=config), server_url=config.base_url or None)
    builder.add_all(endpoints)
    out = builder.write(args.output or ProjectPaths(root).openapi_file(args.format), fmt=args.format)
    print(f"   Documented {len(builder.document['paths'])} paths → {out}")


def cmd_serve(args):
    """
    Start the mock server in the foreground.

    Args:
        args: Parsed command-line arguments
    """
    print("🎭 MockGen Mock Server")
    config = MockConfig(
        host=args.host,
        port=args.port,
        max_port_attempts=args.max_port_attempts,
        log_level=args.log_level,
        access_log=args.access_log,
        seed=args.seed
    )
    server = MockServer(Path(args.root).resolve(), config=config)

    try:
        server.start(block=True)
    except BindError as e:
        print(f"❌ {e}")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mockgen",
        description="MockGen - discover API endpoints in source code and serve generated mocks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Discover endpoints
  %(prog)s scan ./my-app

  # Generate mocks, one file per endpoint as well
  %(prog)s generate ./my-app --split

  # OpenAPI description as YAML
  %(prog)s openapi ./my-app --format yaml

  # Serve mocks, falling back to the next free port
  %(prog)s serve ./my-app --port 3000
        """
    )
    parser.add_argument('--log-level', default='warning', choices=['debug', 'info', 'warning', 'error'],
                        help='Logging level (default: warning)')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    def add_scan_args(sub):
        sub.add_argument('root', nargs='?', default='.', help='Workspace root (default: .)')
        sub.add_argument('-w', '--workers', type=int, default=4, help='Scanner threads (default: 4)')

    # --- SCAN command ---
    scan_parser = subparsers.add_parser('scan', help='Discover endpoints')
    add_scan_args(scan_parser)
    scan_parser.add_argument('--verbose', action='store_true', help='List every endpoint found')

    # --- GENERATE command ---
    generate_parser = subparsers.add_parser('generate', help='Generate the mock bundle')
    add_scan_args(generate_parser)
    generate_parser.add_argument('--split', action='store_true', help='Also write one file per endpoint')
    generate_parser.add_argument('--stateful', action='store_true', help='Make POST mocks stateful')

    # --- OPENAPI command ---
    openapi_parser = subparsers.add_parser('openapi', help='Generate an OpenAPI description')
    add_scan_args(openapi_parser)
    openapi_parser.add_argument('--format', choices=['json', 'yaml'], default='json', help='Output format (default: json)')
    openapi_parser.add_argument('-o', '--output', help='Output file (default: .mockgen/swagger.<format>)')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start the mock server')
    serve_parser.add_argument('root', nargs='?', default='.', help='Workspace root (default: .)')
    serve_parser.add_argument('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, default=3000, help='First port to try (default: 3000)')
    serve_parser.add_argument('--max-port-attempts', type=int, default=10, help='Ports to try (default: 10)')
    serve_parser.add_argument('--seed', type=int, help='Seed for alternative response selection')
    serve_parser.add_argument('--access-log', action='store_true', help='Enable access logging')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Dispatch to command handler
    if args.command == 'scan':
        cmd_scan(args)
    elif args.command == 'generate':
        cmd_generate(args)
    elif args.command == 'openapi':
        cmd_openapi(args)
    elif args.command == 'serve':
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
