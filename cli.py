#!/usr/bin/env python3
"""
================================================================================
CLI - Command Line Interface
================================================================================

Operator access to the impact tracker:
    - Web server launcher
    - Storage initialization, reset and demo seeding
    - Health check against a running server
    - Dashboard summary for a user, straight from storage

Features:
    - Rich text formatting with ANSI colors
    - Argument parsing with one subcommand per operation
    - Error handling with user-friendly messages

Usage:
    python cli.py [command] [options]
    python cli.py --help

Author: Animal Impact Team
Last Modified: October 2026
================================================================================
"""

import sys
import argparse
import json
from dataclasses import replace
from typing import Any

import requests

from animal_impact.core import AuthService, DashboardService, create_store, seed_demo_data
from animal_impact.core.errors import ImpactError
from animal_impact.utils.config import load_settings
from animal_impact.utils.logger import set_run_context
from animal_impact.web.server import create_app


# ANSI color codes
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def _pretty_json(payload: Any):
    """Render JSON to stdout with stable formatting."""
    print(json.dumps(payload, indent=2, default=str))


def print_header(text):
    """Print formatted header"""
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.ENDC}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text:^70}{Colors.ENDC}")
    print(f"{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.ENDC}\n")


def print_success(text):
    """Print success message"""
    print(f"{Colors.GREEN}✓{Colors.ENDC} {text}")


def print_error(text):
    """Print error message"""
    print(f"{Colors.RED}✗{Colors.ENDC} {text}")


def print_info(text):
    """Print info message"""
    print(f"{Colors.CYAN}ℹ{Colors.ENDC} {text}")


def _open_store(settings):
    store = create_store(settings)
    store.initialize()
    return store


def cmd_serve(args):
    """Start the web server"""
    settings = load_settings()
    overrides = {}
    if args.host:
        overrides['host'] = args.host
    if args.port:
        overrides['port'] = args.port
    if args.no_seed:
        overrides['seed_demo'] = False
    if overrides:
        settings = replace(settings, **overrides)

    print_header("ANIMAL IMPACT WEB SERVER")
    print_info(f"Storage: {settings.storage_backend} ({settings.storage_path})")
    print_info(f"Listening on http://{settings.host}:{settings.port}")
    print_info("Press Ctrl+C to stop the server\n")

    app = create_app(settings)
    app.run(host=settings.host, port=settings.port, debug=False)
    return True


def cmd_init_db(args):
    """Create storage and seed demo data"""
    print_header("INITIALIZE STORAGE")
    settings = load_settings()
    store = _open_store(settings)
    print_success(f"Storage ready: {settings.storage_backend} ({settings.storage_path})")

    if args.no_seed:
        print_info("Skipping demo data")
        return True
    auth = AuthService.from_settings(store, settings)
    if seed_demo_data(store, auth):
        print_success("Demo account created (johndoe@gmail.com / password123)")
    else:
        print_info("Demo account already present")
    return True


def cmd_reset_db(args):
    """Delete all stored data"""
    print_header("RESET STORAGE")
    settings = load_settings()
    if not args.yes:
        answer = input(f"Delete ALL data in {settings.storage_path}? [y/N]: ").strip().lower()
        if answer not in ('y', 'yes'):
            print_info("Reset cancelled")
            return True

    store = create_store(settings)
    store.reset()
    print_success("All data deleted")

    if args.seed:
        auth = AuthService.from_settings(store, settings)
        seed_demo_data(store, auth)
        print_success("Demo data re-seeded")
    return True


def cmd_seed(args):
    """Seed demo data"""
    print_header("SEED DEMO DATA")
    settings = load_settings()
    store = _open_store(settings)
    auth = AuthService.from_settings(store, settings)
    if seed_demo_data(store, auth):
        print_success("Demo account created (johndoe@gmail.com / password123)")
    else:
        print_info("Demo account already present, nothing to do")
    return True


def cmd_health(args):
    """Query /api/health on a running server"""
    settings = load_settings()
    base_url = (args.url or f"http://localhost:{settings.port}").rstrip('/')
    try:
        response = requests.get(f"{base_url}/api/health", timeout=args.timeout)
    except requests.RequestException as e:
        print_error(f"Cannot reach {base_url}: {e}")
        return False

    try:
        payload = response.json()
    except ValueError:
        print_error(f"Unexpected response ({response.status_code}) from {base_url}")
        return False

    _pretty_json(payload)
    if response.status_code == 200 and payload.get('status') == 'healthy':
        print_success("Server healthy")
        return True
    print_error(f"Server unhealthy (HTTP {response.status_code})")
    return False


def cmd_dashboard(args):
    """Print a user's dashboard from storage"""
    settings = load_settings()
    store = _open_store(settings)
    user = store.get_user_by_email(args.email)
    if user is None:
        print_error(f"No user with email {args.email}")
        return False

    data = DashboardService(store).get_dashboard(user['id'])
    if args.json:
        _pretty_json(data)
        return True

    stats = data['stats']
    print_header(f"IMPACT: {data['user']['name']}")
    print(f"  Total donations:    ${stats['totalDonations']:,}")
    print(f"  Vegan conversions:  {stats['conversionCount']}")
    print(f"  Animals impacted:   {stats['animalsImpact']:,} / year")
    print(f"  Media shared:       {stats['mediaCount']} (reach {stats['totalReach']:,})")
    print(f"  Campaigns:          {stats['campaignCount']}")
    return True


def build_parser():
    parser = argparse.ArgumentParser(
        description='Animal Impact Tracker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s serve                    # Start the web server
  %(prog)s serve --port 8080        # Start on another port
  %(prog)s init-db                  # Create storage and demo data
  %(prog)s reset-db --yes --seed    # Wipe everything and re-seed
  %(prog)s health                   # Check a running server
  %(prog)s dashboard --email johndoe@gmail.com
        '''
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    parser_serve = subparsers.add_parser('serve', help='Start the web server')
    parser_serve.add_argument('--host', help='Bind address')
    parser_serve.add_argument('--port', type=int, help='Port')
    parser_serve.add_argument('--no-seed', action='store_true', dest='no_seed', help='Do not seed demo data')
    parser_serve.set_defaults(func=cmd_serve)

    parser_init = subparsers.add_parser('init-db', help='Create storage and seed demo data')
    parser_init.add_argument('--no-seed', action='store_true', dest='no_seed', help='Skip demo data')
    parser_init.set_defaults(func=cmd_init_db)

    parser_reset = subparsers.add_parser('reset-db', help='Delete all stored data')
    parser_reset.add_argument('--yes', action='store_true', help='Do not ask for confirmation')
    parser_reset.add_argument('--seed', action='store_true', help='Re-seed demo data afterwards')
    parser_reset.set_defaults(func=cmd_reset_db)

    parser_seed = subparsers.add_parser('seed', help='Seed demo data')
    parser_seed.set_defaults(func=cmd_seed)

    parser_health = subparsers.add_parser('health', help='Check a running server')
    parser_health.add_argument('--url', help='Server base URL (default: http://localhost:<port>)')
    parser_health.add_argument('--timeout', type=float, default=5.0, help='Request timeout in seconds')
    parser_health.set_defaults(func=cmd_health)

    parser_dash = subparsers.add_parser('dashboard', help="Show a user's impact summary")
    parser_dash.add_argument('--email', required=True, help='User email')
    parser_dash.add_argument('--json', action='store_true', help='Print raw JSON')
    parser_dash.set_defaults(func=cmd_dashboard)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command specified, show help
    if not args.command:
        parser.print_help()
        return 0

    set_run_context('cli')

    # Run command
    try:
        success = args.func(args)
        return 0 if success else 1
    except KeyboardInterrupt:
        print_info("\nOperation cancelled by user")
        return 130
    except ImpactError as e:
        print_error(e.message)
        return 1
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
