#!/usr/bin/env python3
"""
Flask Application Runner
========================

Starts the ProCo Tech portal development server.

Usage:
    python run_server.py           # Run with default settings
    python run_server.py --debug   # Run in debug mode
    python run_server.py --port 8000  # Run on custom port

Environment Variables:
    PORT         - Server port (default: 5050)
    FLASK_DEBUG  - Enable debug mode (default: False)
    DATABASE_URL - Database to connect to (default: sqlite:///proco_portal.db)
"""
import os
import sys
import argparse
from pathlib import Path


def setup_environment():
    """Ensure the app directory is in the Python path"""
    app_dir = Path(__file__).parent
    if str(app_dir) not in sys.path:
        sys.path.insert(0, str(app_dir))


def build_parser():
    parser = argparse.ArgumentParser(description='Run the ProCo Tech portal')
    parser.add_argument('--port', type=int, default=None, help='Port to run on')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to')
    parser.add_argument('--wait-for-db', type=int, default=0, metavar='SECONDS',
                        help='Wait up to SECONDS for the database before starting')
    return parser


def main(argv=None):
    """Main entry point for the Flask application"""
    args = build_parser().parse_args(argv)
    setup_environment()

    from app import app, db
    from database import wait_for_db

    port = args.port or int(os.environ.get('PORT', 5050))
    debug = args.debug or os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')

    if args.wait_for_db:
        with app.app_context():
            if not wait_for_db(db.engine, seconds=args.wait_for_db):
                print("Database is not reachable; aborting.")
                sys.exit(1)

    print("=" * 60)
    print("PROCO TECH PORTAL")
    print("=" * 60)
    print(f"Server: http://{args.host}:{port}")
    print(f"Debug Mode: {debug}")
    print("=" * 60)

    try:
        app.run(host=args.host, port=port, debug=debug, threaded=True, use_reloader=debug)
    except KeyboardInterrupt:
        print("\nServer stopped by user")


if __name__ == '__main__':
    main()
