"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from traffic_console.config import DENY_UNKNOWN_IDENTITIES, TOKEN_EXPIRY_HOURS
from traffic_console.database import engine_from_env, init_registry, init_repositories
from traffic_console.services import build_services
from traffic_console.api.routes import register_routes


def create_app(registry=None, services=None):
    """Build and return a fully configured Flask application.

    *registry* and *services* are created from the environment when omitted.
    """
    app = Flask(__name__)
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    if registry is None or services is None:
        try:
            print("[init] Initializing data sources...")
            engine = engine_from_env()

            if registry is None:
                registry = init_registry(engine)
            if services is None:
                services = build_services(init_repositories(engine))

            print("[init] ✓ API server ready")
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)

    app.config["REGISTRY"] = registry
    app.config["DENY_UNKNOWN_IDENTITIES"] = DENY_UNKNOWN_IDENTITIES

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, registry, services)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Traffic Console – REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Session expiry: {TOKEN_EXPIRY_HOURS} hours")
    print(f"[server] Unknown wallets refused: {DENY_UNKNOWN_IDENTITIES}")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/login")
    print(f"  - GET  http://{host}:{port}/api/menu")
    print(f"  - GET  http://{host}:{port}/api/<resource>?page&limit&sortBy&sortOrder&search")
    print(f"  - GET  http://{host}:{port}/api/dashboard/stats")
    print(f"  - POST http://{host}:{port}/api/auth/logout")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
