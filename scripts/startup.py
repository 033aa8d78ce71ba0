#!/usr/bin/env python3
"""
NFL Team Pool Startup Script

Prepares the application on container startup:
- Waits for the database
- Creates tables and enforces the stored roster limit
- Warms the standings cache
"""

import os
import sys
import time

os.environ.setdefault("FLASK_CONFIG", "production")

from pickem import create_app, db  # noqa: E402
from pickem.services.league_service import league_service  # noqa: E402
from pickem.services.standings_service import standings_service  # noqa: E402


def wait_for_db(app, max_retries=30):
    """Wait for database to be ready"""
    print("Waiting for database connection...")

    for i in range(max_retries):
        try:
            with app.app_context():
                db.session.execute(db.text("SELECT 1")).fetchone()
                print("Database connected!")
                return True
        except Exception as e:
            if i < max_retries - 1:
                print(f"Attempt {i+1}/{max_retries} failed, retrying in 2s...")
                print(f"   Error: {str(e)}")
                time.sleep(2)
            else:
                print(f"Database connection failed after {max_retries} attempts: {e}")
                return False
    return False


def warm_standings_cache():
    """Resolve standings once so the first request is served from cache"""
    result = standings_service.resolve()
    if result.error:
        print(f"WARNING: Standings degraded to {result.source} ({result.error.value})")
    else:
        print(f"Standings ready: {len(result.teams)} teams from {result.source}")
    return result


def main():
    """Main initialization function"""
    print("NFL Team Pool Startup")
    print("=" * 50)

    app = create_app()

    if not wait_for_db(app):
        print("ERROR: Startup failed - database not available")
        sys.exit(1)

    with app.app_context():
        try:
            db.create_all()
            print("Database tables ready")
        except Exception as e:
            print(f"ERROR: Failed to create database tables: {e}")
            sys.exit(1)

        # Loading trims any rows beyond the roster capacity
        players = league_service.get_players()
        print(f"League: {len(players)} stored players ({league_service.stage()})")

        warm_standings_cache()

    print("=" * 50)
    print("SUCCESS: NFL team pool is ready!")
    print("=" * 50)


if __name__ == "__main__":
    main()
