#!/usr/bin/env python3
"""
Task Tracker -- multi-user task API with bearer-token authentication.

Usage:
  python main.py
  python main.py --reload

Environment variables (or .env):
  SECRET_KEY    Token signing secret, at least 32 characters (JWT_SECRET also accepted).
                Required unless DEBUG=true, in which case a random one is generated.
  DATABASE_URL  SQLAlchemy connection string. Defaults to a SQLite file in the project root.
  PORT          Listening port. Defaults to 5000.
  DEBUG         Development mode.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the task tracker API server.")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    # Fail fast on a bad configuration before uvicorn starts importing the app.
    settings = get_settings()
    uvicorn.run("api.main:app", host="0.0.0.0", port=settings.port, reload=args.reload)  # nosec B104


if __name__ == "__main__":
    main()
