#!/usr/bin/env python3
"""
Chirpy -- account and token service.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py hash-password

Environment variables:
  SECRET_KEY   HS256 signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG        "true" auto-generates a throwaway SECRET_KEY for local development.
  PLATFORM     "dev" enables POST /admin/reset.
  DB_URL       SQLAlchemy URL for the auth database (default: SQLite file in auth/).
"""

import argparse
import getpass
import sys


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _hash_password(args: argparse.Namespace) -> int:
    """Prompt for a password twice and print its Argon2id hash.

    Useful for seeding accounts directly in the database.
    """
    from auth.errors import HashingError
    from auth.passwords import hash_password

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat:   "):
        print("  [!] Passwords do not match.", file=sys.stderr)
        return 1
    try:
        print(hash_password(password))
    except HashingError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chirpy account and token service.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    serve.set_defaults(func=_serve)

    hasher = sub.add_parser("hash-password", help="Print the Argon2id hash of a password read from the terminal.")
    hasher.set_defaults(func=_hash_password)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
