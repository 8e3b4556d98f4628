#!/usr/bin/env python3
"""
AssetVault -- operator commands.

Usage:
  python main.py serve
  python main.py create-user alice
  echo 'correct-pw' | python main.py create-user alice --password-stdin
  python main.py purge-sessions

Configuration comes from the environment (or .env), see core/config.py:
  DATABASE_URL    SQLAlchemy URL of the database (default: ./assetvault.db)
  HOST, PORT      Listen address for `serve` (default: 0.0.0.0:8443)
  TLS_CERT_PATH   PEM certificate; together with TLS_KEY_PATH enables HTTPS
  TLS_KEY_PATH    PEM private key
  LOG_LEVEL       DEBUG, INFO, WARNING, ERROR (default: INFO)

There is no self-service registration: accounts exist only when an operator
creates them here.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.service import AuthService
from auth.store import SessionStore, UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.database import create_db_engine

logger = logging.getLogger("assetvault.cli")


def _read_password(from_stdin: bool) -> Optional[str]:
    """Read a new password from stdin or an interactive prompt. None on mismatch/empty."""
    if from_stdin:
        password = sys.stdin.readline().rstrip("\r\n")
    else:
        password = getpass.getpass("Password: ")
        if getpass.getpass("Repeat password: ") != password:
            print("  [!] Passwords do not match.")
            return None
    if not password:
        print("  [!] Password must not be empty.")
        return None
    return password


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    ssl_kwargs: dict = {}
    if settings.tls_enabled:
        ssl_kwargs = {"ssl_certfile": settings.tls_cert_path, "ssl_keyfile": settings.tls_key_path}
    else:
        logger.warning("TLS_CERT_PATH/TLS_KEY_PATH not set -- serving plain HTTP")
    uvicorn.run(
        "asgi:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=60,
        timeout_graceful_shutdown=10,
        **ssl_kwargs,
    )
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    login = args.login.strip()
    if not login or len(login) > 255:
        print("  [!] Login must be 1-255 characters.")
        return 1
    password = _read_password(args.password_stdin)
    if password is None:
        return 1
    try:
        password_hash = hash_password(password)
    except ValueError as exc:
        print(f"  [!] {exc}")
        return 1

    engine = create_db_engine(get_settings().database_url)
    try:
        uid = UserStore(engine).create_user(User(login=login, password_hash=password_hash))
    except IntegrityError:
        print(f"  [!] A user with login '{login}' already exists.")
        return 1
    finally:
        engine.dispose()
    print(f"  Created user '{login}' (id={uid}).")
    return 0


def cmd_purge_sessions(args: argparse.Namespace) -> int:
    engine = create_db_engine(get_settings().database_url)
    try:
        service = AuthService(UserStore(engine), SessionStore(engine))
        removed = service.purge_expired_sessions()
    finally:
        engine.dispose()
    print(f"  Removed {removed} expired session(s).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="assetvault",
        description="Authenticated, owner-scoped binary asset storage.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve
  python main.py create-user alice
  echo 'correct-pw' | python main.py create-user alice --password-stdin
  python main.py purge-sessions
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API (HTTPS when TLS paths are configured)")
    serve.set_defaults(func=cmd_serve)

    create = sub.add_parser("create-user", help="Create a login/password account")
    create.add_argument("login", help="Unique login name")
    create.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of stdin instead of prompting",
    )
    create.set_defaults(func=cmd_create_user)

    purge = sub.add_parser("purge-sessions", help="Delete sessions older than the 24 hour TTL")
    purge.set_defaults(func=cmd_purge_sessions)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
