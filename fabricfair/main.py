"""FabricFair entrypoints: web server and admin bootstrap."""

from __future__ import annotations

import argparse
import asyncio
import getpass

import structlog
import uvicorn

from fabricfair.config.logging import setup_logging
from fabricfair.config.settings import get_settings
from fabricfair.security.passwords import hash_password
from fabricfair.storage.database import create_engine_from_url, init_db
from fabricfair.storage.repositories.admins import AdminRepository

logger = structlog.get_logger(__name__)


async def init_admin(email: str, password: str, database_url: str) -> None:
    """Create the admin account, or reset its password if it exists."""
    engine = create_engine_from_url(database_url)
    try:
        await init_db(engine)
        await AdminRepository(engine).upsert(email, hash_password(password))
    finally:
        await engine.dispose()


def cli(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(prog="fabricfair")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="run the web server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    admin = sub.add_parser("init-admin", help="create or update the admin account")
    admin.add_argument("--email", default=None)

    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "init-admin":
        setup_logging(log_level=settings.log_level, json_output=False)
        email = args.email or settings.admin_email
        password = settings.admin_password or getpass.getpass(f"Password for {email}: ")
        if not password:
            parser.error("an admin password is required (ADMIN_PASSWORD or prompt)")
        asyncio.run(init_admin(email, password, settings.database_url))
        logger.info("admin_ready", email=email)
        return

    host = getattr(args, "host", "127.0.0.1")
    port = getattr(args, "port", 8000)
    reload = getattr(args, "reload", False)
    uvicorn.run("fabricfair.web.app:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
