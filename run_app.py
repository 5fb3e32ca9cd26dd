#!/usr/bin/env python3
"""
Coin Rewards Backend Runner
===========================

Usage:
    python run_app.py                    # Development server with auto-reload
    python run_app.py --mode prod        # Production mode
    python run_app.py --port 8001        # Custom port
    python run_app.py --init-db          # Create tables and exit
    python run_app.py --seed-admin acme admin secret
                                         # Create a company with its first admin and exit
"""

import argparse
import asyncio
import logging
import sys

logger = logging.getLogger("run_app")

async def init_schema():
    from app.core.database import init_db, close_db

    await init_db()
    await close_db()

async def seed_admin(subdomain: str, username: str, password: str):
    """Create a company and its first admin so invites can be issued"""
    from sqlalchemy import select

    from app.core.database import get_db_context, init_db, close_db
    from app.core.security import SecurityUtils
    from app.models import Company, User, UserRole

    await init_db()
    async with get_db_context() as db:
        if await db.scalar(select(User.id).where(User.username == username)):
            logger.error("User %s already exists", username)
            return 1

        company = await db.scalar(select(Company).where(Company.subdomain == subdomain))
        if not company:
            company = Company(name=subdomain, subdomain=subdomain, is_active=True)
            db.add(company)
            await db.flush()

        db.add(User(
            company_id=company.id,
            username=username,
            password_hash=SecurityUtils.hash_password(password),
            name=username,
            role=UserRole.ADMIN,
            is_active=True,
        ))
    await close_db()
    logger.info("Admin %s created for company %s", username, subdomain)
    return 0

def run_main_app(host: str, port: int, reload: bool, workers: int):
    """Run the FastAPI application"""
    import uvicorn

    logger.info("Starting application on %s:%s", host, port)
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1 if reload else workers,
        log_level="info"
    )

def main():
    from app.core.config import settings

    parser = argparse.ArgumentParser(
        description="Coin Rewards Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--mode",
        choices=["dev", "prod"],
        default="dev",
        help="Server mode (default: dev)"
    )
    parser.add_argument("--host", default=settings.HOST, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Port to bind to")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    parser.add_argument("--init-db", action="store_true", help="Create tables and exit")
    parser.add_argument(
        "--seed-admin",
        nargs=3,
        metavar=("SUBDOMAIN", "USERNAME", "PASSWORD"),
        help="Create a company admin and exit"
    )

    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL)

    if args.init_db:
        asyncio.run(init_schema())
        return 0

    if args.seed_admin:
        return asyncio.run(seed_admin(*args.seed_admin))

    reload = not args.no_reload and args.mode != "prod"
    run_main_app(args.host, args.port, reload, settings.WORKERS)
    return 0

if __name__ == "__main__":
    sys.exit(main())
