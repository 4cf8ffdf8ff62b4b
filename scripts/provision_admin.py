#!/usr/bin/env python3
"""CLI script to provision the default modules and an admin account.

Usage:
    uv run python scripts/provision_admin.py
    uv run python scripts/provision_admin.py --email admin@example.com --password changeme --demo-deals

Connects directly to the database using DATABASE_URL from environment or .env file.
Creates missing tables and default modules, then the admin account (with every
module granted). Email and password default to ADMIN_EMAIL / ADMIN_PASSWORD.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path so we can import src.funnel
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def provision(email: str, password: str, demo_deals: bool) -> int:
    """Run the bootstrap steps. Returns a process exit code."""
    from src.funnel.core.database import close_db, get_session, init_db
    from src.funnel.deals.repository import DealRepository
    from src.funnel.services.accounts import AccountService
    from src.funnel.services.provisioning import (
        ensure_admin,
        ensure_default_modules,
        seed_demo_deals,
    )

    await init_db()
    try:
        created = await ensure_default_modules(get_session)
        print(f"Default modules ensured ({created} created)")

        accounts = AccountService(session_factory=get_session)
        admin = await ensure_admin(accounts, email, password)
        if admin is not None:
            print(f"Admin user created: {admin.email} ({admin.id})")
        else:
            admin = await accounts.authenticate(email, password)
            if admin is None:
                print(f"User {email} exists but the password does not match", file=sys.stderr)
                return 1
            print(f"Admin user already exists: {admin.email} ({admin.id})")

        if demo_deals:
            count = await seed_demo_deals(DealRepository(session_factory=get_session), admin.id)
            print(f"  Demo deals created: {count}")
    finally:
        await close_db()
    return 0


def main() -> None:
    from src.funnel.config import get_settings

    settings = get_settings()
    parser = argparse.ArgumentParser(description="Provision default modules and the admin account")
    parser.add_argument("--email", default=settings.ADMIN_EMAIL, help="Admin email")
    parser.add_argument("--password", default=settings.ADMIN_PASSWORD, help="Admin password")
    parser.add_argument("--demo-deals", action="store_true", help="Seed a demo pipeline for the admin")
    args = parser.parse_args()

    if len(args.password) < 6:
        parser.error("--password (or ADMIN_PASSWORD) must be at least 6 characters")

    sys.exit(asyncio.run(provision(args.email, args.password, args.demo_deals)))


if __name__ == "__main__":
    main()
