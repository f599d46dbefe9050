#!/usr/bin/env python3
"""Connect with an administrative URL and list the database roles.

Uses POSTGRES_ADMIN_URL, falling back to DATABASE_URL.
"""

import asyncio
import os
import sys
from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from school_erp.utils.db_url import async_database_url, mask_database_url


async def list_roles(url: str) -> bool:
    print(f"Connecting to {mask_database_url(url)}...")
    engine = create_async_engine(async_database_url(url))
    try:
        async with engine.connect() as conn:
            print("✅ Connection successful!")
            result = await conn.execute(text("SELECT rolname FROM pg_roles WHERE rolcanlogin ORDER BY rolname"))
            print(f"Users found: {', '.join(r[0] for r in result.fetchall())}")
        return True
    except (SQLAlchemyError, OSError) as e:
        print("❌ Connection failed")
        print(f"Error message: {e}")
        return False
    finally:
        await engine.dispose()


if __name__ == "__main__":
    load_dotenv()
    url = os.getenv("POSTGRES_ADMIN_URL") or os.getenv("DATABASE_URL")
    if not url:
        print("❌ POSTGRES_ADMIN_URL or DATABASE_URL must be set")
        sys.exit(1)
    sys.exit(0 if asyncio.run(list_roles(url)) else 1)
