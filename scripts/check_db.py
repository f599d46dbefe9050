#!/usr/bin/env python3
"""Verify that DATABASE_URL is reachable."""

import asyncio
import os
import sys
from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from school_erp.utils.db_url import async_database_url, mask_database_url


async def check_connection(url: str) -> bool:
    print(f"Connecting to {mask_database_url(url)}...")
    engine = create_async_engine(async_database_url(url))
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT NOW()"))
            print("✅ Connection successful!")
            print(f"Server time: {result.scalar()}")
        return True
    except (SQLAlchemyError, OSError) as e:
        print("❌ Connection failed")
        print(f"Error name: {type(e).__name__}")
        print(f"Error message: {e}")
        if "password authentication failed" in str(e):
            print("👉 Tip: Double check your password in .env file.")
        return False
    finally:
        await engine.dispose()


def main() -> int:
    load_dotenv()
    url = os.getenv("DATABASE_URL")
    if not url:
        print("❌ DATABASE_URL is not set")
        return 1
    return 0 if asyncio.run(check_connection(url)) else 1


if __name__ == "__main__":
    sys.exit(main())
