#!/usr/bin/env python3
"""Check whether the configured database user may create tables in ``public``.

Extra connection URLs to try can be passed as arguments.
"""

import asyncio
import os
import sys
from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from school_erp.utils.db_url import async_database_url, mask_database_url


async def check(url: str) -> bool:
    print(f"Trying {mask_database_url(url)}...")
    engine = create_async_engine(async_database_url(url))
    try:
        async with engine.connect() as conn:
            user = (await conn.execute(text("SELECT current_user"))).scalar()
            print(f"✅ Connected as {user}")
            result = await conn.execute(text("SELECT has_schema_privilege(current_user, 'public', 'CREATE')"))
            can_create = result.scalar()
            print(f"Can create in public? {can_create}")
            return bool(can_create)
    except (SQLAlchemyError, OSError) as e:
        print(f"❌ Failed: {e}")
        return False
    finally:
        await engine.dispose()


async def main(urls) -> int:
    results = [await check(url) for url in urls]
    return 0 if all(results) else 1


if __name__ == "__main__":
    load_dotenv()
    urls = [u for u in [os.getenv("DATABASE_URL"), *sys.argv[1:]] if u]
    if not urls:
        print("❌ DATABASE_URL is not set")
        sys.exit(1)
    sys.exit(asyncio.run(main(urls)))
