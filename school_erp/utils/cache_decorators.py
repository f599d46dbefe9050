# school_erp/utils/cache_decorators.py
"""Cache decorators and invalidation helpers."""
import hashlib
from functools import wraps
from typing import Callable, Optional, Union
from datetime import timedelta
from ..core.cache import cache

def cache_key_generator(prefix: str, *args, **kwargs) -> str:
    """Generate cache key from function arguments."""
    key_data = f"{args}:{sorted(kwargs.items())}"
    return f"{prefix}:{hashlib.md5(key_data.encode()).hexdigest()}"

def cached(
    prefix: str,
    expire: Optional[Union[int, timedelta]] = timedelta(minutes=15),
    key_func: Optional[Callable] = None
):
    """Cache the JSON-serialisable result of an async function."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            if key_func:
                cache_key = f"{prefix}:{key_func(*args, **kwargs)}"
            else:
                cache_key = cache_key_generator(prefix, *args, **kwargs)

            cached_result = await cache.get(cache_key)
            if cached_result is not None:
                return cached_result

            result = await func(*args, **kwargs)
            await cache.set(cache_key, result, expire)
            return result

        return wrapper
    return decorator

async def invalidate_school_stats(school_id) -> int:
    """Drop cached dashboard stats for one school and the global view."""
    deleted = await cache.delete_pattern(f"stats:{school_id}:*")
    deleted += await cache.delete_pattern("stats:global:*")
    return deleted

async def invalidate_school_classes(school_id) -> int:
    return await cache.delete_pattern(f"classes:{school_id}:*")
