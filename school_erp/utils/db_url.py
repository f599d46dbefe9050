"""Database URL helpers shared by the app and the diagnostic scripts."""
import re

_PASSWORD_PATTERN = re.compile(r":([^:@/]+)@")


def mask_database_url(url: str) -> str:
    """Hide the password part of a connection URL for logging."""
    return _PASSWORD_PATTERN.sub(":****@", url or "", count=1)


def async_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url
