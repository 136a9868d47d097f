"""Connection settings for the intake database, read from the environment.

``DATABASE_URL`` wins when set.  Otherwise the URL is assembled from
``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD`` and ``PG_DATABASE``
(all default to a local ``intake`` database).

Alembic runs synchronously and needs ``get_sync_url()``; the server uses
the asyncpg URL from ``get_async_url()``.
"""

import os

_SCHEMES = ("postgresql+asyncpg://", "postgresql+psycopg2://", "postgres://")


def _from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "intake")
    password = os.getenv("PG_PASSWORD", "intake")
    database = os.getenv("PG_DATABASE", "intake")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def _plain_url() -> str:
    """The configured URL with any driver suffix stripped."""
    url = os.getenv("DATABASE_URL") or _from_parts()
    for scheme in _SCHEMES:
        if url.startswith(scheme):
            return "postgresql://" + url[len(scheme):]
    return url


def get_sync_url() -> str:
    """libpq/psycopg2 URL, used by Alembic migrations."""
    return _plain_url()


def get_async_url() -> str:
    """asyncpg URL, used by the runtime engine."""
    return _plain_url().replace("postgresql://", "postgresql+asyncpg://", 1)
