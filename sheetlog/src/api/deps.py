"""
FastAPI dependency providers for the sheet routes.

- get_db: one async session per request.
- get_write_lock: the application-wide lock that serializes sheet writes.
  Requests are handled one at a time: the scan of a sheet and the rows
  written from it must not interleave with another submission, or two
  first submissions for a device would both try to create its sheet.
- get_default_cost: rate applied when a submission carries none.

The lock is created in the lifespan, inside the serving event loop, and
kept on ``app.state``.

CHANGELOG:
- 2026-10-20: Add write lock and default rate providers
- 2026-10-16: Drop Redis/auth providers, sessions only
- 2026-02-14: Initial creation (STORY-007)
"""

import asyncio
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import get_async_session

FALLBACK_COST_PER_KWH = 30.0


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_async_session():
        yield session


def get_write_lock(request: Request) -> asyncio.Lock:
    """Return the lock held around every sheet read-scan-write."""
    return request.app.state.write_lock


def get_default_cost(request: Request) -> float:
    """Return DEFAULT_COST_PER_KWH as loaded at startup."""
    config = request.app.state.config
    return float(config.get("DEFAULT_COST_PER_KWH", FALLBACK_COST_PER_KWH))
