"""
FastAPI application entry point for the sheet log webhook.

Environment variables are loaded at startup for validation, the database
schema is created if needed, and the routers are registered. The engine is
disposed on shutdown.

CHANGELOG:
- 2026-10-20: Create the write lock at startup; serve /health next to the root check
- 2026-10-16: Register log and sheets routers; create tables at startup
- 2026-02-14: Register health router (STORY-015)
- 2026-02-14: Initial creation (STORY-007)
"""

import asyncio
import logging
import math
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.deps import FALLBACK_COST_PER_KWH
from src.api.log import router as log_router
from src.api.sheets import router as sheets_router
from src.db.session import dispose_engine, init_db

logger = logging.getLogger(__name__)


def _load_env_config() -> dict[str, str]:
    """Load and validate required environment variables at startup.

    Returns:
        dict: Mapping of config key to value.

    Raises:
        RuntimeError: If a required environment variable is missing or
            DEFAULT_COST_PER_KWH is not a positive number.
    """
    required = ["DATABASE_URL"]
    config: dict[str, str] = {}
    missing: list[str] = []

    for key in required:
        value = os.environ.get(key)
        if not value:
            missing.append(key)
        else:
            config[key] = value

    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    config["DEFAULT_COST_PER_KWH"] = os.environ.get(
        "DEFAULT_COST_PER_KWH", str(FALLBACK_COST_PER_KWH)
    )
    try:
        default_cost = float(config["DEFAULT_COST_PER_KWH"])
    except ValueError:
        default_cost = 0.0
    if not math.isfinite(default_cost) or default_cost <= 0:
        raise RuntimeError("DEFAULT_COST_PER_KWH must be a positive number")

    return config


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: config validation, schema creation, disposal."""
    config = _load_env_config()
    app.state.config = config
    app.state.write_lock = asyncio.Lock()

    await init_db()
    logger.info("Environment validated, sheet log API ready")
    yield
    await dispose_engine()
    logger.info("Sheet log API shutting down")


app = FastAPI(
    title="Sheet Log API",
    description="Upserts daily power consumption entries into per-device sheets.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(log_router)
app.include_router(sheets_router)


@app.get("/")
@app.get("/health")
async def root() -> dict[str, str]:
    """Liveness check for process supervisors; does not touch the database."""
    return {"status": "ok"}
