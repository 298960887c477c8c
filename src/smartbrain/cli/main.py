"""Smart Brain CLI — run the server and manage the database.

Usage:
    smartbrain serve                 # Run the API with uvicorn
    smartbrain init-db               # Create the login and users tables
    smartbrain check                 # Ping the database and both Redis databases
"""

from __future__ import annotations

import asyncio
import sys

import click
from sqlalchemy import text

from smartbrain.auth.session_store import build_redis
from smartbrain.config import Settings
from smartbrain.db.engine import build_engine
from smartbrain.db.models import Base


@click.group()
def cli():
    """Smart Brain backend."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: SMARTBRAIN_HOST).")
@click.option("--port", default=None, type=int, help="Port (default: SMARTBRAIN_PORT).")
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "smartbrain.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


async def _create_tables(settings: Settings) -> None:
    engine = build_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


@cli.command("init-db")
def init_db():
    """Create the login and users tables if they do not exist."""
    settings = Settings()
    asyncio.run(_create_tables(settings))
    click.secho("Tables created: " + ", ".join(sorted(Base.metadata.tables)), fg="green")


async def _check(settings: Settings) -> dict[str, str]:
    results: dict[str, str] = {}

    engine = build_engine(settings)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        results["database"] = "ok"
    except Exception as e:
        results["database"] = f"error: {e}"
    finally:
        await engine.dispose()

    redis_targets = {
        "redis": settings.redis_url,
        "rate_limit_redis": settings.rate_limit_redis_url,
    }
    for name, url in redis_targets.items():
        redis = build_redis(settings, url)
        try:
            await redis.ping()
            results[name] = "ok"
        except Exception as e:
            results[name] = f"error: {e}"
        finally:
            await redis.aclose()

    return results


@cli.command()
def check():
    """Check database and Redis connectivity."""
    results = asyncio.run(_check(Settings()))
    for name, status in results.items():
        click.secho(f"{name}: {status}", fg="green" if status == "ok" else "red")
    if any(status != "ok" for status in results.values()):
        sys.exit(1)


if __name__ == "__main__":
    cli()
