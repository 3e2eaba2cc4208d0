"""
Unified backend entry point.

Architecture:
- One Python process, one asyncio event loop
- Two peer services running concurrently:
  1. FastAPI (HTTP server for the mobile app and admin panel)
  2. Lifecycle scheduler (event start/end reminders, APScheduler on the same loop)

We use FastAPI's lifespan to manage startup/shutdown. The scheduler's
timers and periodic passes are coroutines on the shared loop, so slow
database or push calls never block request handling.

Run with: python main.py [--no-scheduler] [--port PORT]
"""

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Set up import paths before any local imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import check_required_env_vars, get_api_port, is_scheduler_disabled
from core.database import close_engine, is_configured, ping
from core.enums import Transition
from core.notifications.channels.push import init_push, shutdown_push
from core.notifications.scheduler import LifecycleScheduler
from web_api.routes.notifications import router as notifications_router

if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(dsn=os.environ["SENTRY_DSN"], traces_sample_rate=0.0)


def create_scheduler() -> LifecycleScheduler | None:
    """Build the lifecycle scheduler unless disabled or there is no database."""
    if is_scheduler_disabled():
        print("Lifecycle scheduler disabled (--no-scheduler or DISABLE_SCHEDULER=true)")
        return None
    if not is_configured():
        print("Warning: DATABASE_URL not set, lifecycle scheduler will not start")
        return None
    return LifecycleScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Starts the lifecycle scheduler alongside FastAPI in the same event loop
    and tears it down (cancelling every pending timer) on shutdown.
    """
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        print(warning)
    if not ok:
        raise RuntimeError("Missing required environment variables")

    if init_push():
        print("Push notifications enabled (Firebase)")
    else:
        print("Push notifications disabled, in-app notifications only")

    scheduler = create_scheduler()
    app.state.lifecycle_scheduler = scheduler
    if scheduler:
        scheduler.start()
        print("Lifecycle scheduler started")

    yield  # FastAPI runs here, scheduler runs alongside it

    print("Shutting down peer services...")
    if scheduler:
        scheduler.stop()
        print("Lifecycle scheduler stopped")
    app.state.lifecycle_scheduler = None
    shutdown_push()
    await close_engine()  # Close database connections


# Create FastAPI app with lifespan
app = FastAPI(
    title="Campus Events API",
    lifespan=lifespan,
)

# Admin panel origins, comma-separated
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(notifications_router)


@app.get("/api/status")
async def api_status():
    """API status endpoint."""
    scheduler = getattr(app.state, "lifecycle_scheduler", None)
    return {
        "status": "ok",
        "scheduler_running": bool(scheduler and scheduler.running),
    }


@app.get("/health")
async def health():
    """Health check endpoint with database reachability and armed timer counts."""
    scheduler = getattr(app.state, "lifecycle_scheduler", None)
    timers = None
    if scheduler and scheduler.running:
        timers = {
            transition.value: len(scheduler.timers(transition))
            for transition in Transition
        }
    database = "not configured"
    if is_configured():
        database = "ok" if await ping() else "unreachable"
    return {
        "status": "healthy" if database != "unreachable" else "degraded",
        "database": database,
        "scheduler_running": bool(scheduler and scheduler.running),
        "armed_timers": timers,
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Campus Events Server")
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Disable the lifecycle scheduler (useful when running extra API workers)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    # Set env var so it persists across uvicorn reloads
    if args.no_scheduler:
        os.environ["DISABLE_SCHEDULER"] = "true"

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
