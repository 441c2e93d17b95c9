"""
TalkTime notification service entry point.

Architecture:
- One Python process, one asyncio event loop
- FastAPI serves the notification inbox, preference and push routes
- NotificationService runs alongside it:
  1. Due-notification processor (APScheduler interval job)
  2. Meeting event subscriber (Redis pub/sub listener task)

FastAPI's lifespan starts the workers and stops them on shutdown.

Run with: python main.py [--no-workers] [--port PORT]
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent

# Load .env.local first (if exists), then .env as fallback
load_dotenv(project_root / ".env.local")
load_dotenv()

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import check_required_env_vars, get_allowed_origins, workers_disabled
from core.database import close_engine
from core.notifications.service import NotificationService
from web_api.routes.notifications import router as notifications_router
from web_api.routes.push import router as push_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(
        dsn=os.environ["SENTRY_DSN"],
        environment=os.environ.get("RAILWAY_ENVIRONMENT", "development"),
        traces_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the notification workers; stop them and close pools on shutdown."""
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        logger.warning(warning)
    if not ok:
        raise RuntimeError("Missing required environment variables")

    service = NotificationService()
    app.state.notifications = service
    await service.start(workers=not workers_disabled())

    yield

    logger.info("Shutting down notification service...")
    await service.stop()
    await close_engine()


app = FastAPI(
    title="TalkTime Notification Service",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications_router)
app.include_router(push_router)


@app.get("/health")
async def health():
    """Health check endpoint with worker status."""
    service = getattr(app.state, "notifications", None)
    return {
        "status": "healthy",
        "processor_running": bool(service and service.processor.running),
        "subscriber_running": bool(service and service.subscriber.running),
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="TalkTime Notification Service")
    parser.add_argument(
        "--no-workers",
        action="store_true",
        help="Serve the API only, without the processor and event subscriber",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("API_PORT", "8000")),
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Set env var so it persists across uvicorn reloads
    if args.no_workers:
        os.environ["DISABLE_NOTIFICATION_WORKERS"] = "true"

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
