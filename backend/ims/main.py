"""
FastAPI application entrypoint
- CORS
- Routers (movements, ledger views, catalogs, fleet, alerts)
- AsyncEventBus + StockMonitor started in the background
- Domain errors rendered as {"error": ..., "errorCode": ..., **detail}
- Health check endpoint
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from ims.alerts.monitor import StockMonitor
from ims.api import alerts, fleet, inventory, items, jobs, ledger
from ims.config import settings
from ims.database import Base, SessionLocal, engine
from ims.events.event_bus import AsyncEventBus
from ims.exceptions import InventoryError
from ims.schemas.common import HealthResponse

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop background components with the app"""

    # ── 1. tables ──
    Base.metadata.create_all(bind=engine)
    logger.info("database tables ready")

    # ── 2. event bus ──
    event_bus = AsyncEventBus(settings.REDIS_URL)

    # ── 3. stock monitor subscribes before the bus starts its consumers ──
    monitor = StockMonitor(event_bus)
    await monitor.start()

    # ── 4. consumers ──
    await event_bus.start()

    app.state.event_bus = event_bus
    app.state.monitor = monitor
    logger.info("event bus and stock monitor running")

    yield

    # ── shutdown ──
    app.state.event_bus = None
    app.state.monitor = None
    await monitor.stop()
    await event_bus.stop()


app = FastAPI(
    title="Jobsite Inventory Ledger",
    description="Check-in/out, reservations, orders and KPIs reconciled from an append-only movement log",
    version="0.4.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message} {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


app.include_router(inventory.router)
app.include_router(ledger.router)
app.include_router(items.router)
app.include_router(jobs.router)
app.include_router(fleet.router)
app.include_router(alerts.router)


@app.get("/api/health", response_model=HealthResponse)
def health_check(request: Request):
    """Service status"""
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as e:
        logger.error(f"health check: database unreachable ({e})")
    finally:
        db.close()

    event_bus = getattr(request.app.state, "event_bus", None)
    monitor = getattr(request.app.state, "monitor", None)
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        db_connected=db_ok,
        redis_connected=event_bus.is_redis if event_bus else False,
        monitor_running=bool(monitor and event_bus and event_bus.is_running),
        timestamp=datetime.now(timezone.utc),
    )
