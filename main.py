"""
Comet Cupboard - Application Entry Point
==========================================
FastAPI app initialization, background scheduler, and router registration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import settings
from config.database import SessionLocal, Base, engine
from common.exceptions import CupboardError

# Register models with Base.metadata
from modules.storage.models import StorageEntry  # noqa
from modules.notification.models import Notification  # noqa

scheduler_logger = logging.getLogger("comet.scheduler")


# ==========================================
# Background Scheduler: Expired Pickup Sweep
# ==========================================
async def _sweep_expired_pickups():
    """
    Background job: cancel in-progress pickups past their grace period.
    Runs on the event loop, between the async routes, so its
    read-modify-write of the pickups list never overlaps a checkout.
    """
    db = SessionLocal()
    try:
        from modules.order.service import order_service
        count = order_service.release_expired_pickups(db)
        if count:
            db.commit()
            scheduler_logger.info(f"Cancelled {count} expired pickups")
    except Exception as e:
        db.rollback()
        scheduler_logger.error(f"Pickup sweep error: {e}")
    finally:
        db.close()


def _seed_users():
    db = SessionLocal()
    try:
        from modules.user.service import user_service
        user_service.list_users(db)
        db.commit()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    _seed_users()

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _sweep_expired_pickups, 'interval',
        seconds=settings.PICKUP_SWEEP_SECONDS, id='expired_pickups',
    )
    scheduler.start()
    scheduler_logger.info(f"Background scheduler started (pickups: {settings.PICKUP_SWEEP_SECONDS}s)")
    yield
    scheduler.shutdown()
    scheduler_logger.info("Background scheduler stopped")


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="Comet Cupboard",
    description="Food pantry pickup requests",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handler: business errors → JSON
# ==========================================
@app.exception_handler(CupboardError)
async def cupboard_error_handler(request: Request, exc: CupboardError):
    payload = {"detail": exc.message}
    next_date = getattr(exc, "next_eligible_date", None)
    if next_date:
        payload["next_eligible_date"] = next_date.isoformat()
    return JSONResponse(payload, status_code=exc.status_code)


# ==========================================
# Register Routers
# ==========================================
from modules.cart.routes import router as cart_router
from modules.order.routes import router as order_router
from modules.admin.routes import router as admin_router
from modules.notification.routes import router as notification_router

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(admin_router)
app.include_router(notification_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
