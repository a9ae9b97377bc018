import asyncio
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.logging_config import get_logger, setup_logging
from app.models import Client, Professional
from app.routers import clients, dialogflow_webhook, otp, whatsapp
from app.services.otp_service import OtpStore, otp_sweeper_loop

setup_logging(settings.log_level)

app = FastAPI(
    title="SereneMinds API",
    description="Teletherapy intake and professional matching backend",
    version="0.1.0",
)

cors_env = os.environ.get("CORS_ALLOW_ORIGINS", "*")
cors_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Webhook-Secret"],
)

app.include_router(dialogflow_webhook.router)
app.include_router(clients.router)
app.include_router(whatsapp.router)
app.include_router(otp.router)

app.state.otp_store = OtpStore(ttl_seconds=settings.otp_ttl_seconds, digits=settings.otp_digits)

otp_logger = get_logger("otp_sweeper")
_otp_sweeper_task: asyncio.Task | None = None


@app.on_event("startup")
async def start_otp_sweeper() -> None:
    global _otp_sweeper_task
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return
    if _otp_sweeper_task is None or _otp_sweeper_task.done():
        _otp_sweeper_task = asyncio.create_task(
            otp_sweeper_loop(app.state.otp_store, settings.otp_sweep_interval_seconds)
        )
        otp_logger.info("OTP sweeper started")


@app.on_event("shutdown")
async def stop_otp_sweeper() -> None:
    global _otp_sweeper_task
    app.state.otp_store.clear()
    if _otp_sweeper_task is None:
        return
    _otp_sweeper_task.cancel()
    try:
        await _otp_sweeper_task
    except asyncio.CancelledError:
        pass
    _otp_sweeper_task = None


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/db-check")
def db_check(db: Session = Depends(get_db)):
    return {
        "status": "ok",
        "clients": db.query(Client).count(),
        "professionals": db.query(Professional).count(),
    }
