import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from maktaba.app.api.v1.api import api_router
from maktaba.app.core.config import settings
from maktaba.app.core.database import SessionLocal, init_db
from maktaba.app.services.ledger import ensure_cashier_tills, ensure_default_accounts

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="[maktaba] %(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    db = SessionLocal()
    try:
        ensure_default_accounts(db)
        ensure_cashier_tills(db)
        db.commit()
    finally:
        db.close()
    logger.info("%s ready", settings.SHOP_NAME)
    yield


app = FastAPI(title=settings.SHOP_NAME, lifespan=lifespan)

# ─── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)

app.include_router(api_router)
