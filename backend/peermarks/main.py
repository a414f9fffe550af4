"""FastAPI application entrypoint."""

import logging

from fastapi import FastAPI
from sqlalchemy import text

from peermarks import db
from peermarks.routers.evaluation import router as evaluation_router
from peermarks.routers.workshops import router as workshops_router
from peermarks.settings import settings

logging.basicConfig(level=settings.log_level.upper())

app = FastAPI(title=settings.app_name, version="0.1.0")

app.include_router(workshops_router)
app.include_router(evaluation_router)


@app.on_event("startup")
def on_startup() -> None:
    settings.data_path.mkdir(parents=True, exist_ok=True)
    db.create_db_and_tables()


@app.get("/health", tags=["meta"])
def health() -> dict[str, bool]:
    db_ok = False
    try:
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        db_ok = False
    return {"ok": True, "db_ok": db_ok}
