from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.errors import register_error_handlers
from api.router import api_router
from core.logging import configure_logging
from core.settings import settings
from db.init_db import init_db

APP_TITLE = "Listing Lifecycle Service"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(title=APP_TITLE, debug=settings.app_debug, lifespan=lifespan)

register_error_handlers(app)
app.include_router(api_router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}
