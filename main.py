# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from app import config
from app.core.logging import setup_logging
from app.core.middleware import RequestLoggingMiddleware
from app.db_mongo import get_db, ensure_indexes
from app.errors import register_error_handlers
from app.routers import recipes

log = logging.getLogger("recipes_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes(get_db())
    except PyMongoError as e:
        # Serve anyway; /health reports the database as degraded
        log.warning("could not ensure indexes: %s", e)
    yield


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title="Recipes API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    app.include_router(recipes.router)

    app.mount("/uploads/images", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="images")

    @app.get("/health")
    def health():
        try:
            get_db().command("ping")
            return {"status": "ok", "db": "reachable"}
        except PyMongoError as e:
            return {"status": "degraded", "error": str(e)}

    return app


app = create_app()
