import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from travel_journal.core.config import get_settings
from travel_journal.core.errors import register_exception_handlers
from travel_journal.core.openapi import custom_openapi
from travel_journal.models import story, user  # noqa: F401  register tables
from travel_journal.models.database import Base, engine
from travel_journal.routers import auth, images, stories

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    Base.metadata.create_all(bind=engine)

    app = FastAPI(docs_url="/docs", redoc_url=None, openapi_url="/docs.json")
    app.openapi = lambda: custom_openapi(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # include our routers
    app.include_router(auth.router)
    app.include_router(images.router)
    app.include_router(stories.router)

    # uploaded images and bundled assets (placeholder image)
    for url_path, directory in (("/uploads", settings.upload_dir), ("/assets", settings.assets_dir)):
        Path(directory).mkdir(parents=True, exist_ok=True)
        app.mount(url_path, StaticFiles(directory=directory), name=url_path.strip("/"))

    @app.get("/", include_in_schema=False)
    def home():
        return {"message": "Welcome to Travel Agency API"}

    logger.info("Travel Journal API ready, storage backend: %s", settings.storage_backend)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("travel_journal.main:app", host="0.0.0.0", port=8000)
