from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.db.base import dispose_engine
from app.core.logging import setup_logging, get_logger
from app.apis.auth.main import router as auth_router
from app.apis.errors import ApiError, api_error_handler
from app.apis.flashcards.main import router as flashcards_router

import uvicorn
from fastapi.middleware.cors import CORSMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_logger(__name__).info(
        f"{settings.app.name} {settings.app.version} starting "
        f"(model={settings.generation.model})"
    )
    try:
        yield
    finally:
        await dispose_engine()


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:4321",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApiError, api_error_handler)

    app.include_router(auth_router)
    app.include_router(flashcards_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        print(f"An error occurred when starting the server: {e}.")
