import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from voxarena_backend.config import ALLOWED_ORIGINS, AUTO_CREATE_TABLES, LOG_LEVEL
from voxarena_backend.db_session import async_engine, get_async_session
from voxarena_backend.debates_api import router as debates_router
from voxarena_backend.middleware import configure_security
from voxarena_backend.models import Base
from voxarena_backend.personas_api import router as personas_router
from voxarena_backend.taxonomy_api import router as taxonomy_router
from voxarena_backend.taxonomy_categories_api import router as taxonomy_categories_router

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("voxarena_backend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if AUTO_CREATE_TABLES:
        logger.info("Creating database tables (AUTO_CREATE_TABLES=on)...")
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    logger.info("Disposing database engine...")
    await async_engine.dispose()


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _describe_validation_error(exc)
    logger.warning("Rejected request to %s: %s", request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


def create_app() -> FastAPI:
    app = FastAPI(title="VoxArena API", lifespan=lifespan)

    # Security middleware first so CORS ends up outermost
    configure_security(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(personas_router)
    app.include_router(debates_router)
    app.include_router(taxonomy_router)
    app.include_router(taxonomy_categories_router)

    @app.get("/health")
    async def health(db: AsyncSession = Depends(get_async_session)):
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Health check database probe failed: %s", e)
            raise HTTPException(status_code=503, detail=f"Database unavailable: {str(e)}")
        return {"status": "ok", "database": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("voxarena_backend.backend:app", host="0.0.0.0", port=8000, reload=False)
