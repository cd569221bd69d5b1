"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from menu_planner.config import get_settings
from menu_planner.database import engine, Base, AsyncSessionLocal, get_db
from menu_planner.models import User, UserRole
from menu_planner.api.auth import get_password_hash
from menu_planner.api import auth, menus, menu_items, selections, ratings, admin, users
from menu_planner.utils.logger import get_logger
from menu_planner.utils.validators import normalize_username

settings = get_settings()
logger = get_logger(__name__)


async def seed_admin() -> None:
    """Create the bootstrap admin from ADMIN_USERNAME / ADMIN_PASSWORD if missing"""
    username = normalize_username(settings.ADMIN_USERNAME)
    if not username or not settings.ADMIN_PASSWORD:
        return

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.username == username))
        if result.scalar_one_or_none():
            return
        password_hash = await run_in_threadpool(get_password_hash, settings.ADMIN_PASSWORD)
        session.add(User(
            username=username,
            password_hash=password_hash,
            role=UserRole.ADMIN,
        ))
        await session.commit()
        logger.info(f"Created bootstrap admin user {username!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    await seed_admin()

    yield

    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request."
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(menus.router, prefix="/api/menus", tags=["Menus"])
app.include_router(menu_items.router, prefix="/api/menu-items", tags=["Menu Items"])
app.include_router(selections.router, prefix="/api/selections", tags=["Selections"])
app.include_router(ratings.router, prefix="/api/menu-ratings", tags=["Menu Ratings"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
    return {"status": "healthy", "database": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "menu_planner.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
