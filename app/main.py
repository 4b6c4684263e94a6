from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from loguru import logger

from pathlib import Path

# Load .env before settings are read
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from app.config import settings
from app.database import engine, Base
from app import models  # noqa: F401

from app.users.routers import auth_router, router as user_router
from app.zones.router import router as zone_router
from app.categories.router import router as category_router
from app.expenses.router import router as expense_router
from app.admin.router import router as admin_router
from app.reports.router import router as report_router
from app.uploads.storage import StorageError


if settings.LOG_FILE:
    logger.add(settings.LOG_FILE, rotation="500 MB", level=settings.LOG_LEVEL)


# Database startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    Base.metadata.create_all(bind=engine)
    yield
    logger.info("Application shutdown")


# Create app
app = FastAPI(
    title="ZONE EXPENSE TRACKER",
    description="An API for recording expenses by category and zone, with admin reports.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Upstream failures: log the cause, return a generic message
@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.opt(exception=exc).error(f"DB error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.opt(exception=exc).error(f"Upload error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Upload failed"})


# Routers
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(zone_router, prefix="/api/zones", tags=["Zones"])
app.include_router(category_router, prefix="/api/categories", tags=["Categories"])
app.include_router(expense_router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(user_router, prefix="/api/users", tags=["Users"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])
app.include_router(report_router, prefix="/api/admin", tags=["Admin - Reports"])


@app.get("/")
def root():
    return {"message": "Backend is alive"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
