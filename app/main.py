"""
Job Board - Main Application

FastAPI backend with:
- MongoDB for users, jobs and applications
- JWT authentication with role and ownership gates
- structlog request logging

Run: uvicorn app.main:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

from app.api import api_router
from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import RequestIdMiddleware
from app.db.mongodb import get_db, get_mongo_db, init_mongo_indexes, test_mongo_connection
from app.schemas.schemas import HealthResponse

settings = get_settings()
setup_logging(settings)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes(get_mongo_db())
        logger.info("mongodb indexes initialized", database=settings.mongodb_db)
    except PyMongoError as exc:
        logger.error("mongodb index initialization failed", exc_info=exc)
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="""
    Three-role job board.

    ## Features
    - **Authentication**: JWT bearer tokens; job seekers, recruiters and admins
    - **Jobs**: Recruiters post jobs; admins approve them before they are listed
    - **Applications**: Job seekers apply and withdraw; recruiters review
    - **Admin**: User, job and application management, analytics
    """,
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
def health_check(db: Database = Depends(get_db)):
    """Database connectivity check."""
    return HealthResponse(
        status="healthy",
        mongodb="connected" if test_mongo_connection(db) else "disconnected"
    )
