"""FastAPI application: main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sfa.config import get_settings
from sfa.infrastructure.database import engine, Base
from sfa.core.logging import configure_logging
from sfa.core.middleware import setup_middleware
from sfa.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from sfa.domain.models.visit import Visit
from sfa.domain.models.order import Order, OrderItem
from sfa.domain.models.payment import Payment
from sfa.domain.models.cooler import Cooler, CoolerInspection
from sfa.domain.models.survey import SurveyResponse, SurveyAnswer

# Import routers
from sfa.interfaces.api.visits import router as visits_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting SFA visit service...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only; use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("SFA visit service stopped")


app = FastAPI(
    title="SFA Visits",
    description="API Backend: bulk upsert of field visits with orders, payments, cooler inspections and surveys",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Global Exception Handling
app.add_exception_handler(AppError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS runs outermost (Starlette executes the last added middleware first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(visits_router)


@app.get("/")
def root():
    return {
        "name": "SFA Visits",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
