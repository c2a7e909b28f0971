from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinicdesk import __version__
from clinicdesk.config import settings
from clinicdesk.database import Database
from clinicdesk.features.appointments.router import router as appointments_router
from clinicdesk.features.clinics.router import router as clinics_router
from clinicdesk.features.doctors.router import router as doctors_router
from clinicdesk.features.patients.router import router as patients_router
from clinicdesk.routers import health_router
from clinicdesk.shared.errors import SchedulingError
from clinicdesk.shared.exceptions import scheduling_error_handler
from clinicdesk.core.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI application."""
    # Startup
    logger.info("Starting ClinicDesk API...")
    await Database.connect_db()
    logger.info(
        f"Application started (storage={settings.STORAGE_BACKEND}, "
        f"appointment duration={settings.APPOINTMENT_DURATION_MINUTES}min)"
    )
    
    yield
    
    # Shutdown
    logger.info("Shutting down...")
    await Database.close_db()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Multi-tenant clinic scheduling API",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SchedulingError, scheduling_error_handler)

# Register routers
app.include_router(health_router)
app.include_router(clinics_router, prefix=settings.API_V1_PREFIX)
app.include_router(doctors_router, prefix=settings.API_V1_PREFIX)
app.include_router(patients_router, prefix=settings.API_V1_PREFIX)
app.include_router(appointments_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
