import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Startup: make sure a dataset exists (creates an empty one on first run)
    from app.services.storage import get_repository

    dataset = get_repository().load()
    logger.info(
        "Dataset ready: %d students, %d active sponsorships",
        dataset.metadata.programs_summary.total_students_across_all_programs,
        dataset.metadata.programs_summary.total_active_sponsorships,
    )

    # Startup: generate import templates if they don't exist
    try:
        from app.services.template_service import generate_all_templates

        templates_dir = settings.TEMPLATES_DIR
        existing = list(templates_dir.glob("*.xlsx")) if templates_dir.exists() else []
        if not existing:
            logger.info("Generating Excel import templates on startup...")
            generate_all_templates(templates_dir)
        else:
            logger.info("Templates already exist (%d files), skipping generation.", len(existing))
    except OSError as exc:
        logger.warning("Could not generate templates on startup: %s", exc)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR), name="uploads")


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Dataset and reports
from app.routers import reports  # noqa: E402

app.include_router(reports.router, prefix=settings.API_PREFIX, tags=["Reports"])

# Programs and students
from app.routers import programs  # noqa: E402

app.include_router(
    programs.router,
    prefix=f"{settings.API_PREFIX}/programs",
    tags=["Programs"],
)

# Sponsor registry
from app.routers import registry  # noqa: E402

app.include_router(registry.router, prefix=settings.API_PREFIX, tags=["Registry"])

# Daily expenses
from app.routers import expenses  # noqa: E402

app.include_router(
    expenses.router,
    prefix=f"{settings.API_PREFIX}/expenses",
    tags=["Expenses"],
)

# Events
from app.routers import events  # noqa: E402

app.include_router(
    events.router,
    prefix=f"{settings.API_PREFIX}/events",
    tags=["Events"],
)

# System settings
from app.routers import system_settings  # noqa: E402

app.include_router(
    system_settings.router,
    prefix=f"{settings.API_PREFIX}/settings",
    tags=["Settings"],
)

# Import (JSON, Excel, templates)
from app.routers import imports  # noqa: E402

app.include_router(imports.router, prefix=settings.API_PREFIX, tags=["Import"])

# Export (JSON, Excel + PDF)
from app.routers import exports  # noqa: E402

app.include_router(
    exports.router,
    prefix=f"{settings.API_PREFIX}/export",
    tags=["Export"],
)

# Realtime change feed
from app.routers import realtime  # noqa: E402

app.include_router(realtime.router)
