from opentelemetry.instrumentation import auto_instrumentation

auto_instrumentation.initialize()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

# Import automatique de tous les handlers d'événements
import app.events
from app.api.v1 import api as api_v1
from app.core.config import settings
from app.core.database import async_session_maker, create_db_and_tables
from app.core.events import lifespan as events_lifespan
from app.core.exceptions import setup_exception_handlers
from app.services.archive_service import verify_archive_structure
from app.services.permission_service import sync_permissions_catalog
from app.services.phone_service import seed_country_phone_config
from app.services.prospect_cleaning import start_cleaning_scheduler, stop_cleaning_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gère le cycle de vie de l'application:
    - Crée les tables de base de données.
    - Initialise les référentiels (indicatifs pays, catalogue des permissions).
    - Vérifie la racine des archives documentaires.
    - Initialise le système d'événements (Redis Pub/Sub).
    - Démarre le batch quotidien de nettoyage des prospects.
    - Arrête proprement les services.
    """
    logger.info("=== Application Startup ===")

    # 1. Créer les tables de base de données
    await create_db_and_tables()
    logger.info("Tables de base de données créées")

    # 2. Référentiels
    async with async_session_maker() as session:
        added = await seed_country_phone_config(session)
        logger.info(f"Indicatifs pays initialisés ({added} ajout(s))")
        stats = await sync_permissions_catalog(session)
        logger.info(
            f"Catalogue des permissions synchronisé "
            f"({stats['created']} créée(s), {stats['updated']} mise(s) à jour)"
        )
    verify_archive_structure()

    # 3. Utiliser le lifespan des événements (Redis Pub/Sub)
    async with events_lifespan(app):
        try:
            # 4. Scheduler de nettoyage des prospects
            start_cleaning_scheduler()

            logger.info("=== Application Startup Complete ===")
            yield

        finally:
            logger.info("=== Application Shutdown ===")
            stop_cleaning_scheduler()
            logger.info("=== Application Shutdown Complete ===")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
    openapi_url=f"{settings.get_api_prefix()}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Enveloppe d'erreur {success: false, error, code, details}
setup_exception_handlers(app)

# Middleware CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware Trusted Hosts
if settings.ENVIRONMENT != "development":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.TRUSTED_HOSTS,
    )

# Include API v1 (current version)
app.include_router(api_v1.router, prefix=settings.get_api_prefix("v1"))
