"""
Configuration pytest.

Les tests unitaires tournent sans service externe:
- base SQLite en mémoire (aiosqlite) à la place de PostgreSQL
- cache désactivé, publication d'événements patchée (AsyncMock)
- secret JWT de test
"""

import os
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_ENV = {
    "SQLALCHEMY_DATABASE_URI": "sqlite+aiosqlite:///:memory:",
    "REDIS_URL": os.getenv("REDIS_URL", "redis://localhost:6380/0"),
    "ENVIRONMENT": "test",
    "DEBUG": "false",
    "JWT_SECRET": "test-secret-key-for-unit-tests-only-0123456789",
    "CACHE_ENABLED": "false",
    "CLEANING_SCHEDULER_ENABLED": "false",
    # OpenTelemetry (test mode)
    "OTEL_SERVICE_NAME": "core-gestion-pl-test",
    "OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4317",
    "OTEL_EXPORTER_OTLP_PROTOCOL": "grpc",
    "OTEL_EXPORTER_OTLP_INSECURE": "true",
    "OTEL_SDK_DISABLED": "true",
}

# Appliquer les variables d'environnement de test (ne remplace pas si déjà définies)
for key, value in TEST_ENV.items():
    if key not in os.environ:
        os.environ[key] = value


# ============================================================================
# Fixtures base de données (SQLite en mémoire)
# ============================================================================


@pytest.fixture
async def test_engine():
    """Moteur SQLite en mémoire partagé par toutes les connexions du test."""
    import app.models  # noqa: F401
    from app.core.database import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Fournit une session de base de données isolée pour chaque test."""
    async with session_maker() as session:
        yield session


# ============================================================================
# Fixtures authentification
# ============================================================================


@pytest.fixture
def make_token():
    """Fabrique de JWT signés avec le secret de test."""
    from app.core.security import create_access_token

    def _make_token(**claims):
        payload = {
            "id": "user-1",
            "username": "agent",
            "role": "commercial",
            "role_id": "role-commercial",
            "segment_ids": ["seg-1"],
            "city_ids": ["city-1"],
        }
        payload.update(claims)
        return create_access_token(payload)

    return _make_token


@pytest.fixture
def test_env():
    """Fournit les variables d'environnement de test."""
    return TEST_ENV.copy()
