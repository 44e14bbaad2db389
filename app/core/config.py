import json
from typing import Literal, TypeAlias

from opentelemetry.sdk.resources import Resource
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings

# Type personnalisé pour les listes configurables depuis l'environnement
ConfigurableList: TypeAlias = str | list[str] | list[AnyHttpUrl]


def parse_list_from_env(value: ConfigurableList, field_name: str = "field") -> list[str]:
    """
    Lit une liste depuis l'environnement.

    Accepte une liste déjà parsée, un tableau JSON ('["a", "b"]') ou des
    valeurs séparées par des virgules ("a,b"). Une chaîne vide donne [].
    """
    if isinstance(value, list):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Valeur invalide pour {field_name}: {value}")

    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise ValueError(f"Format JSON invalide pour {field_name}: {value}") from None
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    PROJECT_NAME: str = "core-gestion-pl"
    PROJECT_SLUG: str = "gestion"
    VERSION: str = "0.1.0"
    DESCRIPTION: str = (
        "Règles métier de la plateforme de gestion: prospects, RBAC, jours ouvrables, archives"
    )

    API_VERSIONS: list[str] = ["v1"]
    API_LATEST_VERSION: str = "v1"

    # Environnement
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    DEBUG: bool = False

    # Authentification JWT (tokens émis par le service d'authentification)
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ADMIN_ROLE_NAME: str = "admin"

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Refuse les secrets trop courts (minimum 32 caractères)."""
        if len(v) < 32:
            raise ValueError(f"JWT_SECRET trop court ({len(v)} caractères, minimum 32)")
        return v

    # OpenTelemetry
    OTEL_SERVICE_NAME: str
    OTEL_EXPORTER_OTLP_ENDPOINT: str
    OTEL_EXPORTER_OTLP_PROTOCOL: str
    OTEL_EXPORTER_OTLP_INSECURE: bool
    OTEL_LOG_LEVEL: str = "info"
    OTEL_LOGS_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_TRACES_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_METRICS_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_PYTHON_LOG_LEVEL: str = "info"
    OTEL_PYTHON_LOGGING_AUTO_INSTRUMENTATION_ENABLED: bool = True
    OTEL_PYTHON_LOG_CORRELATION: bool = True
    OTEL_PYTHON_LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] [%(filename)s:%(lineno)d] [trace_id=%(otelTraceID)s span_id=%(otelSpanID)s resource.service.name=%(otelServiceName)s trace_sampled=%(otelTraceSampled)s] - %(message)s"

    # CORS
    # Définir dans .env, ex: ALLOWED_ORIGINS='["http://localhost:5173","https://app.exemple.ma"]'
    ALLOWED_ORIGINS: ConfigurableList = []
    TRUSTED_HOSTS: ConfigurableList = ["localhost", "127.0.0.1"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: ConfigurableList) -> list[str]:
        """
        Permet de définir ALLOWED_ORIGINS de plusieurs façons:
        - Chaîne séparée par des virgules: "http://localhost:5173,https://app.exemple.ma"
        - Format JSON: '["http://localhost:5173","https://app.exemple.ma"]'
        - Liste Python directe (si déjà parsée)
        """
        return parse_list_from_env(v, "ALLOWED_ORIGINS")

    @field_validator("TRUSTED_HOSTS", mode="before")
    @classmethod
    def assemble_trusted_hosts(cls, v: ConfigurableList) -> list[str]:
        """Parse TRUSTED_HOSTS depuis une variable d'environnement."""
        return parse_list_from_env(v, "TRUSTED_HOSTS")

    # Base de données
    # PostgreSQL avec SQLAlchemy 2.0 (postgresql+asyncpg://...)
    SQLALCHEMY_DATABASE_URI: str

    # Redis (événements Pub/Sub + cache)
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_DB: int = 0

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_TTL_DEFAULT: int = 600
    CACHE_TTL_PERMISSIONS: int = 300
    CACHE_TTL_COUNTRY_CODES: int = 86400

    # Stockage des fichiers (archives documents étudiants, logos, polices)
    UPLOADS_PATH: str = "./uploads"

    # Prospects: réinjection et nettoyage
    PROSPECT_REINJECT_DELAY_HOURS: int = 24
    CLEANING_RDV_GRACE_DAYS: int = 7
    CLEANING_STALE_INJECTION_DAYS: int = 3
    CLEANING_SCHEDULER_ENABLED: bool = True
    CLEANING_SCHEDULE_HOUR: int = 2
    CLEANING_SCHEDULE_MINUTE: int = 0

    # Téléphonie: pays par défaut pour les numéros nationaux (0XXXXXXXXX)
    DEFAULT_COUNTRY_CODE: str = "212"

    # Période de paie (du 19 au 18 du mois suivant)
    PAYROLL_PERIOD_START_DAY: int = 19

    # Ressource OpenTelemetry
    @property
    def OTEL_RESOURCE_ATTRIBUTES(self) -> Resource:  # noqa: N802
        """Crée l'objet Resource pour OpenTelemetry avec les attributs du service."""
        return Resource(
            attributes={
                "service.name": self.OTEL_SERVICE_NAME,
                "service.version": self.VERSION,
                "service.environment": self.ENVIRONMENT,
                "service.debug": str(self.DEBUG).lower(),
            }
        )

    def get_api_prefix(self, version: str | None = None) -> str:
        """Préfixe des routes d'une version d'API (/api/v1 par défaut)."""
        version = version or self.API_LATEST_VERSION
        return f"/api/{version}"

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


# Instance unique des paramètres chargée depuis .env
settings = Settings()
