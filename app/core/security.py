import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from opentelemetry import trace
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_session
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.services import permission_service

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Security scheme for Bearer token (auto_error=False: fallback query/cookie)
security_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Utilisateur authentifié, reconstruit depuis les claims du JWT."""

    id: str
    username: str
    role: str | None = None
    role_id: str | None = None
    full_name: str | None = None
    segment_ids: list[str] = Field(default_factory=list)
    city_ids: list[str] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role == settings.ADMIN_ROLE_NAME

    def can_access_scope(
        self, segment_id: str | None, city_id: str | None = None, require_city: bool = False
    ) -> bool:
        """
        Vérifie qu'un segment/ville est dans le périmètre de l'utilisateur.

        Les administrateurs ont accès à tout. Une ville absente (None) ne
        restreint pas l'accès, sauf avec ``require_city`` (création d'un
        prospect: la ville doit faire partie des villes de l'utilisateur).
        """
        if self.is_admin:
            return True
        if segment_id not in self.segment_ids:
            return False
        if city_id is None:
            return not require_city
        return city_id in self.city_ids

    def ensure_scope(
        self,
        segment_id: str | None,
        city_id: str | None = None,
        error: str = "Ressource hors de votre scope",
        require_city: bool = False,
    ) -> None:
        if not self.can_access_scope(segment_id, city_id, require_city):
            logger.warning(
                f"Accès hors scope refusé pour {self.username}: segment={segment_id} ville={city_id}"
            )
            raise ForbiddenError(error=error, code="OUT_OF_SCOPE")


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Signe un JWT avec les claims de l'utilisateur.

    Les tokens sont normalement émis par le service d'authentification; cette
    fonction sert aux outils internes et aux tests.
    """
    payload = dict(claims)
    payload["exp"] = datetime.now(UTC) + (expires_delta or timedelta(hours=24))
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Vérifie la signature et l'expiration d'un JWT.

    Raises:
        UnauthorizedError: TOKEN_EXPIRED (401) si le token a expiré
        ForbiddenError: INVALID_TOKEN (403) si le token est invalide
    """
    with tracer.start_as_current_span("verify_token") as span:
        try:
            token_info = jwt.decode(
                token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
            )
        except ExpiredSignatureError as e:
            logger.info("Token expiré")
            span.set_attribute("auth.error", "expired")
            raise UnauthorizedError(
                error="Token expiré. Veuillez vous reconnecter.", code="TOKEN_EXPIRED"
            ) from e
        except JWTError as e:
            logger.warning(f"Token invalide: {e}")
            span.set_attribute("auth.error", "invalid")
            raise ForbiddenError(error="Token invalide.", code="INVALID_TOKEN") from e

        span.set_attribute("auth.user_id", str(token_info.get("id")))
        return token_info


async def extract_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)] = None,
) -> str:
    """
    Extract JWT token from multiple sources.

    Token extraction priority:
    1. Authorization header: Bearer <token>
    2. Query parameter: ?token=<token> (téléchargements, EventSource)
    3. Cookie: auth_token

    Raises:
        UnauthorizedError: NO_TOKEN si aucune source ne fournit de token
    """
    # Source 1: Authorization header (Bearer token)
    if credentials:
        logger.debug("Token extracted from Authorization header")
        return credentials.credentials

    # Source 2: Query parameter (?token=<jwt>)
    token = request.query_params.get("token")
    if token:
        logger.debug("Token extracted from query parameter")
        return token

    # Source 3: Cookie (auth_token)
    token = request.cookies.get("auth_token")
    if token:
        logger.debug("Token extracted from cookie")
        return token

    logger.warning("No authentication token found in request")
    raise UnauthorizedError(error="Accès refusé. Aucun token fourni.", code="NO_TOKEN")


async def get_current_user(token: Annotated[str, Depends(extract_token)]) -> CurrentUser:
    """Get current user from a verified token."""
    token_data = verify_token(token)
    with tracer.start_as_current_span("get_current_user") as span:
        try:
            user = CurrentUser(
                id=str(token_data["id"]),
                username=token_data["username"],
                role=token_data.get("role"),
                role_id=token_data.get("role_id"),
                full_name=token_data.get("full_name"),
                segment_ids=[str(s) for s in token_data.get("segment_ids") or []],
                city_ids=[str(c) for c in token_data.get("city_ids") or []],
            )
        except (KeyError, ValueError) as e:
            logger.error(f"Claims incomplets dans le token: {e}")
            span.set_attribute("auth.error", True)
            raise ForbiddenError(error="Token invalide.", code="INVALID_TOKEN") from e

        span.set_attribute("auth.user_id", user.id)
        span.set_attribute("auth.username", user.username)
        return user


def require_permission(*codes: str):
    """
    Dependency factory for permission-based access control.

    Les codes anglais hérités sont convertis en codes français avant
    vérification. L'utilisateur doit posséder AU MOINS UN des codes.
    Le rôle admin et la permission "*" donnent accès à tout.

    Examples:
        @router.get("/prospects", dependencies=[Depends(require_permission("commercialisation.prospects.voir"))])

        @router.post("/holidays")
        async def create(user: CurrentUser = Depends(require_permission("hr.holidays.create"))): ...
    """
    required = [permission_service.normalize_permission_code(code) for code in codes]

    async def permission_checker(
        current_user: CurrentUser = Depends(get_current_user),
        db: AsyncSession = Depends(get_session),
    ) -> CurrentUser:
        with tracer.start_as_current_span("check_user_permissions") as span:
            span.set_attribute("auth.required_permissions", ",".join(required))
            span.set_attribute("auth.user_id", current_user.id)

            if current_user.is_admin:
                logger.debug(f"Admin bypass pour {current_user.username} sur {required}")
                span.set_attribute("auth.admin_bypass", True)
                return current_user

            granted = await permission_service.get_user_permissions(db, current_user.id)

            if not permission_service.has_permission(current_user.role, required, granted):
                logger.warning(
                    f"Permission refusée pour {current_user.username}: "
                    f"requis {' ou '.join(required)}"
                )
                span.set_attribute("auth.access_denied", True)
                raise ForbiddenError(
                    error=f"Accès refusé. Permission requise: {' ou '.join(required)}",
                    code="INSUFFICIENT_PERMISSION",
                )

            span.set_attribute("auth.access_granted", True)
            return current_user

    return permission_checker
