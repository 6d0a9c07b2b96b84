"""Identity provider: resolve an authenticated principal from a bearer token."""

import logging
from dataclasses import dataclass

from backend.app.core.exceptions import AccountNotActiveError, UnauthenticatedError
from backend.app.core.security import TokenPayloadError, decode_access_token
from backend.app.db.gateway import ReportGateway
from backend.app.models.user import UserRole, UserStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The resolved caller, independent of how the credential was carried."""

    user_id: str
    email: str
    name: str
    role: str
    class_id: str | None = None
    student_role: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class IdentityProvider:
    """Turn a credential into a ``Principal``."""

    def __init__(self, gateway: ReportGateway):
        self.gateway = gateway

    async def resolve(self, token: str | None) -> Principal:
        """
        Decode the token and load the user it names.

        Raises:
            UnauthenticatedError: Missing or invalid token, or unknown user
            AccountNotActiveError: The account exists but is not ACTIVE
        """
        if not token:
            raise UnauthenticatedError()

        try:
            payload = decode_access_token(token)
        except TokenPayloadError as e:
            raise UnauthenticatedError("Invalid token.") from e

        user = await self.gateway.get_user(payload["sub"])
        if user is None:
            raise UnauthenticatedError("User not found. Token invalid.")

        if user.status != UserStatus.ACTIVE.value:
            logger.info(f"[AUTH] Rejected inactive account {user.id} ({user.status})")
            raise AccountNotActiveError(user.status)

        profile = user.student_profile
        return Principal(
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            class_id=profile.class_id if profile else None,
            student_role=profile.student_role if profile else None,
        )
