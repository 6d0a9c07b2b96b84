"""Shared FastAPI dependencies: gateway, authenticated principal and services."""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ForbiddenActionError
from backend.app.db.base import get_db
from backend.app.db.gateway import ReportGateway
from backend.app.services.aggregation import AggregationService
from backend.app.services.catalog import CatalogService
from backend.app.services.identity import IdentityProvider, Principal
from backend.app.services.lifecycle import ReportLifecycleService
from backend.app.services.notifications import EmailNotifier, NotificationDispatcher

bearer_scheme = HTTPBearer(auto_error=False)


def get_gateway(db: AsyncSession = Depends(get_db)) -> ReportGateway:
    return ReportGateway(db)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    gateway: ReportGateway = Depends(get_gateway),
) -> Principal:
    token = credentials.credentials if credentials else None
    return await IdentityProvider(gateway).resolve(token)


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenActionError("Admin access required")
    return principal


def get_dispatcher(request: Request) -> NotificationDispatcher:
    """Dispatcher publishing to the app's websocket rooms and the mail API."""
    return NotificationDispatcher(
        channel=getattr(request.app.state, "connections", None),
        mailer=EmailNotifier(),
    )


def get_lifecycle_service(
    gateway: ReportGateway = Depends(get_gateway),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ReportLifecycleService:
    return ReportLifecycleService(gateway, dispatcher)


def get_aggregation_service(gateway: ReportGateway = Depends(get_gateway)) -> AggregationService:
    return AggregationService(gateway)


def get_catalog_service(gateway: ReportGateway = Depends(get_gateway)) -> CatalogService:
    return CatalogService(gateway)
