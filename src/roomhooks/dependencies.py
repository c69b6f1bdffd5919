"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from roomhooks.config import settings
from roomhooks.github.client import GitHubClient
from roomhooks.repositories.room_repo import RoomRepository
from roomhooks.repositories.subscription_repo import SubscriptionRepository
from roomhooks.services.issues import IssueService
from roomhooks.services.reconciler import SubscriptionReconciler
from roomhooks.services.subscription_handler import SubscriptionRequestHandler


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


def get_github_client(request: Request) -> GitHubClient:
    """Return the shared GitHub client from app state."""
    return request.app.state.github_client


def get_subscription_handler(
    request: Request,
    db: AsyncSession = Depends(get_db),
    client: GitHubClient = Depends(get_github_client),
) -> SubscriptionRequestHandler:
    reconciler = SubscriptionReconciler(
        SubscriptionRepository(db),
        client,
        settings.webhook_callback_url,
        locks=request.app.state.repository_locks,
    )
    return SubscriptionRequestHandler(reconciler, RoomRepository(db))


def get_issue_service(client: GitHubClient = Depends(get_github_client)) -> IssueService:
    return IssueService(client)


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
TraceId = Annotated[str, Depends(get_trace_id)]
SubscribeHandler = Annotated[SubscriptionRequestHandler, Depends(get_subscription_handler)]
Issues = Annotated[IssueService, Depends(get_issue_service)]
