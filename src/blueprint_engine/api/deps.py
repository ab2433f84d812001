"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from blueprint_engine.adapters.ai import AIProvider, get_ai_provider
from blueprint_engine.adapters.store import BlueprintRepository, SqlAlchemyBlueprintRepository
from blueprint_engine.domain.models import UserContext
from blueprint_engine.services.blueprints import BlueprintService
from blueprint_engine.services.retry_processor import RetryProcessor


def get_repository() -> BlueprintRepository:
    """Get the blueprint repository backed by the configured database."""
    return SqlAlchemyBlueprintRepository()


RepositoryDep = Annotated[BlueprintRepository, Depends(get_repository)]

AIProviderDep = Annotated[AIProvider, Depends(get_ai_provider)]


def get_blueprint_service(repository: RepositoryDep) -> BlueprintService:
    return BlueprintService(repository)


BlueprintServiceDep = Annotated[BlueprintService, Depends(get_blueprint_service)]


def get_processor(repository: RepositoryDep, ai_provider: AIProviderDep) -> RetryProcessor:
    return RetryProcessor(repository, ai_provider)


ProcessorDep = Annotated[RetryProcessor, Depends(get_processor)]


def get_current_user(
    x_user_id: Annotated[str | None, Header(description="Authenticated user id")] = None,
) -> UserContext:
    """Resolve the caller from the ``X-User-Id`` header set by the auth gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return UserContext(user_id=x_user_id.strip())


CurrentUserDep = Annotated[UserContext, Depends(get_current_user)]
