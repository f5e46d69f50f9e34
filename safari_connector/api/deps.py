"""Shared API dependencies: single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from safari_connector.api.deps import get_db, get_current_active_user
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.auth.dependencies import (
    get_approved_operator,
    get_current_active_user,
    get_current_operator,
    get_current_user,
    get_optional_user,
    require_roles,
)
from safari_connector.database import get_db
from safari_connector.models.operator import Operator
from safari_connector.models.user import User
from safari_connector.services.transition_authority import ActorContext

require_back_office = require_roles("admin", "finance")


async def get_user_operator(
    user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Operator | None:
    """Operator profile of the current user, or None for non-operators."""
    if user.role != "operator":
        return None
    result = await db.execute(select(Operator).where(Operator.user_id == user.id))
    return result.scalar_one_or_none()


async def get_actor(
    user: User = Depends(get_current_active_user),
    operator: Operator | None = Depends(get_user_operator),
) -> ActorContext:
    """Lifecycle actor for the current user.

    Raises:
        HTTPException 403: Operator users without an approved profile.
    """
    if user.role == "operator" and (operator is None or not operator.is_approved):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operator account must be approved to manage bookings",
        )
    return ActorContext.for_user(user, operator)


__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_optional_user",
    "get_current_operator",
    "get_approved_operator",
    "get_user_operator",
    "get_actor",
    "require_roles",
    "require_back_office",
]
