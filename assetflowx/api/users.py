from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from assetflowx.core.errors import NotFoundError
from assetflowx.repos.reference_repo import reference_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


class UserOut(BaseModel):
    id: str
    name: str
    wallet: str | None = None


@router.get("/{user_id}", response_model=UserOut, response_model_exclude_none=True)
async def get_user(user_id: str) -> UserOut:
    user = reference_data.get_user_by_id(user_id)
    if user is None:
        logger.debug("Unknown user lookup user=%s", user_id)
        raise NotFoundError("User not found")
    return UserOut(id=user.id, name=user.name, wallet=user.wallet)
