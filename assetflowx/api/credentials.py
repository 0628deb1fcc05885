"""Credential endpoints.

  POST /api/credentials          issue (201), response shape depends on mode
  GET  /api/credentials          summaries, newest first
  GET  /api/credentials/{id}     full detail incl. assertion / metadata
  POST /api/credentials/verify   {valid, type, details}, 200 even when invalid
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from assetflowx.api.dependencies import (
    IdempotencyKey,
    Pagination,
    pagination_body,
    parse_enum_list,
)
from assetflowx.models.credential import CredType
from assetflowx.models.order import ChainId
from assetflowx.services.credential_service import (
    CredentialFilters,
    credential_detail,
    credential_service,
    credential_summary,
)

router = APIRouter(prefix="/api/credentials", tags=["credentials"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IssueCredentialIn(_CamelModel):
    user_id: str
    course_id: str
    mode: CredType


class VerifyCredentialIn(_CamelModel):
    credential_id: str | None = None
    url: str | None = None
    contract: str | None = None
    token_id: str | None = None
    wallet: str | None = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def issue_credential(
    body: IssueCredentialIn, idempotency_key: IdempotencyKey = None
) -> dict:
    return await credential_service.issue_credential(
        body.user_id, body.course_id, body.mode, idempotency_key=idempotency_key
    )


@router.post("/verify")
async def verify_credential(body: VerifyCredentialIn) -> dict:
    result = credential_service.verify_credential(
        credential_id=body.credential_id,
        url=body.url,
        contract=body.contract,
        token_id=body.token_id,
        wallet=body.wallet,
    )
    return result.to_dict()


@router.get("")
async def list_credentials(
    pagination: Pagination,
    type_: Annotated[list[str] | None, Query(alias="type")] = None,
    chain: ChainId | None = None,
    course_id: Annotated[str | None, Query(alias="courseId")] = None,
) -> dict:
    filters = CredentialFilters(
        types=parse_enum_list(type_, CredType, "type"),
        chain=chain,
        course_id=course_id,
    )
    page = credential_service.list_credentials(
        filters, page=pagination.page, limit=pagination.limit
    )
    return {
        "data": [credential_summary(c) for c in page.data],
        "pagination": pagination_body(page),
    }


@router.get("/{credential_id}")
async def get_credential(credential_id: str) -> dict:
    return credential_detail(credential_service.get_credential(credential_id))
