"""Course catalog (read-only reference data)."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from assetflowx.repos.reference_repo import reference_data

router = APIRouter(prefix="/api/courses", tags=["courses"])


class CourseOut(BaseModel):
    id: str
    name: str
    price: str


@router.get("", response_model=list[CourseOut])
async def list_courses() -> list[CourseOut]:
    return [CourseOut(id=c.id, name=c.name, price=c.price) for c in reference_data.list_courses()]
