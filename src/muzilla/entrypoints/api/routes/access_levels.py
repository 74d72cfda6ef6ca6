"""Access level management routes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from muzilla.entrypoints.api.deps import get_access_level_service
from muzilla.models import AccessLevel
from muzilla.services import AccessLevelFlags, AccessLevelService

router = APIRouter(prefix="/access-levels", tags=["access-levels"])

# Annotated type for dependency injection
AccessLevelServiceDep = Annotated[AccessLevelService, Depends(get_access_level_service)]


class AccessLevelBody(BaseModel):
    """Capability flags of an access level."""

    can_ban_user: bool = False
    can_ban_song: bool = False
    can_ban_collection: bool = False
    can_download: bool = False
    can_upload: bool = False
    can_report: bool = False
    can_manage_reports: bool = False
    can_manage_supports: bool = False
    can_manage_access_levels: bool = False

    def to_flags(self) -> AccessLevelFlags:
        return AccessLevelFlags(**self.model_dump())


class AccessLevelResponse(AccessLevelBody):
    """An access level."""

    id: int

    @classmethod
    def of(cls, access_level: AccessLevel) -> AccessLevelResponse:
        return cls(id=access_level.id, **asdict(AccessLevelFlags.of(access_level)))


class CreatedResponse(BaseModel):
    """Identifier of a newly created access level."""

    id: int


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_access_level(
    body: AccessLevelBody, service: AccessLevelServiceDep
) -> CreatedResponse:
    """Create an access level."""
    return CreatedResponse(id=await service.create(body.to_flags()))


@router.post("/default", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_default_access_level(service: AccessLevelServiceDep) -> CreatedResponse:
    """Create an access level with the default user capabilities."""
    return CreatedResponse(id=await service.create_default())


@router.get("/{access_level_id}", response_model=AccessLevelResponse)
async def get_access_level(
    access_level_id: int, service: AccessLevelServiceDep
) -> AccessLevelResponse:
    """Get an access level."""
    access_level = await service.get(access_level_id)
    if access_level is None:
        raise HTTPException(status_code=404, detail="Access level not found")
    return AccessLevelResponse.of(access_level)


@router.patch("/{access_level_id}", response_model=AccessLevelResponse)
async def update_access_level(
    access_level_id: int, body: AccessLevelBody, service: AccessLevelServiceDep
) -> AccessLevelResponse:
    """Replace the flags of an access level."""
    access_level = await service.update(access_level_id, body.to_flags())
    if access_level is None:
        raise HTTPException(status_code=404, detail="Access level not found")
    return AccessLevelResponse.of(access_level)


@router.delete("/{access_level_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_access_level(access_level_id: int, service: AccessLevelServiceDep) -> Response:
    """Delete an access level."""
    if not await service.delete(access_level_id):
        raise HTTPException(status_code=404, detail="Access level not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
