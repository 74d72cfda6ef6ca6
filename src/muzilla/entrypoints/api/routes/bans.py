"""Ban moderation routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, StringConstraints

from muzilla.core.exceptions import InvalidBanRequest
from muzilla.core.moderation import (
    DEFAULT_LATEST_LIMIT,
    BanService,
    Decision,
    Rejected,
    RejectionReason,
)
from muzilla.entrypoints.api.deps import get_ban_service
from muzilla.models import REASON_MAX_LENGTH, BanKind

router = APIRouter(prefix="/bans", tags=["bans"])

# Annotated type for dependency injection
BanServiceDep = Annotated[BanService, Depends(get_ban_service)]

TargetKind = Literal["users", "songs", "collections"]

_KINDS: dict[str, BanKind] = {
    "users": BanKind.USER,
    "songs": BanKind.SONG,
    "collections": BanKind.COLLECTION,
}

_NOT_FOUND = {
    RejectionReason.USER_IS_NULL,
    RejectionReason.SONG_IS_NULL,
    RejectionReason.COLLECTION_IS_NULL,
}
_CONFLICT = {RejectionReason.IT_BANNED, RejectionReason.IT_NOT_BANNED}


class BanRequest(BaseModel):
    """Request to ban a user, song or collection."""

    target_id: int = Field(gt=0)
    actor_id: int = Field(gt=0)
    reason: Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=1, max_length=REASON_MAX_LENGTH),
    ]
    ban_until_utc: datetime


class UnbanRequest(BaseModel):
    """Request to lift the bans on a target."""

    actor_id: int = Field(gt=0)


class DecisionResponse(BaseModel):
    """Outcome of an applied moderation action."""

    outcome: str


class BanResponse(BaseModel):
    """A ban in the latest-bans feed."""

    id: int
    actor_id: int | None
    kind: TargetKind
    target_id: int
    reason: str
    ban_until_utc: datetime
    banned_at_utc: datetime


class BanStatusResponse(BaseModel):
    """Whether a target is currently banned."""

    is_banned: bool


def _status_for(reason: RejectionReason) -> int:
    if reason in _NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if reason in _CONFLICT:
        return status.HTTP_409_CONFLICT
    return status.HTTP_403_FORBIDDEN


def _respond(decision: Decision) -> DecisionResponse:
    """Turn a decision into a response, raising for rejections."""
    if isinstance(decision, Rejected):
        raise HTTPException(
            status_code=_status_for(decision.reason),
            detail={"outcome": decision.outcome},
        )
    return DecisionResponse(outcome=decision.outcome)


def _invalid(error: InvalidBanRequest) -> HTTPException:
    return HTTPException(status_code=422, detail=str(error))


@router.post("/users", response_model=DecisionResponse, status_code=status.HTTP_201_CREATED)
async def ban_user(body: BanRequest, service: BanServiceDep) -> DecisionResponse:
    """Ban a user."""
    try:
        decision = await service.ban_user(
            body.target_id, body.actor_id, body.reason, body.ban_until_utc
        )
    except InvalidBanRequest as e:
        raise _invalid(e) from e
    return _respond(decision)


@router.post("/users/{user_id}/unban", response_model=DecisionResponse)
async def unban_user(user_id: int, body: UnbanRequest, service: BanServiceDep) -> DecisionResponse:
    """Lift every live ban on a user."""
    return _respond(await service.unban_user(user_id, body.actor_id))


@router.post("/songs", response_model=DecisionResponse, status_code=status.HTTP_201_CREATED)
async def ban_song(body: BanRequest, service: BanServiceDep) -> DecisionResponse:
    """Ban a song."""
    try:
        decision = await service.ban_song(
            body.target_id, body.actor_id, body.reason, body.ban_until_utc
        )
    except InvalidBanRequest as e:
        raise _invalid(e) from e
    return _respond(decision)


@router.post("/songs/{song_id}/unban", response_model=DecisionResponse)
async def unban_song(song_id: int, body: UnbanRequest, service: BanServiceDep) -> DecisionResponse:
    """Lift every live ban on a song."""
    return _respond(await service.unban_song(song_id, body.actor_id))


@router.post("/collections", response_model=DecisionResponse, status_code=status.HTTP_201_CREATED)
async def ban_collection(body: BanRequest, service: BanServiceDep) -> DecisionResponse:
    """Ban a collection."""
    try:
        decision = await service.ban_collection(
            body.target_id, body.actor_id, body.reason, body.ban_until_utc
        )
    except InvalidBanRequest as e:
        raise _invalid(e) from e
    return _respond(decision)


@router.post("/collections/{collection_id}/unban", response_model=DecisionResponse)
async def unban_collection(
    collection_id: int, body: UnbanRequest, service: BanServiceDep
) -> DecisionResponse:
    """Lift every live ban on a collection."""
    return _respond(await service.unban_collection(collection_id, body.actor_id))


@router.get("/latest", response_model=list[BanResponse])
async def latest_bans(
    service: BanServiceDep,
    limit: Annotated[int, Query(ge=1, le=100)] = DEFAULT_LATEST_LIMIT,
) -> list[BanResponse]:
    """List the most recent bans, newest first."""
    kind_names = {kind: name for name, kind in _KINDS.items()}
    bans = await service.latest_bans(limit)
    return [
        BanResponse(
            id=ban.id,
            actor_id=ban.actor_id,
            kind=kind_names[ban.kind],  # type: ignore[arg-type]
            target_id=ban.target_id,
            reason=ban.reason,
            ban_until_utc=ban.ban_until_utc,
            banned_at_utc=ban.banned_at_utc,
        )
        for ban in bans
    ]


@router.get("/{kind}/{target_id}", response_model=BanStatusResponse)
async def ban_status(kind: TargetKind, target_id: int, service: BanServiceDep) -> BanStatusResponse:
    """Check whether a user, song or collection is currently banned."""
    return BanStatusResponse(is_banned=await service.is_banned(_KINDS[kind], target_id))
