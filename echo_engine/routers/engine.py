"""Per-user swipe, match and resonance endpoints backed by the engine service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..models.location import CheckInRequest, CheckInResult
from ..models.match import Match, MatchListResponse
from ..models.profile import QueueRequest, QueueResponse
from ..models.swipe import (
    LimitsResponse,
    RewindResponse,
    SwipeRequest,
    SwipeResponse,
    SwipeStats,
)
from ..services.engine_service import EchoEngineService, get_engine_service
from ..services.exceptions import EngineInvariantError, MatchExpiredError, MatchNotFoundError
from ..services.geolocation import StaticGeolocation
from ..services.swipe_limits import can_super_like, can_swipe

router = APIRouter(prefix="/engine/{user_id}", tags=["engine"])


def _clean_user_id(user_id: str) -> str:
    cleaned = (user_id or "").strip()
    if not cleaned:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id required")
    return cleaned


@router.get("/limits", response_model=LimitsResponse)
async def get_limits(
    user_id: str,
    service: EchoEngineService = Depends(get_engine_service),
) -> LimitsResponse:
    uid = _clean_user_id(user_id)
    limits = await service.current_limits(uid)
    entitlement = await service.get_entitlement(uid)
    return LimitsResponse(
        limits=limits,
        can_swipe=can_swipe(limits, entitlement.unlimited_swipes),
        can_super_like=can_super_like(limits, entitlement.unlimited_super_likes),
    )


@router.post("/queue", response_model=QueueResponse)
async def load_queue(
    user_id: str,
    payload: QueueRequest,
    service: EchoEngineService = Depends(get_engine_service),
) -> QueueResponse:
    state = await service.refresh_queue(_clean_user_id(user_id), payload.filters, payload.viewer_location)
    return QueueResponse(profiles=list(state.queue), current_index=state.current_index)


@router.post("/swipes", response_model=SwipeResponse)
async def submit_swipe(
    user_id: str,
    payload: SwipeRequest,
    service: EchoEngineService = Depends(get_engine_service),
) -> SwipeResponse:
    uid = _clean_user_id(user_id)
    try:
        result = await service.swipe(uid, payload.action)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except EngineInvariantError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    limits = result.state.limits
    return SwipeResponse(
        outcome=result.outcome,
        candidate_id=result.candidate.id if result.candidate else None,
        current_index=result.state.current_index,
        swipes_used=limits.swipes_used,
        super_used=limits.super_used,
        reset_at=result.reset_at,
        match_id=result.match.id if result.match else None,
        is_match=result.match is not None,
    )


@router.get("/stats", response_model=SwipeStats)
async def get_stats(
    user_id: str,
    service: EchoEngineService = Depends(get_engine_service),
) -> SwipeStats:
    return await service.get_stats(_clean_user_id(user_id))


@router.post("/rewind", response_model=RewindResponse)
async def rewind_swipe(
    user_id: str,
    service: EchoEngineService = Depends(get_engine_service),
) -> RewindResponse:
    result = await service.rewind(_clean_user_id(user_id))
    return RewindResponse(
        rewound=result.accepted,
        current_index=result.state.current_index,
        candidate_id=result.undone.candidate_id if result.undone else None,
    )


@router.get("/matches", response_model=MatchListResponse)
async def list_matches(
    user_id: str,
    service: EchoEngineService = Depends(get_engine_service),
) -> MatchListResponse:
    return await service.list_matches(_clean_user_id(user_id))


@router.post("/matches/{match_id}/messages", response_model=Match)
async def touch_match(
    user_id: str,
    match_id: str,
    service: EchoEngineService = Depends(get_engine_service),
) -> Match:
    try:
        return await service.record_message(_clean_user_id(user_id), match_id.strip())
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="match not found") from None
    except MatchExpiredError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.post("/matches/{match_id}/check-in", response_model=CheckInResult)
async def check_in(
    user_id: str,
    match_id: str,
    payload: CheckInRequest,
    service: EchoEngineService = Depends(get_engine_service),
) -> CheckInResult:
    geolocation = StaticGeolocation(payload.self_location, payload.permission, payload.accuracy)
    try:
        return await service.check_in(
            _clean_user_id(user_id),
            match_id.strip(),
            geolocation,
            payload.counterparty_location,
        )
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="match not found") from None


__all__ = ["router"]
