from fastapi import APIRouter

from ..models.profile import EchoStatusRequest, EchoStatusResponse
from ..models.types import utc_now
from ..services import echo_status

router = APIRouter(prefix="/echo", tags=["echo"])


@router.post("/status", response_model=EchoStatusResponse)
async def get_echo_status(payload: EchoStatusRequest) -> EchoStatusResponse:
    now = utc_now()
    last = payload.last_refreshed_at
    return EchoStatusResponse(
        status=echo_status.status(last, now).value,
        days_until_expiration=echo_status.days_until_expiration(last, now),
        is_discoverable=echo_status.is_discoverable(last, now),
        progress=round(echo_status.echo_progress(last, now), 4),
    )


__all__ = ["router"]
