from __future__ import annotations

from datetime import timedelta

import pytest

from echo_engine.config import get_settings
from echo_engine.models.entitlement import Entitlement, SubscriptionPlan
from echo_engine.models.location import CheckInOutcome, Coordinates
from echo_engine.models.match import MatchStatus
from echo_engine.models.profile import DiscoveryFilters
from echo_engine.models.swipe import SwipeAction, SwipeOutcome
from echo_engine.services.engine_service import EchoEngineService
from echo_engine.services.exceptions import MatchExpiredError, MatchNotFoundError
from echo_engine.services.geolocation import StaticGeolocation
from echo_engine.services.likes_service import record_like
from echo_engine.services.match_policy import LocalRandomPolicy

from conftest import ListFeed, make_profile

PARIS = Coordinates(latitude=48.8566, longitude=2.3522)
NEARBY = Coordinates(latitude=48.8580, longitude=2.3540)
LYON = Coordinates(latitude=45.7640, longitude=4.8357)


def _service(mongo_db, clock, *, like_chance=1.0, policy=None) -> EchoEngineService:
    return EchoEngineService(
        mongo_db,
        get_settings(),
        feed=ListFeed(make_profile(pid) for pid in ("c1", "c2", "c3")),
        policy=policy or LocalRandomPolicy(like_chance=like_chance, superlike_chance=like_chance),
        clock=clock,
    )


@pytest.mark.asyncio
async def test_swipe_writes_through(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    state = await service.refresh_queue("viewer", DiscoveryFilters())
    assert [p.id for p in state.queue] == ["c1", "c2", "c3"]
    assert state.current_index == 0

    result = await service.swipe("viewer", SwipeAction.LIKE)
    assert result.outcome == SwipeOutcome.ACCEPTED
    assert result.match is not None

    # a fresh service sees exactly what the first one persisted
    reloaded = await _service(mongo_db, clock).load_state("viewer")
    assert reloaded.current_index == 1
    assert reloaded.limits.swipes_used == 1
    assert [e.candidate_id for e in reloaded.history] == ["c1"]
    assert [m.id for m in reloaded.matches] == [result.match.id]

    like = await mongo_db["likes"].find_one({"liker_id": "viewer", "liked_id": "c1"})
    assert like is not None
    assert like["action"] == "like"


@pytest.mark.asyncio
async def test_exhausted_quota_blocks_until_midnight(mongo_db, clock) -> None:
    service = _service(mongo_db, clock, like_chance=0.0)
    await service.refresh_queue("viewer", DiscoveryFilters())
    limits = await service.current_limits("viewer")
    assert limits.daily_quota == 20
    await service.repository.save_limits("viewer", limits.model_copy(update={"swipes_used": 20}))

    blocked = await service.swipe("viewer", SwipeAction.LIKE)
    assert blocked.outcome == SwipeOutcome.BLOCKED
    assert blocked.reset_at == limits.daily_reset_at
    assert (await service.load_state("viewer")).current_index == 0

    clock.now = limits.daily_reset_at + timedelta(minutes=1)
    rolled = await service.current_limits("viewer")
    assert rolled.swipes_used == 0
    assert (await service.repository.get_limits("viewer")).swipes_used == 0
    assert (await service.swipe("viewer", SwipeAction.LIKE)).accepted


@pytest.mark.asyncio
async def test_free_super_like_is_blocked(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    result = await service.swipe("viewer", SwipeAction.SUPERLIKE)
    assert result.outcome == SwipeOutcome.BLOCKED
    assert await mongo_db["likes"].count_documents({}) == 0


@pytest.mark.asyncio
async def test_empty_queue_reports_no_candidate(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    result = await service.swipe("viewer", SwipeAction.LIKE)
    assert result.outcome == SwipeOutcome.NO_CANDIDATE


@pytest.mark.asyncio
async def test_rewind_requires_premium(mongo_db, clock) -> None:
    service = _service(mongo_db, clock, like_chance=0.0)
    await service.refresh_queue("viewer", DiscoveryFilters())
    await service.swipe("viewer", SwipeAction.NOPE)
    await service.swipe("viewer", SwipeAction.NOPE)

    rejected = await service.rewind("viewer")
    assert rejected.accepted is False
    assert rejected.state.current_index == 2

    await service.repository.save_entitlement("viewer", Entitlement.for_plan(SubscriptionPlan.ECHO_PLUS))
    accepted = await service.rewind("viewer")
    assert accepted.accepted is True
    assert accepted.undone.candidate_id == "c2"

    state = await service.load_state("viewer")
    assert state.current_index == 1
    assert [e.candidate_id for e in state.history] == ["c1"]
    assert state.current_candidate.id == "c2"


@pytest.mark.asyncio
async def test_list_matches_partitions_by_clock(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    await service.swipe("viewer", SwipeAction.LIKE)

    listing = await service.list_matches("viewer")
    assert len(listing.active) == 1
    assert listing.active[0].hours_remaining == pytest.approx(48.0)

    clock.advance(hours=48, minutes=1)
    listing = await service.list_matches("viewer")
    assert listing.active == []
    assert len(listing.expired) == 1
    assert listing.expired[0].hours_remaining == 0.0


@pytest.mark.asyncio
async def test_record_message(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    match = (await service.swipe("viewer", SwipeAction.LIKE)).match

    clock.advance(minutes=5)
    touched = await service.record_message("viewer", match.id)
    assert touched.last_message_at == clock.now
    stored = (await service.repository.get_matches("viewer"))[0]
    assert stored.last_message_at == clock.now

    with pytest.raises(MatchNotFoundError):
        await service.record_message("viewer", "missing")


@pytest.mark.asyncio
async def test_check_in_persists_resonance(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    match = (await service.swipe("viewer", SwipeAction.LIKE)).match

    far = await service.check_in("viewer", match.id, StaticGeolocation(PARIS), LYON)
    assert far.outcome == CheckInOutcome.TOO_FAR
    assert (await service.repository.get_matches("viewer"))[0].status == MatchStatus.MATCHED

    near = await service.check_in("viewer", match.id, StaticGeolocation(PARIS), NEARBY)
    assert near.outcome == CheckInOutcome.SUCCESS
    stored = (await service.repository.get_matches("viewer"))[0]
    assert stored.status == MatchStatus.RESONANCE
    assert stored.resonance_at == clock.now

    clock.advance(days=30)
    listing = await service.list_matches("viewer")
    assert [v.match.id for v in listing.resonance] == [match.id]

    with pytest.raises(MatchNotFoundError):
        await service.check_in("viewer", "missing", StaticGeolocation(PARIS), NEARBY)


@pytest.mark.asyncio
async def test_reciprocity_policy_from_settings(mongo_db, clock, monkeypatch) -> None:
    monkeypatch.setenv("ECHO_MATCH_POLICY", "reciprocity")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    service = EchoEngineService(
        mongo_db,
        feed=ListFeed(make_profile(pid) for pid in ("c1", "c2")),
        clock=clock,
    )
    await record_like(mongo_db, "c2", "viewer", SwipeAction.LIKE)
    await service.refresh_queue("viewer", DiscoveryFilters())

    assert (await service.swipe("viewer", SwipeAction.LIKE)).match is None
    matched = await service.swipe("viewer", SwipeAction.LIKE)
    assert matched.match is not None
    assert matched.match.counterparty_id == "c2"


@pytest.mark.asyncio
async def test_expired_match_cannot_be_messaged_or_promoted(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    match = (await service.swipe("viewer", SwipeAction.LIKE)).match

    clock.advance(hours=72)
    assert [v.match.id for v in (await service.list_matches("viewer")).expired] == [match.id]

    with pytest.raises(MatchExpiredError):
        await service.record_message("viewer", match.id)

    result = await service.check_in("viewer", match.id, StaticGeolocation(PARIS), NEARBY)
    assert result.outcome == CheckInOutcome.EXPIRED

    stored = (await service.repository.get_matches("viewer"))[0]
    assert stored.status == MatchStatus.MATCHED
    assert stored.last_message_at is None
    listing = await service.list_matches("viewer")
    assert listing.resonance == []
    assert [v.match.id for v in listing.expired] == [match.id]


@pytest.mark.asyncio
async def test_resonance_survives_past_the_countdown(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    match = (await service.swipe("viewer", SwipeAction.LIKE)).match
    clock.advance(hours=47, minutes=59)
    assert (await service.check_in("viewer", match.id, StaticGeolocation(PARIS), NEARBY)).outcome == (
        CheckInOutcome.SUCCESS
    )

    clock.advance(days=3)
    touched = await service.record_message("viewer", match.id)
    assert touched.last_message_at == clock.now


@pytest.mark.asyncio
async def test_swipe_stats_are_persisted(mongo_db, clock) -> None:
    service = _service(mongo_db, clock)
    await service.refresh_queue("viewer", DiscoveryFilters())
    await service.swipe("viewer", SwipeAction.LIKE)
    await service.swipe("viewer", SwipeAction.NOPE)
    await service.swipe("viewer", SwipeAction.SUPERLIKE)  # blocked on free

    stats = await service.get_stats("viewer")
    assert stats.total_swipes == 2
    assert stats.total_likes == 1
    assert stats.total_super_likes == 0
    assert stats.total_matches == 1

    await service.repository.save_entitlement("viewer", Entitlement.for_plan(SubscriptionPlan.ECHO_PLUS))
    assert (await service.rewind("viewer")).accepted
    # rewinds leave the lifetime counters alone
    assert await _service(mongo_db, clock).get_stats("viewer") == stats


@pytest.mark.asyncio
async def test_resonance_engines_are_bounded(mongo_db, clock) -> None:
    service = EchoEngineService(
        mongo_db, get_settings(), feed=ListFeed([]), clock=clock, resonance_engine_limit=2
    )
    geo = StaticGeolocation(PARIS)
    first = await service.resonance_engine("u1", geo)
    second = await service.resonance_engine("u2", geo)
    assert await service.resonance_engine("u1", geo) is first

    await service.resonance_engine("u3", geo)
    # u2 was the least recently used
    assert await service.resonance_engine("u1", geo) is first
    assert await service.resonance_engine("u2", geo) is not second
