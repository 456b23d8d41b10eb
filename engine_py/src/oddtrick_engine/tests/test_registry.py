"""
Tests for the room registry and its per-room workers.
"""

import asyncio

import pytest
from oddtrick_engine.actions import BidAction, StartGameAction
from oddtrick_engine.errors import INVALID_SEAT, INVALID_SESSION, NOT_YOUR_TURN, GameError
from oddtrick_engine.registry import RoomRegistry, Session


class RecordingOutbox:
    def __init__(self, broken_seats=()):
        self.messages = []
        self.broken_seats = set(broken_seats)

    def post(self, room_id, seat, message):
        if seat in self.broken_seats:
            raise ConnectionError("peer went away")
        self.messages.append((room_id, seat, message))

    def for_seat(self, seat):
        return [message for _, s, message in self.messages if s == seat]


async def seat_everyone(registry, room_id="room", mode=4):
    sessions = []
    for seat in range(mode):
        result, session = await registry.join(room_id, seat, mode)
        assert result.success
        sessions.append(session)
    return sessions


@pytest.mark.asyncio
async def test_join_issues_sessions_and_creates_room():
    outbox = RecordingOutbox()
    registry = RoomRegistry(outbox)

    sessions = await seat_everyone(registry)
    assert "room" in registry
    assert len(registry) == 1
    assert len({s.session_id for s in sessions}) == 4
    assert registry.get_state("room").phase == "setup"

    await registry.close()


@pytest.mark.asyncio
async def test_joiner_is_not_broadcast_to():
    outbox = RecordingOutbox()
    registry = RoomRegistry(outbox)

    await registry.join("room", 0, 4)
    await registry.join("room", 1, 4)

    assert len(outbox.for_seat(0)) == 1
    assert outbox.for_seat(1) == []
    message = outbox.for_seat(0)[0]
    assert message["type"] == "gameState"
    assert message["occupancy"] == [0, 1]

    await registry.close()


@pytest.mark.asyncio
async def test_failed_first_join_leaves_no_room():
    registry = RoomRegistry(RecordingOutbox())

    result, session = await registry.join("room", 9, 4)
    assert not result.success
    assert result.error_code == INVALID_SEAT
    assert session is None
    assert "room" not in registry


@pytest.mark.asyncio
async def test_accepted_action_is_broadcast_to_every_seat():
    outbox = RecordingOutbox()
    registry = RoomRegistry(outbox)
    sessions = await seat_everyone(registry)
    outbox.messages.clear()

    result = await registry.dispatch(sessions[0], StartGameAction())
    assert result.success
    assert sorted(seat for _, seat, _ in outbox.messages) == [0, 1, 2, 3]
    assert all(m["state"]["phase"] == "bidding" for _, _, m in outbox.messages)

    await registry.close()


@pytest.mark.asyncio
async def test_rejected_action_is_not_broadcast():
    outbox = RecordingOutbox()
    registry = RoomRegistry(outbox)
    sessions = await seat_everyone(registry)
    await registry.dispatch(sessions[0], StartGameAction())
    outbox.messages.clear()

    result = await registry.dispatch(sessions[0], BidAction(amount=2))
    assert result.error_code == NOT_YOUR_TURN
    assert outbox.messages == []

    await registry.close()


@pytest.mark.asyncio
async def test_actions_apply_in_arrival_order():
    registry = RoomRegistry(RecordingOutbox())
    sessions = await seat_everyone(registry)
    await registry.dispatch(sessions[0], StartGameAction())
    version = registry.get_state("room").version

    results = await asyncio.gather(
        registry.dispatch(sessions[1], BidAction(amount=2)),
        registry.dispatch(sessions[2], BidAction(amount=3)),
        registry.dispatch(sessions[3], BidAction(amount=0)),
    )

    assert all(result.success for result in results)
    state = registry.get_state("room")
    assert state.version == version + 3
    assert state.highest_bid == 3
    assert state.winning_bidder == 2
    assert state.current_seat == 0

    await registry.close()


@pytest.mark.asyncio
async def test_stale_session_is_refused():
    registry = RoomRegistry(RecordingOutbox())
    sessions = await seat_everyone(registry)

    forged = Session("room", 0, "not-a-session")
    result = await registry.dispatch(forged, StartGameAction())
    assert result.error_code == INVALID_SESSION

    with pytest.raises(GameError):
        registry.snapshot(forged)

    # A session from a vacated seat doesn't carry over to the next occupant
    await registry.leave(sessions[3], vacate=True)
    await registry.join("room", 3, 4)
    result = await registry.dispatch(sessions[3], StartGameAction())
    assert result.error_code == INVALID_SESSION

    await registry.close()


@pytest.mark.asyncio
async def test_room_destroyed_when_last_seat_leaves():
    registry = RoomRegistry(RecordingOutbox())
    sessions = await seat_everyone(registry, mode=2)

    for session in sessions:
        result = await registry.leave(session)
        assert result.success

    assert "room" not in registry
    with pytest.raises(GameError) as exc_info:
        await registry.dispatch(sessions[0], StartGameAction())
    assert exc_info.value.code == INVALID_SESSION


@pytest.mark.asyncio
async def test_all_pass_redeals_through_room_queue():
    outbox = RecordingOutbox()
    registry = RoomRegistry(outbox, rule_overrides={"redeal_delay": 0})
    sessions = await seat_everyone(registry, mode=2)

    await registry.dispatch(sessions[0], StartGameAction())
    await registry.dispatch(sessions[1], BidAction(amount=0))
    result = await registry.dispatch(sessions[0], BidAction(amount=0))
    assert result.state.phase == "setup"
    assert result.state.redeal_pending

    for _ in range(50):
        if registry.get_state("room").phase == "bidding":
            break
        await asyncio.sleep(0.01)

    state = registry.get_state("room")
    assert state.phase == "bidding"
    assert not state.redeal_pending
    assert outbox.for_seat(0)[-1]["state"]["phase"] == "bidding"

    await registry.close()


@pytest.mark.asyncio
async def test_pending_redeal_dropped_when_player_leaves():
    registry = RoomRegistry(RecordingOutbox(), rule_overrides={"redeal_delay": 0.05})
    sessions = await seat_everyone(registry, mode=2)

    await registry.dispatch(sessions[0], StartGameAction())
    await registry.dispatch(sessions[1], BidAction(amount=0))
    await registry.dispatch(sessions[0], BidAction(amount=0))
    await registry.leave(sessions[1])

    await asyncio.sleep(0.1)
    state = registry.get_state("room")
    assert state.phase == "waiting"
    assert not state.redeal_pending

    await registry.close()


@pytest.mark.asyncio
async def test_broken_outbox_does_not_stall_room():
    outbox = RecordingOutbox(broken_seats={2})
    registry = RoomRegistry(outbox)
    sessions = await seat_everyone(registry)

    result = await registry.dispatch(sessions[0], StartGameAction())
    assert result.success
    assert len(outbox.for_seat(1)) > 0

    result = await registry.dispatch(sessions[1], BidAction(amount=1))
    assert result.success

    await registry.close()


@pytest.mark.asyncio
async def test_snapshot_hides_other_hands():
    registry = RoomRegistry(RecordingOutbox(), hide_opponent_hands=True)
    sessions = await seat_everyone(registry)
    await registry.dispatch(sessions[0], StartGameAction())

    snapshot = registry.snapshot(sessions[1])
    players = snapshot["state"]["players"]
    assert snapshot["type"] == "gameState"
    assert len(players[1]["cards"]) == 7
    assert "cards" not in players[0]
    assert "deck" not in snapshot["state"]

    await registry.close()
