import asyncio
import random

import pytest

from carpool.services.errors import NotFound, SeatsExhausted, VersionConflict
from carpool.services.reservation import JoinStatus, ReservationService
from tests.factories import stored


@pytest.mark.asyncio
async def test_join_takes_one_seat(store):
    trip = await store.create(stored(available_seats=3))
    result = await ReservationService(store).join(trip.id, 3)
    assert result.status is JoinStatus.JOINED
    assert result.new_seat_count == 2
    assert (await store.get(trip.id)).available_seats == 2


@pytest.mark.asyncio
async def test_stale_observation_is_a_conflict_not_a_negative_count(store):
    trip = await store.create(stored(available_seats=1))
    service = ReservationService(store)
    assert (await service.join(trip.id, 1)).ok

    result = await service.join(trip.id, 1)
    assert result.status is JoinStatus.VERSION_CONFLICT
    assert result.trip.available_seats == 0
    assert (await store.get(trip.id)).available_seats == 0


@pytest.mark.asyncio
async def test_zero_observed_seats_is_exhausted_without_a_write(store):
    trip = await store.create(stored(available_seats=2))
    result = await ReservationService(store).join(trip.id, 0)
    assert result.status is JoinStatus.SEATS_EXHAUSTED
    assert (await store.get(trip.id)).available_seats == 2


@pytest.mark.asyncio
async def test_unknown_trip(store):
    result = await ReservationService(store).join(999, 2)
    assert result.status is JoinStatus.NOT_FOUND
    with pytest.raises(NotFound):
        result.raise_for_status()


@pytest.mark.asyncio
async def test_refresh_retries_once_with_fresh_count(store):
    trip = await store.create(stored(available_seats=3))
    service = ReservationService(store, retry_limit=1)
    await service.join(trip.id, 3)

    result = await service.join_with_refresh(trip.id, 3)
    assert result.ok
    assert result.new_seat_count == 1


@pytest.mark.asyncio
async def test_refresh_reports_exhausted_when_trip_filled_up(store):
    trip = await store.create(stored(available_seats=1))
    service = ReservationService(store)
    await service.join(trip.id, 1)

    result = await service.join_with_refresh(trip.id, 1)
    assert result.status is JoinStatus.SEATS_EXHAUSTED
    with pytest.raises(SeatsExhausted):
        result.raise_for_status()


@pytest.mark.asyncio
async def test_refresh_is_bounded(memory_store):
    trip = await memory_store.create(stored(available_seats=5))
    service = ReservationService(memory_store, retry_limit=1)
    calls = []
    original = memory_store.conditional_update_seats

    async def always_behind(trip_id, expected, new):
        calls.append(expected)
        # another rider commits just before every attempt
        current = await memory_store.get(trip_id)
        await original(trip_id, current.available_seats, current.available_seats - 1)
        return await original(trip_id, expected, new)

    memory_store.conditional_update_seats = always_behind
    result = await service.join_with_refresh(trip.id, 5)
    assert result.status is JoinStatus.VERSION_CONFLICT
    assert len(calls) == 2
    with pytest.raises(VersionConflict):
        result.raise_for_status()


@pytest.mark.asyncio
async def test_concurrent_joins_on_same_observation_admit_one(store):
    trip = await store.create(stored(available_seats=3))
    service = ReservationService(store)

    results = await asyncio.gather(*[service.join(trip.id, 3) for _ in range(6)])

    statuses = [r.status for r in results]
    assert statuses.count(JoinStatus.JOINED) == 1
    assert statuses.count(JoinStatus.VERSION_CONFLICT) == 5
    assert (await store.get(trip.id)).available_seats == 2


@pytest.mark.asyncio
async def test_k_seats_admit_exactly_k_riders(store):
    seats = 4
    trip = await store.create(stored(available_seats=seats))
    service = ReservationService(store)
    outcomes = []

    async def rider():
        # each rider looks at the trip, then tries to join with what it saw
        current = await store.get(trip.id)
        await asyncio.sleep(0)
        result = await service.join_with_refresh(trip.id, current.available_seats)
        outcomes.append(result.status)

    for _ in range(5):
        await asyncio.gather(*[rider() for _ in range(4)])

    assert outcomes.count(JoinStatus.JOINED) == seats
    assert set(outcomes) <= {JoinStatus.JOINED, JoinStatus.SEATS_EXHAUSTED, JoinStatus.VERSION_CONFLICT}
    assert (await store.get(trip.id)).available_seats == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", range(5))
async def test_seat_bounds_hold_under_random_interleavings(memory_store, seed):
    rng = random.Random(seed)
    capacity = rng.randint(1, 8)
    trip = await memory_store.create(stored(available_seats=capacity))
    service = ReservationService(memory_store)
    observed_low = []

    async def rider():
        for _ in range(rng.randint(0, 3)):
            await asyncio.sleep(0)
        current = await memory_store.get(trip.id)
        for _ in range(rng.randint(0, 3)):
            await asyncio.sleep(0)
        # riders sometimes act on an older or made-up count
        observed = current.available_seats + rng.choice([0, 0, 0, 1, -1])
        result = await service.join(trip.id, observed)
        seats_now = (await memory_store.get(trip.id)).available_seats
        observed_low.append(seats_now)
        return result

    results = await asyncio.gather(*[rider() for _ in range(rng.randint(5, 30))])

    joined = sum(1 for r in results if r.ok)
    final = (await memory_store.get(trip.id)).available_seats
    assert 0 <= final <= capacity
    assert all(0 <= seats <= capacity for seats in observed_low)
    assert final == capacity - joined
