import random
import pytest
from datetime import datetime, timedelta, timezone

from drivers import (
    Driver,
    DriverPolicy,
    DriverStatus,
    InMemoryDriverDirectory,
    filter_eligible_drivers,
)
from routing import haversine_km

PICKUP = (5.6037, -0.1870)


def test_find_nearby_radius_limit_and_order():
    """
    Randomly scattered drivers come back closest-first, all inside the
    radius, never more than the limit.
    """
    rng = random.Random(7)
    drivers = []
    for i in range(100):
        status = DriverStatus.ONLINE if i % 10 != 0 else DriverStatus.OFFLINE
        drivers.append(
            Driver.new(
                f"drv-240101-{i:05d}",
                PICKUP[0] + (rng.random() - 0.5) * 0.3,
                PICKUP[1] + (rng.random() - 0.5) * 0.3,
                status,
            )
        )
    directory = InMemoryDriverDirectory(drivers)

    found = directory.find_nearby(PICKUP[0], PICKUP[1], radius_km=8.0, limit=10)

    assert 0 < len(found) <= 10
    distances = [s.distance_km for s in found]
    assert distances == sorted(distances)
    assert all(d <= 8.0 for d in distances)

    offline_ids = {d.id for d in drivers if d.status == DriverStatus.OFFLINE}
    assert not offline_ids & {s.id for s in found}


def test_summary_carries_distance_and_reachability():
    directory = InMemoryDriverDirectory([
        Driver.new("drv-240101-aaaaa", PICKUP[0] + 0.01, PICKUP[1], DriverStatus.ONLINE, device_token="tok"),
        Driver.new("drv-240101-bbbbb", PICKUP[0] + 0.02, PICKUP[1], DriverStatus.ONLINE),
    ])
    near, far = directory.find_nearby(PICKUP[0], PICKUP[1], 10.0, 10)

    assert near.id == "drv-240101-aaaaa"
    assert near.reachable is True
    assert far.reachable is False
    assert near.distance_km == pytest.approx(haversine_km(PICKUP, near.location))


def test_status_and_location_updates():
    directory = InMemoryDriverDirectory([
        Driver.new("drv-240101-aaaaa", PICKUP[0], PICKUP[1], DriverStatus.ONLINE),
    ])

    directory.update_location("drv-240101-aaaaa", PICKUP[0] + 0.5, PICKUP[1])
    assert directory.find_nearby(PICKUP[0], PICKUP[1], 10.0, 10) == []

    directory.update_location("drv-240101-aaaaa", PICKUP[0], PICKUP[1])
    directory.set_status("drv-240101-aaaaa", DriverStatus.MAINTENANCE)
    assert directory.find_nearby(PICKUP[0], PICKUP[1], 10.0, 10) == []
    assert directory.get_driver("drv-240101-aaaaa").status == DriverStatus.MAINTENANCE
    assert directory.get_driver("drv-240101-zzzzz") is None


def test_stale_pings_filtered_when_policy_asks():
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    fresh = Driver.new("drv-240101-fresh", PICKUP[0], PICKUP[1], "online", last_ping_at=now - timedelta(seconds=30))
    stale = Driver.new("drv-240101-stale", PICKUP[0], PICKUP[1], "online", last_ping_at=now - timedelta(minutes=30))

    policy = DriverPolicy(max_ping_age_seconds=300)
    assert filter_eligible_drivers([fresh, stale], policy=policy, now=now) == [fresh]
    assert filter_eligible_drivers([fresh, stale], now=now) == [fresh, stale]


def test_driver_policy_validation():
    with pytest.raises(ValueError):
        DriverPolicy(search_radius_km=0).validate()
    with pytest.raises(ValueError):
        DriverPolicy(max_candidates=0).validate()
