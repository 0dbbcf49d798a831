import pytest
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from dispatch import DispatchEngine
from drivers import Driver, DriverStatus, InMemoryDriverDirectory
from jobs import (
    InMemoryJobRepository,
    JobPriority,
    JobRequest,
    Location,
    PackageDetails,
    PackageType,
)
from notifications import NotificationError, NotificationService

ACCRA_PICKUP = (5.6037, -0.1870)
ACCRA_DROPOFF = (5.5600, -0.2057)

CUSTOMER_ID = "usr-240101-c0ffe"
DRIVER_ID = "drv-240101-a1b2c"
OTHER_DRIVER_ID = "drv-240101-b2c3d"
FAR_DRIVER_ID = "drv-240101-f00d1"


class FixedClock:
    """Clock that only moves when a test tells it to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotificationService(NotificationService):
    """Keeps every call; can be told to report failure or raise."""

    def __init__(self, fail: bool = False, raise_error: bool = False):
        self.fail = fail
        self.raise_error = raise_error
        self.calls: List[Tuple] = []

    def _result(self) -> bool:
        if self.raise_error:
            raise NotificationError("push gateway unreachable")
        return not self.fail

    def notify_driver_assigned(self, job, driver_id):
        self.calls.append(("driver_assigned", job.id, driver_id))
        return self._result()

    def notify_status_milestone(self, job, milestone):
        self.calls.append(("status_milestone", job.id, milestone))
        return self._result()

    def notify_delivery_completed(self, job):
        self.calls.append(("delivery_completed", job.id))
        return self._result()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def repository():
    return InMemoryJobRepository()


@pytest.fixture
def directory():
    pickup_lat, pickup_lon = ACCRA_PICKUP
    return InMemoryDriverDirectory([
        Driver.new(DRIVER_ID, pickup_lat + 0.001, pickup_lon + 0.001, DriverStatus.ONLINE, device_token="tok-a"),
        Driver.new(OTHER_DRIVER_ID, pickup_lat + 0.01, pickup_lon + 0.01, DriverStatus.ONLINE, device_token="tok-b"),
        # ~33 km away, outside the default 10 km search radius
        Driver.new(FAR_DRIVER_ID, pickup_lat + 0.3, pickup_lon, DriverStatus.ONLINE),
    ])


@pytest.fixture
def notifier():
    return RecordingNotificationService()


@pytest.fixture
def engine(repository, directory, notifier, clock):
    return DispatchEngine(
        repository=repository,
        driver_directory=directory,
        notification_service=notifier,
        clock=clock,
    )


@pytest.fixture
def accra_request():
    return JobRequest(
        customer_id=CUSTOMER_ID,
        pickup=Location(latitude=ACCRA_PICKUP[0], longitude=ACCRA_PICKUP[1], address="Accra Mall", city="Accra"),
        dropoff=Location(latitude=ACCRA_DROPOFF[0], longitude=ACCRA_DROPOFF[1], address="Korle Bu", city="Accra"),
        package=PackageDetails(package_type=PackageType.SMALL_PACKAGE, description="Phone charger", weight_kg=0.4),
        priority=JobPriority.STANDARD,
    )
