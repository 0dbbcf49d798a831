import pytest
import requests

from notifications import FcmNotificationService, NullNotificationService
from notifications.service import status_milestone_message
from jobs import JobStatus
from tests.conftest import CUSTOMER_ID, DRIVER_ID


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = {"success": 1, "failure": 0} if body is None else body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


TOKENS = {DRIVER_ID: "driver-device-token", CUSTOMER_ID: "customer-device-token"}


@pytest.fixture
def job(engine, accra_request):
    return engine.create_job(accra_request)


def _service(session):
    return FcmNotificationService(
        token_lookup=TOKENS.get,
        server_key="test-key",
        url="https://fcm.example.test/send",
        session=session,
    )


def test_driver_assigned_posts_to_driver_device(job):
    session = FakeSession()
    assert _service(session).notify_driver_assigned(job, DRIVER_ID) is True

    post = session.posts[0]
    assert post["url"] == "https://fcm.example.test/send"
    assert post["headers"]["Authorization"] == "key=test-key"
    assert post["json"]["to"] == "driver-device-token"
    assert post["json"]["data"]["job_id"] == job.id
    assert post["timeout"] == 5


def test_milestones_go_to_customer(job):
    session = FakeSession()
    service = _service(session)
    assert service.notify_status_milestone(job, JobStatus.PACKAGE_PICKED_UP) is True
    assert service.notify_delivery_completed(job) is True
    assert [p["json"]["to"] for p in session.posts] == ["customer-device-token"] * 2
    assert session.posts[0]["json"]["data"]["status"] == "package_picked_up"


def test_transport_errors_return_false(job):
    session = FakeSession(error=requests.ConnectionError("no route to host"))
    assert _service(session).notify_driver_assigned(job, DRIVER_ID) is False


def test_http_errors_return_false(job):
    session = FakeSession(response=FakeResponse(status_code=401))
    assert _service(session).notify_delivery_completed(job) is False


def test_per_message_failure_returns_false(job):
    body = {"success": 0, "failure": 1, "results": [{"error": "NotRegistered"}]}
    session = FakeSession(response=FakeResponse(body=body))
    assert _service(session).notify_driver_assigned(job, DRIVER_ID) is False


def test_non_json_body_returns_false(job):
    session = FakeSession(response=FakeResponse(body=ValueError("not json")))
    assert _service(session).notify_driver_assigned(job, DRIVER_ID) is False


def test_unknown_recipient_skips_send(job):
    session = FakeSession()
    assert _service(session).notify_driver_assigned(job, "drv-240101-nodev") is False
    assert session.posts == []


def test_missing_server_key_is_a_config_error(monkeypatch):
    monkeypatch.setattr("notifications.fcm.FCM_SERVER_KEY", None)
    with pytest.raises(ValueError):
        FcmNotificationService(token_lookup=TOKENS.get)


def test_timeout_comes_from_environment_setting(monkeypatch, job):
    monkeypatch.setattr("notifications.fcm.FCM_TIMEOUT", 12.5)
    session = FakeSession()
    service = _service(session)
    assert service.timeout == 12.5

    service.notify_driver_assigned(job, DRIVER_ID)
    assert session.posts[0]["timeout"] == 12.5

    explicit = FcmNotificationService(token_lookup=TOKENS.get, server_key="test-key", timeout=2, session=session)
    assert explicit.timeout == 2


def test_null_service_always_succeeds(job):
    service = NullNotificationService()
    assert service.notify_driver_assigned(job, DRIVER_ID)
    assert service.notify_status_milestone(job, JobStatus.IN_TRANSIT)
    assert service.notify_delivery_completed(job)


def test_milestone_message_text(job):
    message = status_milestone_message(job, JobStatus.ARRIVED_AT_PICKUP)
    assert job.tracking_code in message.title
    assert "arrived" in message.body
