#Purpose: Firebase Cloud Messaging adapter for the Notification Capability.
#Sole responsibility: talk to FCM via HTTP and report delivered / not delivered.
#Encapsulates FCM-specific details:
#payload shape (to / notification / data)
#server key auth header
#timeouts + error handling (never raises to the dispatch engine)
#It should not contain lifecycle rules.

import logging
import os
from typing import Callable, Dict, Optional

import requests
from dotenv import load_dotenv

from jobs.models import Job, JobStatus
from .service import (
    NotificationMessage,
    NotificationService,
    delivery_completed_message,
    driver_assigned_message,
    status_milestone_message,
)

# Read FCM settings from environment
# Example in .env:
# FCM_SERVER_KEY=AAAA...
# FCM_URL=https://fcm.googleapis.com/fcm/send
# FCM_TIMEOUT=5
load_dotenv()
FCM_SERVER_KEY = os.getenv("FCM_SERVER_KEY")
FCM_URL = os.getenv("FCM_URL", "https://fcm.googleapis.com/fcm/send")
FCM_TIMEOUT = float(os.getenv("FCM_TIMEOUT", "5"))

logger = logging.getLogger(__name__)

# Maps a user/driver ID to a device token (None when unknown)
TokenLookup = Callable[[str], Optional[str]]


class FcmNotificationService(NotificationService):
    """
    FCM legacy HTTP notifier.

    Device tokens are resolved through `token_lookup` so this adapter does not
    need to know where user and driver profiles live.
    """
    def __init__(
        self,
        token_lookup: TokenLookup,
        server_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.token_lookup = token_lookup
        self.server_key = server_key or FCM_SERVER_KEY
        self.url = url or FCM_URL
        self.timeout = timeout or FCM_TIMEOUT #seconds to wait for FCM before giving up
        self.session = session or requests.Session()

        if not self.server_key:
            raise ValueError("FCM server key not set. Please set FCM_SERVER_KEY in the .env file.")

    def send(self, device_token: str, message: NotificationMessage) -> bool:
        """
        POST one message to one device. Returns True on success, False on any failure.
        """
        payload = {
            "to": device_token,
            "notification": {"title": message.title, "body": message.body},
            "data": message.data,
        }
        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("FCM send failed for token=%s...: %s", device_token[:12], e)
            return False

        try:
            body: Dict = response.json()
        except ValueError:
            logger.warning("FCM returned a non-JSON body (status %s)", response.status_code)
            return False

        # Legacy API reports per-message failures with HTTP 200
        if body.get("failure", 0) > 0:
            logger.warning("FCM rejected message to token=%s...: %s", device_token[:12], body.get("results"))
            return False

        return True

    def _send_to(self, recipient_id: str, message: NotificationMessage) -> bool:
        token = self.token_lookup(recipient_id)
        if not token:
            logger.info("No device token for %s; skipping push", recipient_id)
            return False
        return self.send(token, message)

    def notify_driver_assigned(self, job: Job, driver_id: str) -> bool:
        return self._send_to(driver_id, driver_assigned_message(job, driver_id))

    def notify_status_milestone(self, job: Job, milestone: JobStatus) -> bool:
        return self._send_to(job.customer_id, status_milestone_message(job, milestone))

    def notify_delivery_completed(self, job: Job) -> bool:
        return self._send_to(job.customer_id, delivery_completed_message(job))
