"""
Push relay client

Posts push messages to the Expo push relay in batches. There is no receipt
handling: a batch counts as sent once the relay accepts the request.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class PushClient:
    """Batched sender for the push relay HTTP endpoint"""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def build_messages(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        return [
            {
                "to": token,
                "sound": "default",
                "title": title,
                "body": body,
                "data": data or {},
            }
            for token in tokens
        ]

    def send(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Send one push message per token.

        Args:
            tokens: Device push tokens
            title: Notification title
            body: Notification body
            data: Extra payload delivered to the app

        Returns:
            Number of batches posted

        Raises:
            requests.RequestException: If the relay is unreachable or rejects a batch
        """
        if not tokens:
            return 0

        messages = self.build_messages(tokens, title, body, data)
        batch_size = self.settings.PUSH_BATCH_SIZE
        batches = 0

        for i in range(0, len(messages), batch_size):
            batch = messages[i:i + batch_size]
            response = self.session.post(
                self.settings.PUSH_URL,
                json=batch,
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip, deflate",
                    "Content-Type": "application/json",
                },
                timeout=self.settings.PUSH_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            batches += 1
            logger.debug(f"Posted push batch {batches} ({len(batch)} messages)")

        return batches
