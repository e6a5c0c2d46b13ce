"""
Webhook client for forwarding processed payloads.
"""
import asyncio
import logging
import aiohttp
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from config.columns import TEST_PAYLOAD_TYPE
from config.settings import get_settings
from core.exceptions import ConfigurationError, NotificationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class WebhookTarget:
    """Endpoint and optional Basic auth credentials."""

    url: str = ""
    username: str = ""
    password: str = ""

    @property
    def is_configured(self) -> bool:
        """Check if an endpoint URL is set."""
        return bool(self.url and self.url.strip())

    @property
    def uses_auth(self) -> bool:
        return bool(self.username and self.password)

    def auth(self) -> Optional[aiohttp.BasicAuth]:
        """Basic auth for the request, when both credentials are set."""
        if not self.uses_auth:
            return None
        return aiohttp.BasicAuth(self.username, self.password)

    @classmethod
    def from_settings(cls) -> "WebhookTarget":
        """Build a target from configured secrets."""
        settings = get_settings()
        return cls(
            url=settings.webhook_url,
            username=settings.webhook_username,
            password=settings.webhook_password
        )


@dataclass
class WebhookResponse:
    """Outcome of a delivered request."""

    status: int
    body: str = ""


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class WebhookClient:
    """
    Client that POSTs JSON documents to a webhook.
    One attempt per call; failures are raised, never retried.
    """

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize webhook client.

        Args:
            timeout_seconds: Total request timeout
        """
        self.timeout_seconds = timeout_seconds

    async def send(self, document: dict, target: WebhookTarget) -> WebhookResponse:
        """
        POST a document to the webhook.

        Args:
            document: JSON-serializable document
            target: Endpoint and credentials

        Returns:
            WebhookResponse for a 2xx reply

        Raises:
            ConfigurationError: If no URL is configured
            NotificationError: On non-2xx replies, timeouts and
                connection failures
        """
        if not target.is_configured:
            raise ConfigurationError(
                "Webhook URL not configured",
                missing_keys=["WEBHOOK_URL"]
            )

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        headers = {"Content-Type": "application/json"}

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    target.url.strip(),
                    json=document,
                    headers=headers,
                    auth=target.auth()
                ) as response:
                    text = await response.text()
                    if not 200 <= response.status < 300:
                        logger.error(
                            "Webhook returned HTTP %d: %s",
                            response.status,
                            text[:200]
                        )
                        raise NotificationError(
                            f"Webhook failed: HTTP {response.status}",
                            status_code=response.status,
                            response=text
                        )
        except asyncio.TimeoutError:
            logger.error("Webhook timed out after %.0fs", self.timeout_seconds)
            raise NotificationError(
                f"Webhook timed out after {self.timeout_seconds:.0f}s"
            )
        except aiohttp.ClientError as e:
            logger.error("Webhook request failed: %s", e)
            raise NotificationError(f"Webhook request failed: {e}")

        logger.info("Webhook delivered (HTTP %d)", response.status)
        return WebhookResponse(status=response.status, body=text)

    async def test_connection(
        self,
        target: WebhookTarget,
        message: str = "Testing connection from Keyword Processor"
    ) -> WebhookResponse:
        """
        Send a small test document to the webhook.

        Args:
            target: Endpoint and credentials
            message: Text included in the test document
        """
        document = {
            "type": TEST_PAYLOAD_TYPE,
            "timestamp": utc_timestamp(),
            "message": message
        }
        return await self.send(document, target)

    def _run(self, coroutine):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(coroutine)
        finally:
            loop.close()

    def send_sync(self, document: dict, target: WebhookTarget) -> WebhookResponse:
        """
        Synchronous wrapper for send.
        Use this in Streamlit (which has its own event loop).
        """
        if not target.is_configured:
            raise ConfigurationError(
                "Webhook URL not configured",
                missing_keys=["WEBHOOK_URL"]
            )
        return self._run(self.send(document, target))

    def test_connection_sync(
        self,
        target: WebhookTarget,
        message: str = "Testing connection from Keyword Processor"
    ) -> WebhookResponse:
        """Synchronous wrapper for test_connection."""
        if not target.is_configured:
            raise ConfigurationError(
                "Webhook URL not configured",
                missing_keys=["WEBHOOK_URL"]
            )
        return self._run(self.test_connection(target, message))


def get_webhook_client() -> WebhookClient:
    """Get a webhook client using the configured timeout."""
    settings = get_settings()
    return WebhookClient(timeout_seconds=settings.notification.timeout_seconds)
