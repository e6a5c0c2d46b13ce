"""
Notification module for the Keyword Cluster Processor.
Delivers processed payloads to webhooks.
"""
from notification.webhook_client import (
    WebhookClient,
    WebhookTarget,
    get_webhook_client
)

__all__ = ["WebhookClient", "WebhookTarget", "get_webhook_client"]
