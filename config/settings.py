"""
Application settings and configuration.
Credentials are loaded from Streamlit secrets, falling back to environment
variables when no secrets file is present.
"""
import os
import logging
import streamlit as st
from dataclasses import dataclass, field
from functools import lru_cache

logger = logging.getLogger(__name__)


@dataclass
class ProcessingSettings:
    """Settings for parsing and aggregation."""

    max_file_size: int = 52428800  # 50MB
    encoding: str = "utf-8"
    supporting_keyword_limit: int = 8
    clusters_per_page: int = 20


@dataclass
class StorageSettings:
    """Settings for project persistence."""

    projects_table: str = "projects"
    clusters_table: str = "clusters"
    projects_per_page: int = 20
    max_projects_per_page: int = 100


@dataclass
class NotificationSettings:
    """Settings for webhook delivery."""

    timeout_seconds: float = 30.0
    test_message: str = "Testing connection from Keyword Processor"


@dataclass
class Settings:
    """
    Main application settings.
    Loads credentials from Streamlit secrets (st.secrets) or the environment.
    """

    # App info
    app_name: str = "Keyword Cluster Processor"
    app_version: str = "1.0.0"

    # Sub-settings
    processing: ProcessingSettings = field(default_factory=ProcessingSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    notification: NotificationSettings = field(
        default_factory=NotificationSettings
    )

    def _get_secret(self, flat_key: str, nested_section: str, nested_key: str) -> str:
        """
        Get secret supporting both flat and nested formats.

        Flat: SUPABASE_URL = "..."
        Nested: [supabase]
                url = "..."

        Environment variables named like the flat key are used when
        no Streamlit secret is configured.
        """
        try:
            if flat_key in st.secrets:
                return st.secrets[flat_key]

            if nested_section in st.secrets:
                section = st.secrets[nested_section]
                if nested_key in section:
                    return section[nested_key]
        except (FileNotFoundError, KeyError) as e:
            logger.debug("No Streamlit secret for %s: %s", flat_key, e)

        return os.environ.get(flat_key, "")

    @property
    def supabase_url(self) -> str:
        """Get Supabase URL."""
        return self._get_secret("SUPABASE_URL", "supabase", "url")

    @property
    def supabase_key(self) -> str:
        """Get Supabase key."""
        return self._get_secret("SUPABASE_KEY", "supabase", "key")

    @property
    def webhook_url(self) -> str:
        """Get default webhook endpoint."""
        return self._get_secret("WEBHOOK_URL", "webhook", "url")

    @property
    def webhook_username(self) -> str:
        """Get webhook Basic auth username."""
        return self._get_secret("WEBHOOK_USERNAME", "webhook", "username")

    @property
    def webhook_password(self) -> str:
        """Get webhook Basic auth password."""
        return self._get_secret("WEBHOOK_PASSWORD", "webhook", "password")

    def validate_secrets(self) -> dict:
        """
        Validate that the collaborator secrets are configured.
        Returns dict with service names and their status.
        """
        return {
            "Supabase": bool(self.supabase_url and self.supabase_key),
            "Webhook": bool(self.webhook_url),
        }

    def get_missing_secrets(self) -> list:
        """Return list of services without credentials."""
        status = self.validate_secrets()
        return [service for service, configured in status.items() if not configured]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid recreating settings on each call.
    """
    return Settings()
