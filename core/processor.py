"""
Processing service.
Runs the process, save and notify phases against an explicit session.
"""
import time
import logging
import warnings
from typing import Any, Mapping, Optional

from clustering.aggregator import ClusterAggregator
from clustering.models import Cluster, ProcessedPayload
from clustering.mutations import ClusterEditor
from clustering.payload import PayloadBuilder
from config.settings import Settings, get_settings
from core.exceptions import (
    BoundaryError,
    ConfigurationError,
    KeywordProcessorError,
    ValidationError,
)
from core.progress_tracker import ProcessingPhase
from core.session import ProcessingSession, SessionStatus
from ingestion.csv_parser import CSVParser
from ingestion.normalizer import RowNormalizer
from notification.webhook_client import WebhookClient, WebhookTarget
from storage.supabase_client import ProjectStore, SaveResult

logger = logging.getLogger(__name__)


class KeywordProcessor:
    """
    Coordinates parsing, aggregation, storage and notification.

    The session's payload is only replaced when processing succeeds;
    save and notify failures are recorded on the session and re-raised
    with the payload left as it was.
    """

    def __init__(
        self,
        store: Optional[ProjectStore] = None,
        webhook: Optional[WebhookClient] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize processor.

        Args:
            store: Project store (saving and loading are unavailable without one)
            webhook: Webhook client
            settings: Application settings
        """
        self.settings = settings or get_settings()
        processing = self.settings.processing

        self.store = store
        self.webhook = webhook or WebhookClient(
            timeout_seconds=self.settings.notification.timeout_seconds
        )
        self.parser = CSVParser(
            encoding=processing.encoding,
            max_file_size=processing.max_file_size
        )
        self.normalizer = RowNormalizer()
        self.aggregator = ClusterAggregator(
            supporting_keyword_limit=processing.supporting_keyword_limit
        )
        self.builder = PayloadBuilder()
        self.editor = ClusterEditor()

    def process(
        self,
        session: ProcessingSession,
        file_content: Any,
        filename: str = None,
        seed_keyword: str = ""
    ) -> ProcessedPayload:
        """
        Parse a CSV export and aggregate it into a new payload.

        Args:
            session: Session receiving the payload
            file_content: bytes, text, or a file-like object
            filename: Original filename
            seed_keyword: Seed keyword for the run

        Returns:
            The new payload

        Raises:
            ValidationError: If the seed keyword is blank or no row is usable
            InputError: If the file cannot be read
        """
        seed_keyword = (seed_keyword or "").strip()
        if not seed_keyword:
            raise ValidationError("Please enter a seed keyword", field="seed_keyword")

        tracker = session.progress
        started = time.perf_counter()

        try:
            tracker.start_phase(ProcessingPhase.PARSE, "Reading CSV file...")
            parsed = self.parser.parse(file_content, filename=filename)
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                normalized = self.normalizer.normalize_rows(parsed.rows)
            tracker.complete_phase(
                f"{normalized.valid_count:,} of {normalized.total_rows:,} rows usable"
            )

            tracker.start_phase(ProcessingPhase.AGGREGATE, "Grouping keywords...")
            clusters = self.aggregator.aggregate(normalized.records)
            elapsed_ms = int(round((time.perf_counter() - started) * 1000))
            payload = self.builder.build(
                clusters,
                seed_keyword=seed_keyword,
                filename=filename,
                processing_time_ms=elapsed_ms
            )
            tracker.complete_phase(f"{len(clusters):,} clusters created")
        except KeywordProcessorError as e:
            tracker.fail_phase(e.message)
            session.record_error(e.message)
            raise

        session.replace_payload(payload)
        session.last_warnings = (
            [w.message for w in parsed.warnings]
            + [str(w.message) for w in caught]
        )
        logger.info(
            "Processed %s in %d ms: %d clusters",
            filename or "upload",
            elapsed_ms,
            len(clusters)
        )
        return payload

    def save(self, session: ProcessingSession) -> SaveResult:
        """
        Store the session's payload.

        A payload loaded from or already saved to the store is updated
        in place; anything else becomes a new project.

        Raises:
            ProcessingError: If nothing has been processed
            ConfigurationError: If no store is configured
            BoundaryError: If the store rejects the write
        """
        payload = session.require_payload(ProcessingPhase.SAVE.value)
        if self.store is None:
            raise ConfigurationError(
                "Database not configured",
                missing_keys=["SUPABASE_URL", "SUPABASE_KEY"]
            )

        tracker = session.progress
        tracker.start_phase(ProcessingPhase.SAVE, "Saving to database...")
        try:
            if session.project_id is not None:
                result = self.store.update_project(session.project_id, payload)
            else:
                result = self.store.save_project(payload)
        except BoundaryError as e:
            tracker.fail_phase(e.message)
            session.record_error(e.message)
            raise

        session.project_id = result.project_id
        payload.project_id = result.project_id
        session.mark(SessionStatus.SAVED)
        tracker.complete_phase(f"Saved {result.clusters_saved} clusters")
        return result

    def notify(
        self,
        session: ProcessingSession,
        target: Optional[WebhookTarget] = None
    ):
        """
        Send the session's payload to the webhook.

        Args:
            session: Session holding the payload
            target: Webhook endpoint (default: configured secrets)

        Raises:
            ProcessingError: If nothing has been processed
            ConfigurationError: If no webhook URL is set
            BoundaryError: If delivery fails
        """
        payload = session.require_payload(ProcessingPhase.NOTIFY.value)
        target = target or WebhookTarget.from_settings()

        tracker = session.progress
        tracker.start_phase(ProcessingPhase.NOTIFY, "Sending to webhook...")
        try:
            response = self.webhook.send_sync(payload.to_dict(), target)
        except (BoundaryError, ConfigurationError) as e:
            tracker.fail_phase(e.message)
            session.record_error(e.message)
            raise

        session.mark(SessionStatus.NOTIFIED)
        tracker.complete_phase(f"Webhook responded with HTTP {response.status}")
        return response

    def edit_cluster(
        self,
        session: ProcessingSession,
        index: int,
        changes: Mapping[str, Any]
    ) -> Cluster:
        """Edit a cluster of the session's payload."""
        payload = session.require_payload("edit")
        cluster = self.editor.edit(payload, index, changes)
        session.touch()
        return cluster

    def delete_cluster(self, session: ProcessingSession, index: int) -> Cluster:
        """Delete a cluster from the session's payload."""
        payload = session.require_payload("delete")
        cluster = self.editor.delete(payload, index)
        session.touch()
        return cluster

    def load_project(self, session: ProcessingSession, project_id) -> ProcessedPayload:
        """
        Replace the session's payload with a stored project.

        Raises:
            ConfigurationError: If no store is configured
            ProjectNotFoundError: If the project does not exist
        """
        if self.store is None:
            raise ConfigurationError(
                "Database not configured",
                missing_keys=["SUPABASE_URL", "SUPABASE_KEY"]
            )
        payload = self.store.get_project(project_id)
        session.replace_payload(payload, project_id=payload.project_id)
        logger.info("Loaded project %s into session %s", project_id, session.id)
        return payload
