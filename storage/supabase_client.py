"""
Supabase storage for processed projects.
Projects and their clusters live in Supabase PostgreSQL; multi-row writes
go through the SQL functions in schema.sql so they commit all-or-nothing.
"""
import math
import logging
from supabase import create_client, Client
from dataclasses import dataclass, field
from typing import List, Optional, Any
from functools import lru_cache

from clustering.models import (
    Cluster,
    PayloadMetadata,
    ProcessedPayload,
    parse_timestamp,
    whole,
)
from config.columns import (
    CLUSTER_TYPE_LABELS,
    DEFAULT_PAGE_TYPE,
    PILLAR_MARKERS,
    SUB_PAGE_MARKER,
)
from config.settings import get_settings
from core.exceptions import DatabaseError, ProjectNotFoundError

logger = logging.getLogger(__name__)


def cluster_type_for(page_type: str) -> str:
    """
    Classify a page type for storage.

    Returns:
        "pillar", "sub_page" or "unknown"
    """
    lowered = (page_type or "").lower()
    if any(marker in lowered for marker in PILLAR_MARKERS):
        return "pillar"
    if SUB_PAGE_MARKER in lowered:
        return "sub_page"
    return "unknown"


def page_type_for(cluster_type: str) -> str:
    """Display text for a stored cluster type."""
    return CLUSTER_TYPE_LABELS.get(cluster_type or "", DEFAULT_PAGE_TYPE)


@dataclass
class SaveResult:
    """Outcome of saving a project."""

    project_id: Any
    clusters_saved: int


@dataclass
class ProjectSummary:
    """A stored project as listed in the browser."""

    id: Any
    seed_keyword: str
    original_filename: str
    total_clusters: int = 0
    total_keywords: int = 0
    total_volume: float = 0
    avg_difficulty: float = 0
    pillar_pages: int = 0
    sub_pages: int = 0
    processing_time_ms: int = 0
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "ProjectSummary":
        """Create from a projects row."""
        return cls(
            id=row.get("id"),
            seed_keyword=row.get("seed_keyword", ""),
            original_filename=row.get("original_filename", ""),
            total_clusters=row.get("total_clusters") or 0,
            total_keywords=row.get("total_keywords") or 0,
            total_volume=whole(row.get("total_volume") or 0),
            avg_difficulty=whole(row.get("avg_difficulty") or 0),
            pillar_pages=row.get("pillar_pages") or 0,
            sub_pages=row.get("sub_pages") or 0,
            processing_time_ms=row.get("processing_time_ms") or 0,
            created_at=row.get("created_at"),
        )


@dataclass
class ProjectPage:
    """One page of the project listing."""

    projects: List[ProjectSummary] = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total_items: int = 0
    items_per_page: int = 20

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    def pagination(self) -> dict:
        """Pagination info as a dictionary."""
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
            "items_per_page": self.items_per_page,
        }


def project_row(payload: ProcessedPayload) -> dict:
    """Project columns for a payload."""
    metadata = payload.metadata
    return {
        "seed_keyword": payload.seed_keyword,
        "original_filename": payload.source_filename,
        "total_clusters": metadata.total_clusters,
        "total_keywords": metadata.total_keywords,
        "total_volume": whole(metadata.total_volume),
        "avg_difficulty": whole(metadata.avg_difficulty),
        "pillar_pages": metadata.pillar_pages,
        "sub_pages": metadata.sub_pages,
        "processing_time_ms": metadata.processing_time_ms,
    }


def cluster_rows(payload: ProcessedPayload) -> List[dict]:
    """Cluster columns for a payload, in payload order."""
    return [
        {
            "position": position,
            "cluster_name": cluster.cluster_name,
            "keyword_count": cluster.keyword_count,
            "supporting_keywords": cluster.supporting_keywords,
            "total_volume": whole(cluster.total_volume),
            "avg_difficulty": whole(cluster.avg_difficulty),
            "min_difficulty": whole(cluster.min_difficulty),
            "max_difficulty": whole(cluster.max_difficulty),
            "topics": cluster.topics,
            "intent": cluster.intent,
            "avg_cpc": whole(cluster.avg_cpc),
            "seed_keywords": cluster.seed_keywords,
            "cluster_type": cluster_type_for(cluster.page_type),
        }
        for position, cluster in enumerate(payload.clusters)
    ]


def cluster_from_row(row: dict) -> Cluster:
    """Rebuild a cluster from a clusters row."""
    return Cluster(
        cluster_name=row.get("cluster_name", ""),
        page_type=page_type_for(row.get("cluster_type")),
        keyword_count=row.get("keyword_count") or 0,
        supporting_keywords=row.get("supporting_keywords") or "N/A",
        total_volume=whole(row.get("total_volume") or 0),
        avg_difficulty=whole(row.get("avg_difficulty") or 0),
        min_difficulty=whole(row.get("min_difficulty") or 0),
        max_difficulty=whole(row.get("max_difficulty") or 0),
        topics=row.get("topics") or "N/A",
        intent=row.get("intent") or "N/A",
        avg_cpc=whole(row.get("avg_cpc") or 0),
        seed_keywords=row.get("seed_keywords") or "N/A",
    )


def _single(data: Any) -> Optional[dict]:
    # RPC results arrive either as the object or wrapped in a list
    if isinstance(data, list):
        return data[0] if data else None
    return data


class ProjectStore:
    """
    Client for storing processed projects in Supabase.
    Handles saving, loading, listing, updating and deleting projects.
    """

    def __init__(
        self,
        url: str = None,
        key: str = None,
        client: Client = None,
        projects_table: str = "projects",
        clusters_table: str = "clusters",
        max_page_size: int = 100
    ):
        """
        Initialize project store.

        Args:
            url: Supabase project URL
            key: Supabase anon/public key
            client: Existing Supabase client (takes precedence over url/key)
            projects_table: Name of the projects table
            clusters_table: Name of the clusters table
            max_page_size: Upper bound for list_projects limit
        """
        self.client: Client = client or create_client(url, key)
        self.projects_table = projects_table
        self.clusters_table = clusters_table
        self.max_page_size = max_page_size

    # =========================================================================
    # Writes
    # =========================================================================

    def save_project(self, payload: ProcessedPayload) -> SaveResult:
        """
        Save a payload as a new project.

        Args:
            payload: Processed payload

        Returns:
            SaveResult with the generated project id
        """
        try:
            result = self.client.rpc("save_project", {
                "p_project": project_row(payload),
                "p_clusters": cluster_rows(payload)
            }).execute()
        except Exception as e:
            logger.error("Failed to save project '%s': %s", payload.seed_keyword, e)
            raise DatabaseError(
                f"Failed to save project: {e}",
                operation="insert",
                table=self.projects_table
            )

        data = _single(result.data)
        if not data or data.get("project_id") is None:
            raise DatabaseError(
                "Failed to save project: no project id returned",
                operation="insert",
                table=self.projects_table
            )

        saved = SaveResult(
            project_id=data["project_id"],
            clusters_saved=data.get("clusters_saved", len(payload.clusters))
        )
        logger.info(
            "Saved project %s with %d clusters",
            saved.project_id,
            saved.clusters_saved
        )
        return saved

    def update_project(self, project_id, payload: ProcessedPayload) -> SaveResult:
        """
        Replace a project's metadata and clusters.

        Args:
            project_id: Stored project id
            payload: Payload with the new state

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        try:
            result = self.client.rpc("replace_project", {
                "p_project_id": project_id,
                "p_project": project_row(payload),
                "p_clusters": cluster_rows(payload)
            }).execute()
        except Exception as e:
            logger.error("Failed to update project %s: %s", project_id, e)
            raise DatabaseError(
                f"Failed to update project: {e}",
                operation="update",
                table=self.projects_table
            )

        data = _single(result.data)
        if not data:
            raise ProjectNotFoundError(project_id)

        logger.info("Updated project %s", project_id)
        return SaveResult(
            project_id=project_id,
            clusters_saved=data.get("clusters_saved", len(payload.clusters))
        )

    def delete_project(self, project_id) -> dict:
        """
        Delete a project; its clusters are removed by cascade.

        Returns:
            Dict with project_id, seed_keyword and deleted cluster count

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        project = self._get_project_row(project_id)

        try:
            counted = self.client.table(self.clusters_table).select(
                "id", count="exact"
            ).eq("project_id", project_id).execute()
            self.client.table(self.projects_table).delete().eq(
                "id", project_id
            ).execute()
        except Exception as e:
            logger.error("Failed to delete project %s: %s", project_id, e)
            raise DatabaseError(
                f"Failed to delete project: {e}",
                operation="delete",
                table=self.projects_table
            )

        cluster_count = counted.count
        if cluster_count is None:
            cluster_count = len(counted.data or [])

        logger.info("Deleted project %s (%d clusters)", project_id, cluster_count)
        return {
            "project_id": project_id,
            "seed_keyword": project.get("seed_keyword", ""),
            "deleted_counts": {"clusters": cluster_count},
        }

    # =========================================================================
    # Reads
    # =========================================================================

    def _get_project_row(self, project_id) -> dict:
        try:
            result = self.client.table(self.projects_table).select("*").eq(
                "id", project_id
            ).limit(1).execute()
        except Exception as e:
            raise DatabaseError(
                f"Failed to get project: {e}",
                operation="select",
                table=self.projects_table
            )

        if not result.data:
            raise ProjectNotFoundError(project_id)
        return result.data[0]

    def get_project(self, project_id) -> ProcessedPayload:
        """
        Load a stored project as a payload.

        Clusters come back in their saved order. Page types are
        rebuilt from the stored cluster type.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        project = self._get_project_row(project_id)

        try:
            result = self.client.table(self.clusters_table).select("*").eq(
                "project_id", project_id
            ).order("position").execute()
        except Exception as e:
            raise DatabaseError(
                f"Failed to get clusters: {e}",
                operation="select",
                table=self.clusters_table
            )

        clusters = [cluster_from_row(row) for row in (result.data or [])]
        metadata = PayloadMetadata(
            seed_keyword=project.get("seed_keyword", ""),
            filename=project.get("original_filename") or "unknown.csv",
            total_clusters=project.get("total_clusters") or 0,
            total_keywords=project.get("total_keywords") or 0,
            total_volume=whole(project.get("total_volume") or 0),
            avg_difficulty=whole(project.get("avg_difficulty") or 0),
            pillar_pages=project.get("pillar_pages") or 0,
            sub_pages=project.get("sub_pages") or 0,
            processing_time_ms=project.get("processing_time_ms") or 0,
        )

        payload = ProcessedPayload(
            seed_keyword=metadata.seed_keyword,
            source_filename=metadata.filename,
            clusters=clusters,
            metadata=metadata,
            project_id=project.get("id", project_id),
        )
        created_at = parse_timestamp(project.get("created_at"))
        if created_at:
            payload.created_at = created_at
        return payload

    def list_projects(
        self,
        page: int = 1,
        limit: int = 20,
        search: str = ""
    ) -> ProjectPage:
        """
        List stored projects, newest first.

        Args:
            page: 1-based page number
            limit: Projects per page (capped)
            search: Case-insensitive match on seed keyword or filename

        Returns:
            ProjectPage
        """
        page = max(1, int(page))
        limit = max(1, min(int(limit), self.max_page_size))
        offset = (page - 1) * limit

        query = self.client.table(self.projects_table).select("*", count="exact")

        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.or_(
                f"seed_keyword.ilike.{pattern},original_filename.ilike.{pattern}"
            )

        try:
            result = query.order("created_at", desc=True).range(
                offset, offset + limit - 1
            ).execute()
        except Exception as e:
            raise DatabaseError(
                f"Failed to list projects: {e}",
                operation="select",
                table=self.projects_table
            )

        total = result.count if result.count is not None else len(result.data or [])
        return ProjectPage(
            projects=[ProjectSummary.from_row(row) for row in (result.data or [])],
            current_page=page,
            total_pages=math.ceil(total / limit) if total else 0,
            total_items=total,
            items_per_page=limit
        )


@lru_cache()
def get_project_store() -> Optional[ProjectStore]:
    """
    Get cached project store instance.
    Returns None if credentials are not configured.
    """
    settings = get_settings()
    url = settings.supabase_url
    key = settings.supabase_key

    if url and key:
        return ProjectStore(
            url,
            key,
            projects_table=settings.storage.projects_table,
            clusters_table=settings.storage.clusters_table,
            max_page_size=settings.storage.max_projects_per_page
        )
    return None
