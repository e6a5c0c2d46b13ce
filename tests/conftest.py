"""
Shared fixtures for the Keyword Cluster Processor tests.
"""
from dataclasses import dataclass
from typing import Any, List, Optional

import pytest

from clustering.aggregator import ClusterAggregator
from clustering.payload import PayloadBuilder
from config.settings import Settings
from ingestion.normalizer import RowNormalizer


SAMPLE_CSV = (
    "Keyword,Page,Page type,Volume,Keyword Difficulty,CPC (USD),Topic,Intent,Seed keyword\n"
    "buy shoes,shoes,Pillar,1000,40,1.20,Footwear,Transactional,shoes\n"
    "cheap shoes,shoes,Pillar,500,0,0.80,Footwear,Commercial,shoes\n"
    "running shoes,running-shoes,Sub,200,20,$0.45,Running,Informational,shoes\n"
    ",orphan,Sub,999,10,1,,,\n"
)


@pytest.fixture
def sample_csv() -> str:
    """CSV export with two clusters and one row missing its keyword."""
    return SAMPLE_CSV


@pytest.fixture
def scenario_rows() -> List[dict]:
    """Rows of the shoes / running-shoes scenario."""
    return [
        {"Keyword": "buy shoes", "Page": "shoes", "Page type": "Pillar",
         "Volume": 1000, "Difficulty": 40},
        {"Keyword": "cheap shoes", "Page": "shoes", "Page type": "Pillar",
         "Volume": 500, "Difficulty": 0},
        {"Keyword": "running shoes", "Page": "running-shoes", "Page type": "Sub",
         "Volume": 200, "Difficulty": 20},
    ]


@pytest.fixture
def scenario_payload(scenario_rows):
    """Payload built from the scenario rows."""
    records = RowNormalizer().normalize_rows(scenario_rows).records
    clusters = ClusterAggregator().aggregate(records)
    return PayloadBuilder().build(
        clusters,
        seed_keyword="shoes",
        filename="shoes.csv",
        processing_time_ms=12
    )


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings()


# =============================================================================
# In-memory Supabase client
# =============================================================================


@dataclass
class FakeResult:
    data: Any
    count: Optional[int] = None


class FakeQuery:
    """Subset of the PostgREST query builder used by ProjectStore."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.want_count = False
        self.filters = []
        self.search = None
        self.order_by = None
        self.descending = False
        self.window = None
        self.max_rows = None

    def select(self, *columns, count: str = None):
        self.action = "select"
        self.want_count = count == "exact"
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column: str, value):
        self.filters.append((column, value))
        return self

    def or_(self, expression: str):
        self.search = expression
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = column
        self.descending = desc
        return self

    def range(self, start: int, end: int):
        self.window = (start, end)
        return self

    def limit(self, size: int):
        self.max_rows = size
        return self

    def _matches(self, row: dict) -> bool:
        for column, value in self.filters:
            if str(row.get(column)) != str(value):
                return False
        if self.search:
            alternatives = []
            for part in self.search.split(","):
                column, _, pattern = part.split(".", 2)
                needle = pattern.strip("%").lower()
                alternatives.append(needle in str(row.get(column, "")).lower())
            if not any(alternatives):
                return False
        return True

    def execute(self) -> FakeResult:
        if self.db.fail_on == self.table:
            raise RuntimeError("connection refused")

        rows = self.db.tables[self.table]
        matched = [row for row in rows if self._matches(row)]

        if self.action == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matched]
            if self.table == "projects":
                ids = {str(r["id"]) for r in matched}
                self.db.tables["clusters"] = [
                    c for c in self.db.tables["clusters"]
                    if str(c["project_id"]) not in ids
                ]
            return FakeResult(data=[dict(r) for r in matched])

        if self.order_by:
            matched.sort(key=lambda r: r[self.order_by], reverse=self.descending)
        total = len(matched)
        if self.window:
            matched = matched[self.window[0]:self.window[1] + 1]
        if self.max_rows is not None:
            matched = matched[:self.max_rows]
        return FakeResult(
            data=[dict(r) for r in matched],
            count=total if self.want_count else None
        )


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResult:
        if self.db.fail_on == "rpc":
            raise RuntimeError("function failed")
        return FakeResult(data=getattr(self.db, f"_rpc_{self.name}")(**self.params))


class FakeSupabase:
    """In-memory stand-in for the Supabase client."""

    def __init__(self):
        self.tables = {"projects": [], "clusters": []}
        self.next_id = 1
        self.fail_on = None
        self.calls = []

    def table(self, name: str) -> FakeQuery:
        self.calls.append(("table", name))
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRpc:
        self.calls.append(("rpc", name))
        return FakeRpc(self, name, params)

    def _insert_clusters(self, project_id, clusters: list) -> int:
        for cluster in clusters:
            self.tables["clusters"].append({"project_id": project_id, **cluster})
        return len(clusters)

    def _rpc_save_project(self, p_project: dict, p_clusters: list):
        project_id = self.next_id
        self.next_id += 1
        self.tables["projects"].append({
            "id": project_id,
            "status": "completed",
            "created_at": f"2024-01-{project_id:02d}T10:00:00+00:00",
            **p_project,
        })
        saved = self._insert_clusters(project_id, p_clusters)
        return {"project_id": project_id, "clusters_saved": saved}

    def _rpc_replace_project(self, p_project_id, p_project: dict, p_clusters: list):
        for row in self.tables["projects"]:
            if str(row["id"]) == str(p_project_id):
                row.update(p_project)
                break
        else:
            return None
        self.tables["clusters"] = [
            c for c in self.tables["clusters"]
            if str(c["project_id"]) != str(p_project_id)
        ]
        saved = self._insert_clusters(p_project_id, p_clusters)
        return {"project_id": p_project_id, "clusters_saved": saved}


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """Empty in-memory Supabase client."""
    return FakeSupabase()


@pytest.fixture
def store(fake_supabase):
    """ProjectStore backed by the in-memory client."""
    from storage.supabase_client import ProjectStore

    return ProjectStore(client=fake_supabase)
