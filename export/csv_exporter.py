"""
Text export functionality for processed payloads.
JSON, CSV and tab-separated renderings of the same payload.
"""
import csv
import io
import re
import json
from datetime import date as date_type
from typing import List, Any

from clustering.models import Cluster, ProcessedPayload, format_number, whole
from config.columns import EXPORT_COLUMNS

BOM = "\ufeff"

FILE_EXTENSIONS = {
    "json": "json",
    "csv": "csv",
    "tsv": "tsv",
    "xlsx": "xlsx",
}

UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\s]+')


def cluster_values(cluster: Cluster) -> List[Any]:
    """Cluster values in export column order."""
    return [
        cluster.cluster_name,
        cluster.keyword_count,
        cluster.supporting_keywords,
        format_number(cluster.total_volume),
        format_number(cluster.avg_difficulty),
        cluster.difficulty_range,
        cluster.topics,
        cluster.intent,
        format_number(cluster.avg_cpc),
        cluster.seed_keywords,
    ]


def project_info_rows(payload: ProcessedPayload) -> List[List[Any]]:
    """Label/value rows describing the project."""
    metadata = payload.metadata
    return [
        ["Seed Keyword", payload.seed_keyword],
        ["Original Filename", payload.source_filename],
        ["Total Clusters", metadata.total_clusters],
        ["Total Keywords", metadata.total_keywords],
        ["Total Volume", format_number(metadata.total_volume)],
        ["Average Difficulty", format_number(metadata.avg_difficulty)],
        ["Pillar Pages", metadata.pillar_pages],
        ["Sub Pages", metadata.sub_pages],
        ["Processing Time (ms)", metadata.processing_time_ms],
        ["Created At", payload.timestamp],
    ]


def format_cluster_text(cluster: Cluster) -> str:
    """
    Plain-text summary of one cluster, for copying.

    Args:
        cluster: Cluster to describe

    Returns:
        Multi-line text
    """
    return "\n".join([
        f"Cluster: {cluster.cluster_name}",
        f"Page Type: {cluster.page_type}",
        f"Keywords: {cluster.keyword_count}",
        f"Supporting Keywords: {cluster.supporting_keywords}",
        f"Total Volume: {whole(cluster.total_volume):,}",
        f"Average Difficulty: {format_number(cluster.avg_difficulty)}",
        f"Difficulty Range: {cluster.difficulty_range}",
        f"Topics: {cluster.topics}",
        f"Intent: {cluster.intent}",
        f"Average CPC: ${format_number(cluster.avg_cpc)}",
        f"Seed Keywords: {cluster.seed_keywords}",
    ])


def build_filename(
    payload: ProcessedPayload,
    fmt: str,
    date: date_type = None
) -> str:
    """
    Download filename for an export.

    Args:
        payload: Exported payload
        fmt: One of json, csv, tsv, xlsx
        date: Date used in the name (default: today)

    Returns:
        "{seed}_clusters_{YYYY-MM-DD}.{ext}"
    """
    if fmt not in FILE_EXTENSIONS:
        raise ValueError(f"Unsupported export format: {fmt}")
    seed = UNSAFE_FILENAME_CHARS.sub("_", payload.seed_keyword.strip()) or "keywords"
    day = (date or date_type.today()).isoformat()
    return f"{seed}_clusters_{day}.{FILE_EXTENSIONS[fmt]}"


class PayloadExporter:
    """Exports processed payloads to JSON, CSV and tab-separated text."""

    def to_json(self, payload: ProcessedPayload) -> str:
        """
        Export the wire document as pretty-printed JSON.

        Args:
            payload: Payload to export

        Returns:
            JSON text
        """
        return json.dumps(payload.to_dict(), indent=2, ensure_ascii=False)

    def to_csv(self, payload: ProcessedPayload) -> str:
        """
        Export to CSV with a project information block.

        Args:
            payload: Payload to export

        Returns:
            CSV content, starting with a byte-order mark
        """
        output = io.StringIO()
        output.write(BOM)

        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(["PROJECT INFORMATION"])
        writer.writerows(project_info_rows(payload))
        writer.writerow([])
        writer.writerow(["CLUSTERS"])
        writer.writerow(EXPORT_COLUMNS)
        for cluster in payload.clusters:
            writer.writerow(cluster_values(cluster))

        return output.getvalue()

    def to_tsv(self, payload: ProcessedPayload) -> str:
        """
        Export as tab-separated text for spreadsheet paste/import.

        Tabs and line breaks inside values become spaces.

        Args:
            payload: Payload to export

        Returns:
            Tab-separated content, starting with a byte-order mark
        """
        lines = [BOM + "PROJECT INFORMATION"]
        lines.extend(self._tsv_line(row) for row in project_info_rows(payload))
        lines.append("")
        lines.append("CLUSTERS")
        lines.append(self._tsv_line(EXPORT_COLUMNS))
        lines.extend(
            self._tsv_line(cluster_values(cluster))
            for cluster in payload.clusters
        )
        return "\n".join(lines) + "\n"

    def _tsv_line(self, values) -> str:
        return "\t".join(
            re.sub(r"[\t\r\n]+", " ", str(value)) for value in values
        )

    def export(self, payload: ProcessedPayload, fmt: str) -> str:
        """
        Export in a named text format.

        Args:
            payload: Payload to export
            fmt: json, csv or tsv
        """
        exporters = {
            "json": self.to_json,
            "csv": self.to_csv,
            "tsv": self.to_tsv,
        }
        if fmt not in exporters:
            raise ValueError(f"Unsupported export format: {fmt}")
        return exporters[fmt](payload)


def create_download_link(content: str) -> bytes:
    """
    Create downloadable bytes.

    Args:
        content: Exported text

    Returns:
        UTF-8 encoded bytes
    """
    return content.encode("utf-8")
