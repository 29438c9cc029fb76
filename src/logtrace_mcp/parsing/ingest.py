"""Batch ingestion: expand paths, extract, normalize and correlate.

One invocation processes one finite batch of files. A file that cannot be
read or parsed is counted as failed and skipped; the rest of the batch
continues. Batch-level problems (nothing to read, unknown zone or format,
unwritable output) raise.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ..config import LOG_FORMATS
from ..errors import (
    NoInputFilesError,
    OutputWriteError,
    ProcessedLogError,
    UnsupportedFormatError,
)
from ..tracing.correlator import TRACE_ID_KEY, correlate
from .detect import JSON, XML, detect_format
from .extractors import (
    LogRecord,
    extract_json_records,
    extract_text_records,
    extract_xml_records,
)
from .timestamps import normalize_record_timestamps, resolve_timezone

logger = structlog.get_logger(__name__)

SOURCE_FILE_KEY = "_source_file"
SEQUENCE_KEY = "_trace_index"


@dataclass
class IngestStats:
    """Summary statistics for one ingestion batch."""

    total_logs: int = 0
    processed_files: int = 0
    failed_files: int = 0
    failed_paths: list[str] = field(default_factory=list)
    level_counts: dict[str, int] = field(default_factory=dict)
    service_counts: dict[str, int] = field(default_factory=dict)
    unique_traces: int = 0
    logs_with_trace_info: int = 0
    avg_logs_per_trace: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_logs": self.total_logs,
            "processed_files": self.processed_files,
            "failed_files": self.failed_files,
            "failed_paths": self.failed_paths,
            "level_counts": self.level_counts,
            "service_counts": self.service_counts,
            "unique_traces": self.unique_traces,
            "logs_with_trace_info": self.logs_with_trace_info,
            "avg_logs_per_trace": self.avg_logs_per_trace,
        }


@dataclass
class IngestResult:
    records: list[LogRecord]
    stats: IngestStats


def expand_paths(paths: list[str]) -> list[Path]:
    """Expand directories recursively; files are kept in request order."""
    expanded: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            expanded.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        else:
            expanded.append(path)
    return expanded


def extract_file(path: Path, log_format: str = "auto") -> list[LogRecord]:
    """Extract the records of one file.

    Raises OSError if the file cannot be read.
    """
    fmt = detect_format(path) if log_format == "auto" else log_format
    with open(path, encoding="utf-8", errors="ignore") as f:
        if fmt == JSON:
            records = extract_json_records(f.read())
        elif fmt == XML:
            records = extract_xml_records(f.read())
        else:
            records = extract_text_records(f)

    for record in records:
        record[SOURCE_FILE_KEY] = path.name
    logger.debug("file_parsed", path=str(path), format=fmt, records=len(records))
    return records


def summarize(records: list[LogRecord], stats: IngestStats) -> IngestStats:
    """Fill record-derived counters of ``stats``."""
    stats.total_logs = len(records)
    stats.level_counts = dict(
        Counter(str(r["level"]) for r in records if r.get("level")).most_common()
    )
    stats.service_counts = dict(
        Counter(str(r["service"]) for r in records if r.get("service")).most_common()
    )

    trace_ids = [r[TRACE_ID_KEY] for r in records if r.get(TRACE_ID_KEY)]
    unique = set(trace_ids)
    stats.unique_traces = len(unique)
    stats.logs_with_trace_info = len(trace_ids)
    stats.avg_logs_per_trace = len(trace_ids) / len(unique) if unique else None
    return stats


def ingest(
    paths: list[str],
    log_format: str = "auto",
    time_zone: str = "UTC",
    extract_tracing: bool = True,
) -> IngestResult:
    """Run detect, extract, normalize and correlate over a batch of paths."""
    if log_format not in LOG_FORMATS:
        raise UnsupportedFormatError(log_format, LOG_FORMATS)
    tz = resolve_timezone(time_zone)

    files = expand_paths(paths)
    if not any(path.is_file() for path in files):
        raise NoInputFilesError(paths)

    stats = IngestStats()
    records: list[LogRecord] = []
    for path in files:
        if not path.is_file():
            logger.warning("file_not_found", path=str(path))
            stats.failed_files += 1
            stats.failed_paths.append(str(path))
            continue
        try:
            file_records = extract_file(path, log_format)
        except (OSError, UnicodeError) as e:
            logger.warning("file_parse_failed", path=str(path), error=str(e))
            stats.failed_files += 1
            stats.failed_paths.append(str(path))
            continue
        records.extend(file_records)
        stats.processed_files += 1

    for index, record in enumerate(records):
        record[SEQUENCE_KEY] = index

    normalize_record_timestamps(records, tz)
    if extract_tracing:
        correlate(records)

    summarize(records, stats)
    logger.info(
        "ingest_completed",
        total_logs=stats.total_logs,
        processed_files=stats.processed_files,
        failed_files=stats.failed_files,
        unique_traces=stats.unique_traces,
    )
    return IngestResult(records=records, stats=stats)


def write_records(records: list[LogRecord], output_path: str) -> None:
    """Write the normalized record array as JSON, creating parent dirs."""
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, default=str)
    except OSError as e:
        raise OutputWriteError(output_path, e) from e


def load_records(processed_log_path: str) -> list[LogRecord]:
    """Load a processed record array written by ``write_records``."""
    try:
        with open(processed_log_path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ProcessedLogError(processed_log_path, str(e)) from e
    except json.JSONDecodeError as e:
        raise ProcessedLogError(processed_log_path, f"invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise ProcessedLogError(processed_log_path, "expected a JSON array")
    return [r for r in data if isinstance(r, dict)]
