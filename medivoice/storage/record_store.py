"""Report persistence behind a narrow RecordStore interface."""

import json
import logging
from dataclasses import fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from ..models.report import ReportType, StoredReport

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {f.name for f in fields(StoredReport)} - {"id", "created_at", "updated_at"}


class RecordStore(Protocol):
    """Operations the application layer needs from report storage."""

    def get(self, report_id: str) -> Optional[StoredReport]:
        ...

    def put(self, report: StoredReport) -> None:
        ...

    def delete(self, report_id: str) -> bool:
        ...

    def query(self, report_type: Optional[ReportType] = None, limit: Optional[int] = None) -> List[StoredReport]:
        ...

    def search(self, text: str, report_type: Optional[ReportType] = None,
               limit: Optional[int] = None) -> List[StoredReport]:
        ...

    def update(self, report_id: str, **changes: Any) -> Optional[StoredReport]:
        ...


class JsonFileRecordStore:
    """Stores one JSON document per report under ``<data_dir>/reports``."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize record store with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.reports_dir = self.data_dir / "reports"

        # Create directory structure
        self._ensure_directories()

        logger.info(f"JsonFileRecordStore initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.reports_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def _report_path(self, report_id: str) -> Path:
        if not report_id or "/" in report_id or "\\" in report_id or report_id.startswith("."):
            raise ValueError(f"Invalid report id: {report_id!r}")
        return self.reports_dir / f"{report_id}.json"

    def put(self, report: StoredReport) -> None:
        """Save a report, replacing any previous version with the same id."""
        report_file = self._report_path(report.id)
        tmp_file = report_file.with_suffix(".json.tmp")

        try:
            with open(tmp_file, 'w', encoding='utf-8') as f:
                json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
            tmp_file.replace(report_file)
            logger.info(f"Report saved: {report_file}")
        except Exception as e:
            logger.error(f"Error saving report {report.id}: {e}")
            raise

    def get(self, report_id: str) -> Optional[StoredReport]:
        """Load a report, or None if it does not exist."""
        report_file = self._report_path(report_id)

        if not report_file.exists():
            logger.warning(f"Report file not found: {report_file}")
            return None

        with open(report_file, 'r', encoding='utf-8') as f:
            return StoredReport.from_dict(json.load(f))

    def delete(self, report_id: str) -> bool:
        """Delete a report. Returns False if it did not exist."""
        report_file = self._report_path(report_id)
        if not report_file.exists():
            return False
        report_file.unlink()
        logger.info(f"Report deleted: {report_id}")
        return True

    def query(self, report_type: Optional[ReportType] = None, limit: Optional[int] = None) -> List[StoredReport]:
        """List reports newest first, optionally filtered by type.

        Args:
            report_type: Only return reports of this type
            limit: Maximum number of reports to return
        """
        reports = []
        for report_file in self.reports_dir.glob("*.json"):
            try:
                with open(report_file, 'r', encoding='utf-8') as f:
                    report = StoredReport.from_dict(json.load(f))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error(f"Skipping unreadable report file {report_file}: {e}")
                continue
            if report_type is not None and report.report_type != report_type:
                continue
            reports.append(report)

        reports.sort(key=lambda r: r.created_at, reverse=True)
        if limit is not None:
            reports = reports[:limit]
        logger.debug(f"Found {len(reports)} reports")
        return reports

    def search(self, text: str, report_type: Optional[ReportType] = None,
               limit: Optional[int] = None) -> List[StoredReport]:
        """Case-insensitive text search over transcription, report content and patient ID.

        Results are newest first. A blank search matches every report.
        """
        needle = text.strip().lower()
        matches = [
            report for report in self.query(report_type=report_type)
            if needle in report.transcription.lower()
            or needle in report.report_content.lower()
            or needle in (report.patient_id or "").lower()
        ]
        if limit is not None:
            matches = matches[:limit]
        logger.debug(f"Search {text!r} matched {len(matches)} reports")
        return matches

    def update(self, report_id: str, **changes: Any) -> Optional[StoredReport]:
        """Apply field changes to a saved report and bump ``updated_at``.

        Args:
            report_id: Report to edit
            **changes: New values for editable StoredReport fields

        Returns:
            The updated report, or None if it does not exist

        Raises:
            ValueError: For unknown or read-only fields
        """
        invalid = set(changes) - EDITABLE_FIELDS
        if invalid:
            raise ValueError(f"Cannot update report fields: {', '.join(sorted(invalid))}")

        report = self.get(report_id)
        if report is None:
            return None

        if 'report_type' in changes:
            changes['report_type'] = ReportType.parse(changes['report_type'])
        updated = replace(report, **changes, updated_at=datetime.now())
        self.put(updated)
        logger.info(f"Report updated: {report_id} ({', '.join(sorted(changes))})")
        return updated

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        total_size = 0
        report_count = 0
        for report_file in self.reports_dir.glob("*.json"):
            report_count += 1
            total_size += report_file.stat().st_size

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "report_count": report_count,
            "data_directory": str(self.data_dir)
        }
