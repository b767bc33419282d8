"""
Audit Logging Module.

Appends every resignation submission and stage decision attempt to
daily JSON-lines files and reads them back for audit trails.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from ..models import AuditRecord

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Append-only logger for workflow audit events.

    Persists audit records to the local file system, one file per day.
    """

    def __init__(self, audit_dir: Union[str, Path] = "audit_logs"):
        """
        Initialize the audit logger.

        Args:
            audit_dir: Directory to store audit logs
        """
        self.audit_dir = Path(audit_dir)
        self.audit_dir.mkdir(parents=True, exist_ok=True)

    def log_event(self, record: AuditRecord) -> str:
        """
        Log an audit event.

        Args:
            record: The audit record to log

        Returns:
            The record ID
        """
        date_str = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        log_file = self.audit_dir / f"audit_{date_str}.jsonl"

        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(record.model_dump(mode="json")) + "\n")

        logger.debug(f"Logged audit event {record.id} ({record.event_type}) for {record.identity}")
        return record.id

    def get_events(
        self,
        identity: Optional[str] = None,
        request_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[AuditRecord]:
        """
        Retrieve audit events with filtering, most recent first.

        Args:
            identity: Filter by employee identity
            request_id: Filter by resignation request
            start_date: Filter by start date
            end_date: Filter by end date
            limit: Maximum number of records to return

        Returns:
            List of matching AuditRecords
        """
        results = []

        log_files = sorted(self.audit_dir.glob("audit_*.jsonl"), reverse=True)

        for log_file in log_files:
            if len(results) >= limit:
                break

            with open(log_file, encoding="utf-8") as f:
                lines = f.readlines()

            for line in reversed(lines):
                if len(results) >= limit:
                    break

                try:
                    record = AuditRecord.model_validate_json(line)
                except ValueError as e:
                    logger.warning(f"Skipping unreadable audit record in {log_file}: {e}")
                    continue

                if identity and record.identity != identity:
                    continue

                if request_id and record.request_id != request_id:
                    continue

                if start_date and record.timestamp < start_date:
                    continue

                if end_date and record.timestamp > end_date:
                    continue

                results.append(record)

        return results
