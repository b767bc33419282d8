"""
Resignation Record Store for the Offboarding Engine.

Holds resignation requests and provides the atomic read-modify-write
per record the workflow engine relies on: creation is conditional on
the identity having no active request, and a stage patch is
conditional on that stage still being Pending.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..engine.transitions import apply_decision, normalize_identity
from ..exceptions import AlreadyDecided, DuplicateActiveRequest, NotFound
from ..models import Decision, ResignationRequest, Stage

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Interface of the durable collection of resignation requests."""

    @abstractmethod
    def create(self, record: ResignationRequest) -> ResignationRequest:
        """
        Insert a new record.

        Raises:
            DuplicateActiveRequest: If the identity already has an active request
        """

    @abstractmethod
    def get(self, record_id: str) -> Optional[ResignationRequest]:
        """Return a record by id, or None."""

    @abstractmethod
    def list(self, identity: Optional[str] = None) -> List[ResignationRequest]:
        """Return records ordered by submission time, optionally for one identity."""

    @abstractmethod
    def patch(
        self,
        record_id: str,
        stage: Stage,
        decision: Decision,
        note: str,
        decided_at: datetime,
    ) -> ResignationRequest:
        """
        Record a stage decision if, and only if, that stage is still Pending.

        Raises:
            NotFound: If the record does not exist
            AlreadyDecided: If the stage or the whole request is no longer Pending
        """

    def find_active(self, identity: str) -> Optional[ResignationRequest]:
        """Return the identity's active request, if any."""
        for record in self.list(identity):
            if record.is_active:
                return record
        return None


class LocalRecordStore(RecordStore):
    """
    In-process record store with optional JSON file persistence.

    A single lock serialises every mutation, which makes create and
    patch compare-and-set operations.
    """

    def __init__(self, storage_path: Optional[Union[str, Path]] = None):
        """
        Initialize the record store.

        Args:
            storage_path: Path to store records as JSON.
                         If None, records are kept in memory only.
        """
        self.storage_path = Path(storage_path) if storage_path else None
        self.records: Dict[str, ResignationRequest] = {}
        self._lock = threading.RLock()

        if self.storage_path:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_state()

        logger.info(
            f"Initialized LocalRecordStore with {'persistent' if self.storage_path else 'in-memory'} storage"
        )

    def create(self, record: ResignationRequest) -> ResignationRequest:
        with self._lock:
            active = self.find_active(record.identity)
            if active:
                raise DuplicateActiveRequest(
                    f"{record.identity} already has a pending resignation request ({active.id})"
                )

            self._commit({**self.records, record.id: record.model_copy()})

        logger.info(f"Created resignation request {record.id} for {record.identity}")
        return record.model_copy()

    def get(self, record_id: str) -> Optional[ResignationRequest]:
        with self._lock:
            record = self.records.get(record_id)
            return record.model_copy() if record else None

    def list(self, identity: Optional[str] = None) -> List[ResignationRequest]:
        with self._lock:
            records = list(self.records.values())

        if identity is not None:
            wanted = normalize_identity(identity)
            records = [r for r in records if r.identity == wanted]

        return [r.model_copy() for r in sorted(records, key=lambda r: r.submitted_at)]

    def patch(
        self,
        record_id: str,
        stage: Stage,
        decision: Decision,
        note: str,
        decided_at: datetime,
    ) -> ResignationRequest:
        stage = Stage(stage)
        with self._lock:
            record = self.records.get(record_id)
            if not record:
                raise NotFound(f"Resignation request {record_id} not found")

            current = record.decision_for(stage)
            if current != Decision.PENDING:
                raise AlreadyDecided(
                    f"The {stage.value} stage of request {record_id} was already {current.value}"
                )
            if not record.is_active:
                raise AlreadyDecided(
                    f"Request {record_id} is already {record.overall_status.value}"
                )

            updated = apply_decision(record, stage, decision, note, decided_at)
            self._commit({**self.records, record_id: updated})

        logger.info(
            f"Recorded {stage.value} decision {Decision(decision).value} on request {record_id}: "
            f"overall {updated.overall_status.value}"
        )
        return updated.model_copy()

    def _commit(self, records: Dict[str, ResignationRequest]):
        """Persist the next set of records, then make it current."""
        self._save_state(records)
        self.records = records

    def _save_state(self, records: Dict[str, ResignationRequest]):
        """Save the given records to persistent storage."""
        if not self.storage_path:
            return

        state_data = {
            "records": {
                record_id: record.model_dump(mode="json") for record_id, record in records.items()
            },
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }

        tmp_path = self.storage_path.with_suffix(self.storage_path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state_data, f, indent=2)
        tmp_path.replace(self.storage_path)

    def _load_state(self):
        """Load records from persistent storage."""
        if not self.storage_path or not self.storage_path.exists():
            return

        with open(self.storage_path, encoding="utf-8") as f:
            state_data = json.load(f)

        for record_id, record_data in state_data.get("records", {}).items():
            self.records[record_id] = ResignationRequest.model_validate(record_data)

        logger.info(f"Loaded {len(self.records)} resignation requests from {self.storage_path}")
