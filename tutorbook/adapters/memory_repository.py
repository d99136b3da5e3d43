"""
In-memory marketplace repository, optionally backed by a JSON file.

This stands in for the real backend the same way the app's local-storage
fakes do: records live in dictionaries and, for the file-backed variant, the
whole store is rewritten after every save.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..domain.base import to_json_dict
from ..domain.exceptions import ConcurrentModificationError, RepositoryError
from ..domain.models import (
    Conversation,
    Message,
    Payment,
    Student,
    Tutor,
    TutoringSession,
    User,
)

logger = logging.getLogger(__name__)

SEED_DATA_FILE = Path(__file__).parent / "mock_marketplace_data.json"


# Collection name in the JSON document -> record type
COLLECTIONS: Dict[str, Type[BaseModel]] = {
    "users": User,
    "students": Student,
    "tutors": Tutor,
    "sessions": TutoringSession,
    "payments": Payment,
    "conversations": Conversation,
    "messages": Message,
}


class InMemoryRepository:
    """
    Dictionary-backed store for every marketplace record.

    Reads hand out deep copies so callers never mutate stored state without
    going through ``save``. Inserting a session that overlaps an active
    session of the same tutor raises ConcurrentModificationError; this is the
    check-and-insert the booking service relies on.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, BaseModel]] = {name: {} for name in COLLECTIONS}

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "InMemoryRepository":
        repository = cls()
        repository.load_document(document)
        return repository

    @classmethod
    def from_seed(cls, seed_file: Path = SEED_DATA_FILE) -> "InMemoryRepository":
        """Build a repository preloaded with the bundled demo data."""
        with open(seed_file, "r", encoding="utf-8") as f:
            return cls.from_document(json.load(f))

    def load_document(self, document: Dict[str, Any]) -> None:
        """
        Replace the store with records parsed from a JSON document.

        Raises:
            RepositoryError: If any record fails validation
        """
        records: Dict[str, Dict[str, BaseModel]] = {name: {} for name in COLLECTIONS}
        for name, model in COLLECTIONS.items():
            for raw in document.get(name, []):
                try:
                    record = model.model_validate(raw)
                except ValidationError as exc:
                    raise RepositoryError(f"Invalid {name} record: {exc}") from exc
                records[name][record.id] = record
        self._records = records

    def to_document(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            name: [to_json_dict(record) for record in records.values()]
            for name, records in self._records.items()
        }

    # Reads

    def get_tutors(self) -> List[Tutor]:
        return self._all("tutors")

    def get_tutor(self, tutor_id: str) -> Optional[Tutor]:
        return self._get("tutors", tutor_id)

    def get_session(self, session_id: str) -> Optional[TutoringSession]:
        return self._get("sessions", session_id)

    def get_sessions_for_tutor(self, tutor_id: str) -> List[TutoringSession]:
        return [session for session in self._all("sessions") if session.tutor_id == tutor_id]

    def get_sessions_for_student(self, student_id: str) -> List[TutoringSession]:
        return [session for session in self._all("sessions") if session.student_id == student_id]

    def get_payments_for_tutor(self, tutor_id: str) -> List[Payment]:
        return [payment for payment in self._all("payments") if payment.tutor_id == tutor_id]

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._get("conversations", conversation_id)

    def get_messages(self, conversation_id: str) -> List[Message]:
        messages = [m for m in self._all("messages") if m.conversation_id == conversation_id]
        return sorted(messages, key=lambda message: message.timestamp)

    # Writes

    def save(self, entity: BaseModel) -> None:
        """
        Insert or replace a record.

        Raises:
            ConcurrentModificationError: If a new session overlaps an active one
            RepositoryError: If the record type is not stored here
        """
        collection = self._collection_for(entity)
        if isinstance(entity, TutoringSession) and entity.id not in self._records["sessions"]:
            self._check_session_slot(entity)

        self._records[collection][entity.id] = entity.model_copy(deep=True)
        logger.debug("Saved %s %s", collection, entity.id)

    def _check_session_slot(self, session: TutoringSession) -> None:
        if not session.is_active:
            return
        for existing in self._records["sessions"].values():
            if (
                existing.tutor_id == session.tutor_id
                and existing.is_active
                and existing.overlaps(session.scheduled_date_time, session.ends_at)
            ):
                raise ConcurrentModificationError(
                    f"Session {existing.id} already holds that time for tutor {session.tutor_id}"
                )

    @staticmethod
    def _collection_for(entity: BaseModel) -> str:
        for name, model in COLLECTIONS.items():
            if isinstance(entity, model):
                return name
        raise RepositoryError(f"Cannot store records of type {type(entity).__name__}")

    def _all(self, collection: str) -> List[Any]:
        return [record.model_copy(deep=True) for record in self._records[collection].values()]

    def _get(self, collection: str, record_id: str) -> Optional[Any]:
        record = self._records[collection].get(record_id)
        return record.model_copy(deep=True) if record is not None else None


class JsonFileRepository(InMemoryRepository):
    """
    In-memory repository persisted to a JSON file after every save.

    A missing file starts an empty store, or the bundled demo data when
    ``seed_if_missing`` is set.
    """

    def __init__(self, path: Path, seed_if_missing: bool = False) -> None:
        super().__init__()
        self.path = Path(path)

        if self.path.exists():
            self._load_file()
        elif seed_if_missing:
            with open(SEED_DATA_FILE, "r", encoding="utf-8") as f:
                self.load_document(json.load(f))
            self._write_file()

    def save(self, entity: BaseModel) -> None:
        super().save(entity)
        self._write_file()

    def _load_file(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise RepositoryError(f"Could not read {self.path}: {exc}") from exc

        if not isinstance(document, dict):
            raise RepositoryError(f"{self.path} must contain a JSON object")
        self.load_document(document)

    def _write_file(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.to_document(), f, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise RepositoryError(f"Could not write {self.path}: {exc}") from exc
