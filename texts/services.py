import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from django.db import IntegrityError, transaction
from django.utils import timezone

from texts.exceptions import QueryError
from texts.gateway import PersistenceGateway
from texts.models import TextRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TextLookup:
    """Result of a read: the stored text and whether a record exists."""

    text: str
    exists: bool


class TextRecordStore:
    """
    Reads and writes TextRecords through a PersistenceGateway.

    Every database call goes through ``gateway.execute`` so that requests
    fail fast with a QueryError while the gateway is reconnecting.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def get(self, key: str) -> TextLookup:
        """
        Look up the record stored under ``key``.

        Never creates a record. A missing key yields empty text with
        ``exists=False``.

        Raises:
            QueryError: If the store is unreachable or the query fails
        """
        record = self._run(
            "get",
            key,
            lambda: TextRecord.objects.only("key", "text").filter(key=key).first(),
        )
        if record is None:
            return TextLookup(text="", exists=False)
        return TextLookup(text=record.text, exists=True)

    def upsert(self, key: str, text: Optional[str]) -> TextRecord:
        """
        Create or fully replace the text stored under ``key``.

        Args:
            key: The record key
            text: The new text; None is stored as an empty string

        Returns:
            The record as it is after the write

        Raises:
            QueryError: If the store is unreachable or the write fails
        """
        if text is None:
            text = ""
        return self._run("upsert", key, lambda: self._upsert(key, text), idempotent=True)

    def _upsert(self, key: str, text: str) -> TextRecord:
        now = timezone.now()
        with transaction.atomic():
            updated = TextRecord.objects.filter(key=key).update(text=text, updated_at=now)
            if updated:
                return TextRecord.objects.get(key=key)

            try:
                # Savepoint so a lost race does not poison the outer transaction
                with transaction.atomic():
                    return TextRecord.objects.create(key=key, text=text, updated_at=now)
            except IntegrityError:
                # A concurrent writer created the key first; overwrite its row
                TextRecord.objects.filter(key=key).update(text=text, updated_at=now)
                return TextRecord.objects.get(key=key)

    def _run(
        self,
        operation: str,
        key: str,
        query: Callable[[], T],
        idempotent: bool = False,
    ) -> T:
        try:
            return self.gateway.execute(query, idempotent=idempotent)
        except QueryError as e:
            e.operation = operation
            e.key = key
            logger.error(f"Error during {operation} of text {key!r}: {e}")
            raise
