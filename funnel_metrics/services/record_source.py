"""
Record source boundary.

The engine does no I/O of its own; channel records are fetched through a
RecordSource, the only suspension point of a dispatch call. Retries,
pagination and timeouts belong to the concrete source, not to the engine.

InMemoryRecordSource serves a fixed list of documents (for example the JSON
file named by RECORDS_PATH, or fixtures in tests). Documents are normalized to
plain dicts once, when the source is built.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Union

from funnel_metrics.services.channels import ChannelDescriptor
from funnel_metrics.services.extraction import normalize_record


logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Anything that can fetch raw records for one channel."""

    async def fetch(
        self,
        descriptor: ChannelDescriptor,
        filters: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        ...


def matches_filters(document: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    """Scalar filter values match by equality, list/tuple/set values by membership."""
    for key, expected in filters.items():
        value = document.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


def belongs_to_channel(document: Mapping[str, Any], descriptor: ChannelDescriptor) -> bool:
    return all(document.get(key) is not None for key in descriptor.presence_fields)


class InMemoryRecordSource:
    """RecordSource over a fixed list of documents."""

    def __init__(self, documents: Iterable[Any] = ()):
        self._documents = [normalize_record(document) for document in documents]

    def __len__(self) -> int:
        return len(self._documents)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryRecordSource":
        """
        Load documents from a JSON file holding a list of objects.

        Raises:
            ValueError: If the file does not hold a JSON list.
        """
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, list):
            raise ValueError(f"Records file {path} must contain a JSON list")
        logger.info(f"Loaded {len(data)} records from {path}")
        return cls(data)

    async def fetch(
        self,
        descriptor: ChannelDescriptor,
        filters: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        return [
            dict(document)
            for document in self._documents
            if belongs_to_channel(document, descriptor) and matches_filters(document, filters)
        ]
