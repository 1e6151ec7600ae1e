"""Read-only lookup of relying party metadata.

The registry is shared by every attempt and never mutated after
construction, so lookups need no locking.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from acmeauth.models.request import ClientMetadata

logger = logging.getLogger(__name__)

DEFAULT_CLIENTS: tuple[ClientMetadata, ...] = (
    ClientMetadata(
        id="aua.example",
        display_name="Aua.App: Pain Diary",
        icon_uri="https://aua.example/icon.png",
    ),
)


class ClientMetadataRegistry:
    """Maps client identifiers to their display metadata."""

    def __init__(self, clients: Iterable[ClientMetadata] = ()):
        self._clients: dict[str, ClientMetadata] = {}
        for client in clients:
            if client.id in self._clients:
                logger.warning(f"Duplicate registry entry for {client.id}, keeping last")
            self._clients[client.id] = client

    @classmethod
    def default(cls) -> ClientMetadataRegistry:
        return cls(DEFAULT_CLIENTS)

    @classmethod
    def from_file(cls, path: str | Path) -> ClientMetadataRegistry:
        """Load entries from a JSON list of ``{id, name, icon_uri}`` objects."""
        with open(path, encoding="utf-8") as f:
            entries = json.load(f)
        return cls(ClientMetadata.model_validate(entry) for entry in entries)

    def lookup(self, client_id: str) -> ClientMetadata | None:
        return self._clients.get(client_id)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)
