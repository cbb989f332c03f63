"""Message-related data models."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Message:
    """A message travelling through the broker."""

    id: str
    topic: str
    data: bytes  # UTF-8 encoded JSON payload
    attributes: dict[str, str] = field(default_factory=dict)  # string metadata
    publish_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def json(self) -> Any:
        """Decode the payload as JSON."""
        return json.loads(self.data.decode("utf-8"))


def build_payload(text: str, now: datetime | None = None) -> dict[str, str]:
    """Build the published payload: fixed text plus an ISO-8601 UTC timestamp."""
    if now is None:
        now = datetime.now(timezone.utc)
    return {
        "message": text,
        "timestamp": now.isoformat().replace("+00:00", "Z"),
    }


def encode_payload(payload: dict[str, Any]) -> bytes:
    """Serialize a payload for the wire."""
    return json.dumps(payload).encode("utf-8")
