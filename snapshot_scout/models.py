# snapshot_scout/models.py
"""
Pipeline records: providers in, snapshot candidates and speed results out.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = ("Provider", "SnapshotCandidate", "SpeedTestResult", "utc_timestamp")

_REPORT_KEYS = {"bytes_received": "bytesReceived"}


class Provider(BaseModel):
    """A content source and the entry-point URL of its snapshot site."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


@dataclass(frozen=True, slots=True)
class SnapshotCandidate:
    """Provider name paired with the best snapshot URL found (or None)."""

    name: str
    snapshot_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "snapshotUrl": self.snapshot_url}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class SpeedTestResult:
    """Outcome of one throughput test."""

    name: str
    url: str
    status: Literal["success", "error"]
    timestamp: str = field(default_factory=utc_timestamp)
    speed_mbps: Optional[float] = None
    bytes_received: Optional[int] = None
    elapsed_seconds: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> Dict[str, Any]:
        """Report record; unset optionals and the elapsed time are left out."""
        data = asdict(self)
        del data["elapsed_seconds"]
        return {_REPORT_KEYS.get(k, k): v for k, v in data.items() if v is not None}
