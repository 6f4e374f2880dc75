"""Inventory audit log entries returned by the API."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

from dateutil.parser import parse as parse_date

LOG_ACTIONS = ("added", "updated", "deleted")


@dataclass
class InventoryLog:
    """A single add/update/delete event recorded by the backend."""

    id: str
    medicine_name: str
    action: str
    details: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def timestamp_display(self) -> str:
        if self.timestamp is None:
            return ""
        return self.timestamp.strftime("%b %d, %Y %I:%M %p")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "medicineName": self.medicine_name,
            "action": self.action,
            "details": self.details,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryLog":
        """Create instance from dictionary."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            try:
                timestamp = parse_date(timestamp)
            except (ValueError, OverflowError):
                timestamp = None

        return cls(
            id=str(data.get("id", data.get("_id", ""))),
            medicine_name=data.get("medicineName", ""),
            action=data.get("action", ""),
            details=data.get("details"),
            timestamp=timestamp,
        )
