"""Dashboard summary and export data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Union


class TileVariant(str, Enum):
    """Visual variants a renderer can apply to a summary tile."""

    PRIMARY = "primary"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"
    SUCCESS = "success"


@dataclass
class SummaryTile:
    """One dashboard card: a title, a count and how to colour it."""

    title: str
    value: int
    variant: TileVariant = TileVariant.PRIMARY

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "value": self.value, "variant": self.variant.value}


@dataclass
class InventorySummary:
    """Aggregate counts over the full (unfiltered) collection."""

    total: int = 0
    low_stock: int = 0
    expiring_soon: int = 0
    expired: int = 0
    invalid_dates: int = 0

    def tiles(self) -> List[SummaryTile]:
        """Tiles shown at the top of the dashboard."""
        return [
            SummaryTile("Total Medicines", self.total, TileVariant.PRIMARY),
            SummaryTile(
                "Low Stock",
                self.low_stock,
                TileVariant.WARNING if self.low_stock else TileVariant.SUCCESS,
            ),
            SummaryTile(
                "Expiring Soon",
                self.expiring_soon,
                TileVariant.ERROR if self.expiring_soon else TileVariant.INFO,
            ),
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "total": self.total,
            "lowStock": self.low_stock,
            "expiringSoon": self.expiring_soon,
            "expired": self.expired,
            "invalidDates": self.invalid_dates,
        }

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        lines = [
            f"Total medicines: {self.total}",
            f"Low stock:       {self.low_stock}",
            f"Expiring soon:   {self.expiring_soon}",
            f"Expired:         {self.expired}",
        ]
        if self.invalid_dates:
            lines.append(f"Invalid dates:   {self.invalid_dates}")
        return "\n".join(lines)


Cell = Union[str, int]


@dataclass
class ExportTable:
    """Header plus rows, ready for a CSV writer or a PDF table renderer."""

    format: str
    header: List[str]
    rows: List[List[Cell]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, "header": self.header, "rows": self.rows}
