"""Inventory orchestration: API writes mirrored into the local view."""

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exporter import write_export
from ..api.medicine_client import MedicineClient
from ..models.inventory_log import InventoryLog
from ..models.medicine import MedicineRecord, parse_expiry
from ..models.session import Session
from ..utils.config import get_config
from ..utils.exceptions import BaseAppException, InvalidArgumentError
from ..utils.logger import get_inventory_logger, get_error_logger
from ..views.inventory_view import ExportFormat, InventoryView, MutationKind

# CLI/file-level names for the view's export formats
FILE_FORMATS = {"csv": ExportFormat.CSV, "pdf": ExportFormat.PDF_TABLE}

EDITABLE_FIELDS = ("name", "description", "quantity", "price", "expiryDate", "manufacturer", "barcode")


def normalize_payload(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Check and normalise a create/update body before it is sent.

    Args:
        data: Field values keyed by their API (camelCase) names
        partial: Allow missing required fields (updates)

    Raises:
        InvalidArgumentError: On unknown fields or invalid values
    """
    if not isinstance(data, dict):
        raise InvalidArgumentError("Medicine data must be an object")

    unknown = set(data) - set(EDITABLE_FIELDS)
    if unknown:
        raise InvalidArgumentError(
            f"Unknown medicine fields: {', '.join(sorted(unknown))}",
            details={"fields": sorted(unknown)}
        )

    payload = {k: v for k, v in data.items() if v is not None}

    if not partial:
        missing = [f for f in ("name", "quantity", "expiryDate") if f not in payload]
        if missing:
            raise InvalidArgumentError(
                f"Missing required fields: {', '.join(missing)}",
                details={"fields": missing}
            )

    if "name" in payload and not isinstance(payload["name"], str):
        raise InvalidArgumentError(f"Name must be text, got {payload['name']!r}")
    if "name" in payload and not payload["name"].strip():
        raise InvalidArgumentError("Name cannot be empty")

    if "quantity" in payload:
        try:
            payload["quantity"] = int(payload["quantity"])
        except (TypeError, ValueError, OverflowError):
            raise InvalidArgumentError(f"Quantity must be a whole number, got {payload['quantity']!r}")
        if payload["quantity"] < 0:
            raise InvalidArgumentError("Quantity cannot be negative")

    if "price" in payload:
        try:
            payload["price"] = float(payload["price"])
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"Price must be a number, got {payload['price']!r}")
        if not math.isfinite(payload["price"]):
            raise InvalidArgumentError(f"Price must be a finite number, got {payload['price']!r}")
        if payload["price"] < 0:
            raise InvalidArgumentError("Price cannot be negative")

    if "expiryDate" in payload:
        expiry = parse_expiry(payload["expiryDate"])
        if expiry is None:
            raise InvalidArgumentError(f"Invalid expiry date: {payload['expiryDate']!r}")
        payload["expiryDate"] = expiry.isoformat()

    return payload


class InventoryService:
    """
    Coordinates the medicine API and the in-memory inventory view.

    Writes go to the API first; only a confirmed response is mirrored into
    the view, so the list stays consistent without a full refetch.
    """

    def __init__(
        self,
        client: Optional[MedicineClient] = None,
        view: Optional[InventoryView] = None,
        session: Optional[Session] = None
    ):
        self.config = get_config()
        self.logger = get_inventory_logger()
        self.error_logger = get_error_logger()
        self.client = client or MedicineClient(session=session)
        self.view = view or InventoryView()
        self.last_refreshed: Optional[datetime] = None

    def refresh(self) -> int:
        """
        Fetch the full collection and replace the view's records.

        Returns:
            Number of records now held by the view
        """
        try:
            raw_records = self.client.list_medicines()
        except BaseAppException as e:
            self.error_logger.error(f"Refresh failed: {e.message}", extra={"details": e.details})
            raise

        self.view.set_records(raw_records)
        self.last_refreshed = datetime.now(timezone.utc)

        warnings = self.view.parse_warnings
        if warnings:
            self.logger.warning(f"{len(warnings)} medicine(s) have an invalid expiry date")
        self.logger.info(f"Inventory refreshed: {len(self.view)} medicines")
        return len(self.view)

    def add_medicine(self, data: Dict[str, Any]) -> MedicineRecord:
        """Create a medicine through the API and append it to the view."""
        payload = normalize_payload(data)
        record = self.client.create_medicine(payload)
        self.view.apply_mutation(MutationKind.ADD, record)
        return record

    def update_medicine(self, medicine_id: str, changes: Dict[str, Any]) -> MedicineRecord:
        """
        Update a medicine through the API and replace it in the view.

        The request carries the full record: known local values merged with
        ``changes``.
        """
        changes = normalize_payload(changes, partial=True)
        if not changes:
            raise InvalidArgumentError("No changes given")

        current = next((r for r in self.view.records if r.id == medicine_id), None)
        payload = current.to_payload() if current else {}
        payload.update(changes)

        record = self.client.update_medicine(medicine_id, payload)
        if not self.view.apply_mutation(MutationKind.UPDATE, record):
            self.logger.info(f"Updated medicine {medicine_id} is not in the local list")
        return record

    def delete_medicine(self, medicine_id: str) -> None:
        """Delete a medicine through the API and drop it from the view."""
        self.client.delete_medicine(medicine_id)
        self.view.apply_mutation(MutationKind.REMOVE, {"id": medicine_id})

    def get_logs(self) -> List[InventoryLog]:
        """Inventory history, newest first."""
        logs = self.client.list_inventory_logs()
        return sorted(
            logs,
            key=lambda log: log.timestamp.timestamp() if log.timestamp else float("-inf"),
            reverse=True
        )

    def alerts(self) -> Dict[str, List[MedicineRecord]]:
        """Records to flag on the dashboard."""
        return {
            "expiring_soon": self.view.expiring_soon_records(),
            "low_stock": self.view.low_stock_records(),
        }

    def export(self, file_format: str, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Export the current filtered view to a file.

        Args:
            file_format: ``csv`` or ``pdf``
            path: Target path; defaults to the configured file name

        Returns:
            Path of the written file
        """
        fmt = FILE_FORMATS.get(file_format)
        if fmt is None:
            raise InvalidArgumentError(
                f"Unsupported export format: {file_format!r}",
                details={"allowed": list(FILE_FORMATS)}
            )

        export_config = self.config.export
        if path is None:
            path = export_config.csv_filename if fmt is ExportFormat.CSV else export_config.pdf_filename

        table = self.view.export_rows(fmt)
        written = write_export(table, path, title=export_config.pdf_title)
        self.logger.info(f"Exported {len(table)} medicines to {written}")
        return written

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
