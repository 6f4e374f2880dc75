"""Tests for the inventory service and background refresh."""

from datetime import datetime, timezone

import pytest

from medinventory.models.inventory_log import InventoryLog
from medinventory.models.medicine import MedicineRecord
from medinventory.scheduler import REFRESH_JOB_ID, create_background_scheduler, make_refresh_job
from medinventory.services.inventory_service import normalize_payload
from medinventory.utils.exceptions import InvalidArgumentError, InventoryAPIError


class TestNormalizePayload:
    """Tests for create/update body validation."""

    def test_normalizes_values(self):
        """Test normalising a create body."""
        payload = normalize_payload({
            "name": "Aspirin",
            "quantity": "12",
            "expiryDate": "2026-03-01T00:00:00Z",
            "price": "4.5",
            "barcode": None,
        })

        assert payload == {"name": "Aspirin", "quantity": 12, "expiryDate": "2026-03-01", "price": 4.5}

    @pytest.mark.parametrize("data,message", [
        ({"name": "A", "quantity": 1}, "Missing required fields: expiryDate"),
        ({"name": "A", "quantity": -1, "expiryDate": "2026-01-01"}, "Quantity cannot be negative"),
        ({"name": "A", "quantity": "many", "expiryDate": "2026-01-01"}, "whole number"),
        ({"name": "A", "quantity": 1, "expiryDate": "unknown"}, "Invalid expiry date"),
        ({"name": "A", "quantity": 1, "expiryDate": "2026-01-01", "colour": "red"}, "Unknown medicine fields"),
        ({"name": 123, "quantity": 1, "expiryDate": "2026-01-01"}, "Name must be text"),
        ({"name": "A", "quantity": 1, "expiryDate": "2026-01-01", "price": "NaN"}, "finite number"),
    ])
    def test_rejects_bad_input(self, data, message):
        """Test that invalid bodies raise InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match=message):
            normalize_payload(data)

    def test_partial_allows_missing_fields(self):
        """Test that partial updates may omit required fields."""
        assert normalize_payload({"quantity": 50}, partial=True) == {"quantity": 50}


class TestInventoryService:
    """Tests for InventoryService."""

    def test_refresh_loads_view(self, inventory_service):
        """Test that refresh loads the fetched records into the view."""
        count = inventory_service.refresh()

        assert count == 4
        assert inventory_service.last_refreshed is not None
        assert len(inventory_service.view.parse_warnings) == 1

    def test_refresh_propagates_api_errors(self, inventory_service, mock_medicine_client):
        """Test that refresh re-raises API errors."""
        mock_medicine_client.list_medicines.side_effect = InventoryAPIError("boom")

        with pytest.raises(InventoryAPIError):
            inventory_service.refresh()

    def test_add_medicine_mirrors_created_record(self, inventory_service, mock_medicine_client):
        """Test that a created record is appended to the view."""
        inventory_service.refresh()
        mock_medicine_client.create_medicine.return_value = MedicineRecord(
            id="9", name="Aspirin", quantity=3, expiry_date="2026-01-01"
        )

        record = inventory_service.add_medicine({"name": "Aspirin", "quantity": "3", "expiryDate": "2026-01-01"})

        mock_medicine_client.create_medicine.assert_called_once_with(
            {"name": "Aspirin", "quantity": 3, "expiryDate": "2026-01-01"}
        )
        assert record.id == "9"
        assert inventory_service.view.records[-1].id == "9"

    def test_add_medicine_validates_before_calling_api(self, inventory_service, mock_medicine_client):
        """Test that invalid input never reaches the API."""
        with pytest.raises(InvalidArgumentError):
            inventory_service.add_medicine({"name": "Aspirin", "quantity": -3, "expiryDate": "2026-01-01"})

        mock_medicine_client.create_medicine.assert_not_called()

    def test_update_medicine_sends_full_record(self, inventory_service, mock_medicine_client):
        """Test that updates send the merged full record."""
        inventory_service.refresh()
        mock_medicine_client.update_medicine.return_value = MedicineRecord(
            id="1", name="Paracetamol", quantity=50, expiry_date="2025-01-10"
        )

        inventory_service.update_medicine("1", {"quantity": 50})

        mock_medicine_client.update_medicine.assert_called_once_with(
            "1", {"name": "Paracetamol", "quantity": 50, "expiryDate": "2025-01-10"}
        )
        records = {r.id: r for r in inventory_service.view.records}
        assert records["1"].quantity == 50
        assert records["2"].quantity == 20

    def test_update_without_changes_raises(self, inventory_service):
        """Test that an empty update raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="No changes"):
            inventory_service.update_medicine("1", {"name": None})

    def test_delete_medicine_removes_from_view(self, inventory_service, mock_medicine_client):
        """Test that a deleted record leaves the view."""
        inventory_service.refresh()

        inventory_service.delete_medicine("2")

        mock_medicine_client.delete_medicine.assert_called_once_with("2")
        assert "2" not in [r.id for r in inventory_service.view.records]

    def test_failed_delete_leaves_view_untouched(self, inventory_service, mock_medicine_client):
        """Test that a failed delete keeps the record."""
        inventory_service.refresh()
        mock_medicine_client.delete_medicine.side_effect = InventoryAPIError("Failed to delete medicine")

        with pytest.raises(InventoryAPIError):
            inventory_service.delete_medicine("2")

        assert len(inventory_service.view) == 4

    def test_get_logs_newest_first(self, inventory_service, mock_medicine_client):
        """Test that logs come back newest first."""
        mock_medicine_client.list_inventory_logs.return_value = [
            InventoryLog("a", "Paracetamol", "added", timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc)),
            InventoryLog("b", "Ibuprofen", "deleted"),
            InventoryLog("c", "Paracetamol", "updated", timestamp=datetime(2025, 1, 3, tzinfo=timezone.utc)),
        ]

        logs = inventory_service.get_logs()

        assert [log.id for log in logs] == ["c", "a", "b"]

    def test_alerts(self, inventory_service):
        """Test collecting alert records."""
        inventory_service.refresh()

        found = inventory_service.alerts()

        assert [r.name for r in found["expiring_soon"]] == ["Paracetamol"]
        assert [r.name for r in found["low_stock"]] == ["Paracetamol", "Cetirizine"]

    def test_export_csv(self, inventory_service, tmp_path):
        """Test exporting to a CSV file."""
        inventory_service.refresh()

        path = inventory_service.export("csv", tmp_path / "out.csv")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Name,Quantity,ExpiryDate"
        assert lines[1] == "Ibuprofen,20,2024-06-01"
        assert lines[-1] == "Cetirizine,8,Invalid date"

    def test_export_pdf(self, inventory_service, tmp_path):
        """Test exporting to a PDF file."""
        inventory_service.refresh()

        path = inventory_service.export("pdf", tmp_path / "out.pdf")

        assert path.read_bytes().startswith(b"%PDF")

    def test_export_unsupported_format(self, inventory_service):
        """Test that an unknown export format raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="Unsupported export format"):
            inventory_service.export("xlsx")


class TestRefreshScheduler:
    """Tests for the background refresh job."""

    def test_scheduler_registers_refresh_job(self, inventory_service):
        """Test that the scheduler registers the refresh job."""
        scheduler = create_background_scheduler(inventory_service)

        job = scheduler.get_job(REFRESH_JOB_ID)

        assert job is not None
        assert not scheduler.running

    def test_refresh_job_refreshes_service(self, inventory_service):
        """Test that the refresh job refreshes the service."""
        make_refresh_job(inventory_service)()

        assert len(inventory_service.view) == 4

    def test_refresh_job_survives_api_errors(self, inventory_service, mock_medicine_client):
        """Test that the refresh job logs API errors instead of raising."""
        mock_medicine_client.list_medicines.side_effect = InventoryAPIError("down")

        make_refresh_job(inventory_service)()

        assert len(inventory_service.view) == 0
