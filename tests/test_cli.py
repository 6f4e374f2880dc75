"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from medinventory.cli import cli
from medinventory.models.inventory_log import InventoryLog
from medinventory.models.medicine import MedicineRecord
from medinventory.utils.exceptions import AuthenticationError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, inventory_service):
    def _invoke(*args, **kwargs):
        return runner.invoke(cli, list(args), obj={"service": inventory_service}, **kwargs)
    return _invoke


class TestCLI:
    """Tests for CLI commands."""

    def test_list(self, invoke):
        """Test listing medicines sorted by name."""
        result = invoke("list", "--sort", "name")

        assert result.exit_code == 0
        assert result.output.index("amoxicillin") < result.output.index("Paracetamol")
        assert "Page 1 of 1 (4 medicines)" in result.output
        assert "Paracetamol: 5 units, Exp: 2025-01-10" in result.output

    def test_list_search_without_matches(self, invoke):
        """Test listing with a search term that matches nothing."""
        result = invoke("list", "--search", "zzz")

        assert result.exit_code == 0
        assert "No medicines found." in result.output

    def test_list_rejects_unknown_sort(self, invoke):
        """Test that an unknown sort field is a usage error."""
        result = invoke("list", "--sort", "price")

        assert result.exit_code == 2

    def test_list_unauthorized(self, invoke, mock_medicine_client):
        """Test that a rejected token exits with an error."""
        mock_medicine_client.list_medicines.side_effect = AuthenticationError("Not authorized to fetch medicines")

        result = invoke("list")

        assert result.exit_code == 1
        assert "Not authorized" in result.output

    def test_summary(self, invoke):
        """Test printing the dashboard summary."""
        result = invoke("summary")

        assert result.exit_code == 0
        assert "Total Medicines" in result.output
        assert "Invalid dates" in result.output

    def test_alerts(self, invoke):
        """Test printing expiry and low-stock alerts."""
        result = invoke("alerts")

        assert result.exit_code == 0
        assert "1 medicine(s) expiring in the next 7 days" in result.output
        assert "Cetirizine: 8 units" in result.output

    def test_export_csv(self, invoke, tmp_path):
        """Test exporting the list to a CSV file."""
        target = tmp_path / "medicines.csv"

        result = invoke("export", "--format", "csv", "--output", str(target))

        assert result.exit_code == 0
        assert target.read_text(encoding="utf-8").startswith("Name,Quantity,ExpiryDate\nIbuprofen,20,2024-06-01")

    def test_add(self, invoke, mock_medicine_client):
        """Test adding a medicine."""
        mock_medicine_client.create_medicine.return_value = MedicineRecord(
            id="9", name="Aspirin", quantity=3, expiry_date="2026-01-01"
        )

        result = invoke("add", "--name", "Aspirin", "--quantity", "3", "--expiry-date", "2026-01-01")

        assert result.exit_code == 0
        assert "Added Aspirin (9)" in result.output

    def test_add_invalid_date(self, invoke, mock_medicine_client):
        """Test that an invalid expiry date is rejected before the API call."""
        result = invoke("add", "--name", "Aspirin", "--quantity", "3", "--expiry-date", "unknown")

        assert result.exit_code == 1
        mock_medicine_client.create_medicine.assert_not_called()

    def test_update(self, invoke, mock_medicine_client):
        """Test updating a medicine's quantity."""
        mock_medicine_client.update_medicine.return_value = MedicineRecord(
            id="1", name="Paracetamol", quantity=50, expiry_date="2025-01-10"
        )

        result = invoke("update", "1", "--quantity", "50")

        assert result.exit_code == 0
        assert mock_medicine_client.update_medicine.call_args[0][1]["quantity"] == 50

    def test_delete(self, invoke, mock_medicine_client):
        """Test deleting a medicine."""
        result = invoke("delete", "2", "--yes")

        assert result.exit_code == 0
        mock_medicine_client.delete_medicine.assert_called_once_with("2")

    def test_logs(self, invoke, mock_medicine_client):
        """Test printing the inventory history."""
        mock_medicine_client.list_inventory_logs.return_value = [
            InventoryLog("a", "Paracetamol", "added", details="Initial stock"),
        ]

        result = invoke("logs")

        assert result.exit_code == 0
        assert "Paracetamol: Initial stock" in result.output

    def test_config_info(self, runner):
        """Test showing the active configuration."""
        result = runner.invoke(cli, ["config-info"])

        assert result.exit_code == 0
        assert "Low stock below: 10" in result.output
