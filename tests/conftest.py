"""Pytest configuration and fixtures."""

from datetime import date

import pytest
from unittest.mock import MagicMock

from medinventory.models.medicine import MedicineRecord
from medinventory.services.inventory_service import InventoryService
from medinventory.utils.config import InventoryConfig
from medinventory.views.inventory_view import InventoryView

TODAY = date(2025, 1, 5)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sample_medicine_dicts():
    """API-shaped medicines (scenario collection plus a few extras)."""
    return [
        {"_id": "1", "name": "Paracetamol", "quantity": 5, "expiryDate": "2025-01-10"},
        {"_id": "2", "name": "Ibuprofen", "quantity": 20, "expiryDate": "2024-06-01"},
        {
            "_id": "3",
            "name": "amoxicillin",
            "quantity": 40,
            "expiryDate": "2025-02-01T00:00:00.000Z",
            "manufacturer": "Sandoz",
            "barcode": "8901234567890",
        },
        {"_id": "4", "name": "Cetirizine", "quantity": 8, "expiryDate": "unknown"},
    ]


@pytest.fixture
def two_medicines():
    """The two-record collection from the example scenarios."""
    return [
        MedicineRecord(id="1", name="Paracetamol", quantity=5, expiry_date="2025-01-10"),
        MedicineRecord(id="2", name="Ibuprofen", quantity=20, expiry_date="2024-06-01"),
    ]


@pytest.fixture
def inventory_settings():
    return InventoryConfig()


@pytest.fixture
def make_view(inventory_settings):
    """Build an InventoryView pinned to TODAY."""
    def _make(records=None, settings=None, barcode_lookup=False):
        return InventoryView(
            records=records,
            settings=settings or inventory_settings,
            barcode_lookup=barcode_lookup,
            today=lambda: TODAY,
        )
    return _make


@pytest.fixture
def view(make_view, sample_medicine_dicts):
    return make_view(sample_medicine_dicts)


@pytest.fixture
def mock_medicine_client(sample_medicine_dicts):
    """Create a mock medicine API client."""
    client = MagicMock()
    client.list_medicines.return_value = sample_medicine_dicts
    client.list_inventory_logs.return_value = []
    client.delete_medicine.return_value = None
    return client


@pytest.fixture
def inventory_service(mock_medicine_client, make_view):
    """InventoryService over the mock client and a pinned view."""
    return InventoryService(client=mock_medicine_client, view=make_view())
