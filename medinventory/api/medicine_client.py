"""REST client for the medicine inventory backend."""

from typing import List, Dict, Any, Optional
import httpx

from .base_client import BaseClient
from ..models.inventory_log import InventoryLog
from ..models.medicine import MedicineRecord
from ..models.session import Session
from ..utils.config import get_config
from ..utils.exceptions import InventoryAPIError, AuthenticationError

MEDICINES_ENDPOINT = "/api/medicines"
INVENTORY_LOGS_ENDPOINT = "/api/inventory-logs"


class MedicineClient(BaseClient):
    """Client for the ``/api/medicines`` and ``/api/inventory-logs`` endpoints."""

    def __init__(
        self,
        session: Optional[Session] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            session: Credentials; defaults to the configured API token
            base_url: API root; defaults to the configured ``api_base_url``
            transport: Optional httpx transport
        """
        config = get_config()
        super().__init__(
            base_url=base_url or config.env.api_base_url,
            session=session or Session.from_config(),
            transport=transport
        )

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("error") or body.get("message")
        return None

    def _send(self, method: str, endpoint: str, action: str, **kwargs) -> httpx.Response:
        """
        Send a request and map failures onto application exceptions.

        Raises:
            AuthenticationError: On 401/403
            InventoryAPIError: On any other error status or transport failure
        """
        response = self.request(method, endpoint, action, **kwargs)

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Not authorized to {action}",
                details={"status_code": response.status_code}
            )

        if response.is_error:
            message = self._error_message(response) or f"HTTP {response.status_code}"
            raise InventoryAPIError(
                f"Failed to {action}: {message}",
                details={"status_code": response.status_code, "response": response.text}
            )

        return response

    def _json(self, response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError:
            raise InventoryAPIError(
                f"Invalid JSON while trying to {action}",
                details={"response": response.text}
            )

    # ------------------------------------------------------------------
    # Medicines
    # ------------------------------------------------------------------

    def list_medicines(self) -> List[Dict[str, Any]]:
        """
        Fetch every medicine visible to the session.

        Returns raw API objects; the view decides how to treat malformed ones.
        """
        response = self._send("GET", MEDICINES_ENDPOINT, "fetch medicines")
        data = self._json(response, "fetch medicines")
        if not isinstance(data, list):
            raise InventoryAPIError(
                "Expected a list of medicines",
                details={"response": response.text}
            )
        self.logger.info(f"Fetched {len(data)} medicines")
        return data

    def create_medicine(self, payload: Dict[str, Any]) -> MedicineRecord:
        """Create a medicine and return the record echoed by the API."""
        response = self._send("POST", MEDICINES_ENDPOINT, "add medicine", json=payload)
        record = MedicineRecord.from_dict(self._json(response, "add medicine"))
        self.logger.info(f"Created medicine {record.name} ({record.id})")
        return record

    def update_medicine(self, medicine_id: str, payload: Dict[str, Any]) -> MedicineRecord:
        """Update a medicine and return the record echoed by the API."""
        endpoint = f"{MEDICINES_ENDPOINT}/{medicine_id}"
        response = self._send("PUT", endpoint, "update medicine", json=payload)
        record = MedicineRecord.from_dict(self._json(response, "update medicine"))
        self.logger.info(f"Updated medicine {record.name} ({record.id})")
        return record

    def delete_medicine(self, medicine_id: str) -> None:
        """Delete a medicine; the API answers with an empty body."""
        self._send("DELETE", f"{MEDICINES_ENDPOINT}/{medicine_id}", "delete medicine")
        self.logger.info(f"Deleted medicine {medicine_id}")

    # ------------------------------------------------------------------
    # Inventory logs
    # ------------------------------------------------------------------

    def list_inventory_logs(self) -> List[InventoryLog]:
        """Fetch the add/update/delete history."""
        response = self._send("GET", INVENTORY_LOGS_ENDPOINT, "fetch inventory logs")
        data = self._json(response, "fetch inventory logs")
        if not isinstance(data, list):
            raise InventoryAPIError(
                "Expected a list of inventory logs",
                details={"response": response.text}
            )
        return [InventoryLog.from_dict(item) for item in data]
