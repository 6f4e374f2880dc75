"""Medicine record data model."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, Union

from dateutil.parser import parse as parse_date

INVALID_DATE_MARKER = "Invalid date"

ExpiryValue = Union[str, date, datetime, None]

# Fills the parts a partial date leaves out ("2025" is 2025-01-01)
PARTIAL_DATE_DEFAULT = datetime(2000, 1, 1)


def parse_expiry(value: ExpiryValue) -> Optional[date]:
    """
    Parse an expiry value into a calendar date.

    Accepts ``date``/``datetime`` objects and strings such as ``2025-01-10``
    or ``2025-01-10T00:00:00.000Z``. Time of day is discarded; missing
    month or day parts default to January and the 1st.

    Returns:
        The date, or None when the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        return parse_date(value.strip(), default=PARTIAL_DATE_DEFAULT).date()
    except (ValueError, OverflowError):
        return None


@dataclass
class ParseWarning:
    """Non-fatal problem with a single record's expiry date."""

    record_id: str
    name: str
    raw_value: Any
    message: str = "Expiry date could not be parsed"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "record_id": self.record_id,
            "name": self.name,
            "raw_value": None if self.raw_value is None else str(self.raw_value),
            "message": self.message,
        }


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Price is not a number: {value!r}")


@dataclass
class MedicineRecord:
    """One medicine in the inventory, as held by the client."""

    id: str
    name: str
    quantity: int
    expiry_date: ExpiryValue
    description: Optional[str] = None
    price: Optional[Decimal] = None
    manufacturer: Optional[str] = None
    barcode: Optional[str] = None
    expiry: Optional[date] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Validate and normalize data."""
        if not isinstance(self.name, str):
            raise ValueError(f"Name must be text, got {type(self.name).__name__}")
        if not self.name.strip():
            raise ValueError("Name cannot be empty")
        if self.manufacturer is not None and not isinstance(self.manufacturer, str):
            raise ValueError(f"Manufacturer must be text, got {type(self.manufacturer).__name__}")

        try:
            self.quantity = int(self.quantity)
        except (TypeError, ValueError, OverflowError):
            raise ValueError(f"Quantity must be a whole number, got {self.quantity!r}")
        if self.quantity < 0:
            raise ValueError("Quantity cannot be negative")

        self.price = _to_decimal(self.price)
        if self.price is not None:
            if not self.price.is_finite():
                raise ValueError(f"Price must be a finite number, got {self.price}")
            if self.price < 0:
                raise ValueError("Price cannot be negative")

        self.id = str(self.id)
        self.expiry = parse_expiry(self.expiry_date)

    @property
    def has_valid_expiry(self) -> bool:
        return self.expiry is not None

    @property
    def expiry_display(self) -> str:
        """ISO date (YYYY-MM-DD) or the invalid-date marker."""
        if self.expiry is None:
            return INVALID_DATE_MARKER
        return self.expiry.isoformat()

    def to_payload(self) -> Dict[str, Any]:
        """Body for create/update requests (no id, no empty fields)."""
        payload: Dict[str, Any] = {
            "name": self.name,
            "quantity": self.quantity,
            "expiryDate": self.expiry.isoformat() if self.expiry else self.expiry_date,
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.price is not None:
            payload["price"] = float(self.price)
        if self.manufacturer is not None:
            payload["manufacturer"] = self.manufacturer
        if self.barcode is not None:
            payload["barcode"] = self.barcode
        return payload

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "price": float(self.price) if self.price is not None else None,
            "expiryDate": self.expiry_display,
            "manufacturer": self.manufacturer,
            "barcode": self.barcode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicineRecord":
        """Create instance from an API object (``_id`` or ``id``, camelCase)."""
        record_id = data.get("id", data.get("_id"))
        if record_id is None:
            raise ValueError("Medicine record has no id")

        expiry = data.get("expiryDate", data.get("expiry_date"))

        return cls(
            id=record_id,
            name=data.get("name", ""),
            quantity=data.get("quantity", 0),
            expiry_date=expiry,
            description=data.get("description"),
            price=data.get("price"),
            manufacturer=data.get("manufacturer"),
            barcode=data.get("barcode"),
        )
