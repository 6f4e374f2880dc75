"""Client-side view-model for the medicine list.

Holds the in-memory collection handed over by the data-fetching layer and
derives everything the screens need from it: search, sort, pages, status
flags, dashboard counts and export projections. Nothing here does I/O.
"""

import copy
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from pyuca import Collator

from ..models.medicine import MedicineRecord, ParseWarning
from ..models.summary import ExportTable, InventorySummary
from ..utils.config import InventoryConfig, get_config
from ..utils.exceptions import FeatureDisabledError, InvalidArgumentError
from ..utils.logger import get_inventory_logger

EXPORT_HEADER = ["Name", "Quantity", "ExpiryDate"]

RecordInput = Union[MedicineRecord, Mapping[str, Any]]


class SortField(str, Enum):
    NAME = "name"
    QUANTITY = "quantity"
    EXPIRY_DATE = "expiryDate"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class MutationKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class ExportFormat(str, Enum):
    CSV = "csv"
    PDF_TABLE = "pdf-table"


class RecordState(str, Enum):
    """Row highlighting for the list view."""

    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    OK = "ok"


@dataclass(frozen=True)
class RecordStatus:
    """Derived flags for one record at a given day."""

    is_expired: bool
    is_expiring_soon: bool
    is_low_stock: bool

    @property
    def state(self) -> RecordState:
        if self.is_expired:
            return RecordState.EXPIRED
        if self.is_expiring_soon:
            return RecordState.EXPIRING_SOON
        return RecordState.OK


def coerce_option(enum_cls, value, label: str):
    """Convert a raw option value into ``enum_cls`` or raise InvalidArgumentError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidArgumentError(
            f"Unsupported {label}: {value!r}",
            details={label: value, "allowed": [member.value for member in enum_cls]}
        )


@lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator()


def _name_key(record: MedicineRecord):
    return _collator().sort_key(record.name.casefold())


class InventoryView:
    """
    Filtered, sorted and paginated view over a collection of medicines.

    The view exclusively owns its collection. Server-confirmed writes are
    mirrored in with ``apply_mutation``; a fresh fetch goes through
    ``set_records``.
    """

    def __init__(
        self,
        records: Optional[Iterable[RecordInput]] = None,
        settings: Optional[InventoryConfig] = None,
        barcode_lookup: Optional[bool] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize the view.

        Args:
            records: Initial collection (records or API dicts)
            settings: Thresholds and windows; defaults to the app config
            barcode_lookup: Enable ``find_by_barcode``; defaults to the app config
            today: Clock returning the current calendar date
        """
        config = get_config()
        self.settings = settings or config.inventory
        self.barcode_lookup = (
            config.features.barcode_lookup if barcode_lookup is None else barcode_lookup
        )
        self.logger = get_inventory_logger()
        self._today = today

        self._records: List[MedicineRecord] = []
        self.search_term = ""
        self.sort_field = SortField.EXPIRY_DATE
        self.sort_direction = SortDirection.ASC

        if records is not None:
            self.set_records(records)

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    @property
    def records(self) -> List[MedicineRecord]:
        """The full collection in insertion order (a copy)."""
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def copy(self) -> "InventoryView":
        """
        Independent view over the current records.

        Search, sort and mutations on the copy never reach this view; the
        records themselves are shared, not re-validated.
        """
        clone = copy.copy(self)
        clone._records = list(self._records)
        return clone

    @property
    def parse_warnings(self) -> List[ParseWarning]:
        """Records whose expiry date could not be parsed."""
        return [
            ParseWarning(record_id=r.id, name=r.name, raw_value=r.expiry_date)
            for r in self._records
            if not r.has_valid_expiry
        ]

    def _to_record(self, record: RecordInput) -> MedicineRecord:
        if isinstance(record, MedicineRecord):
            return record
        if isinstance(record, Mapping):
            try:
                return MedicineRecord.from_dict(record)
            except (ValueError, TypeError) as e:
                raise InvalidArgumentError(f"Malformed medicine record: {e}", details={"record": dict(record)})
        raise InvalidArgumentError(
            f"Unsupported record type: {type(record).__name__}",
            details={"record": repr(record)}
        )

    def _warn_if_invalid_date(self, record: MedicineRecord) -> None:
        if not record.has_valid_expiry:
            self.logger.warning(
                f"Invalid expiry date for {record.name} ({record.id}): {record.expiry_date!r}"
            )

    def set_records(self, records: Iterable[RecordInput]) -> None:
        """
        Replace the whole collection, e.g. after a fresh fetch.

        Malformed entries are skipped and logged so one bad record never
        blanks the rest of the list.
        """
        accepted: List[MedicineRecord] = []
        for raw in records:
            try:
                record = self._to_record(raw)
            except InvalidArgumentError as e:
                self.logger.error(f"Skipping record: {e.message}")
                continue
            self._warn_if_invalid_date(record)
            accepted.append(record)

        self._records = accepted
        self.logger.debug(f"Collection replaced: {len(accepted)} records")

    def _index_of(self, record_id: str) -> Optional[int]:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        return None

    def apply_mutation(self, kind: Union[MutationKind, str], record: RecordInput) -> bool:
        """
        Mirror a server-confirmed write into the local collection.

        Args:
            kind: ``add``, ``update`` or ``remove``
            record: The record echoed by the API; ``remove`` only needs ``id``

        Returns:
            True if the collection changed. Updating or removing an unknown
            id is a no-op and returns False.

        Raises:
            InvalidArgumentError: On an unsupported kind or malformed record
        """
        kind = coerce_option(MutationKind, kind, "mutation kind")

        if kind is MutationKind.REMOVE:
            if isinstance(record, MedicineRecord):
                record_id = record.id
            elif isinstance(record, Mapping):
                record_id = record.get("id", record.get("_id"))
            else:
                record_id = None
            if record_id is None:
                raise InvalidArgumentError("Remove requires a record id")

            index = self._index_of(str(record_id))
            if index is None:
                self.logger.debug(f"Remove ignored, id {record_id} not in collection")
                return False
            del self._records[index]
            return True

        new_record = self._to_record(record)
        self._warn_if_invalid_date(new_record)

        if kind is MutationKind.ADD:
            self._records.append(new_record)
            return True

        index = self._index_of(new_record.id)
        if index is None:
            self.logger.debug(f"Update ignored, id {new_record.id} not in collection")
            return False
        self._records[index] = new_record
        return True

    # ------------------------------------------------------------------
    # Search, sort, pagination
    # ------------------------------------------------------------------

    def set_search_term(self, term: Optional[str]) -> None:
        """Case-insensitive substring filter; empty matches everything."""
        if term is None:
            term = ""
        if not isinstance(term, str):
            raise InvalidArgumentError(f"Search term must be a string, got {type(term).__name__}")
        self.search_term = term

    def set_sort(self, field: Union[SortField, str], direction: Union[SortDirection, str] = SortDirection.ASC) -> None:
        self.sort_field = coerce_option(SortField, field, "sort field")
        self.sort_direction = coerce_option(SortDirection, direction, "sort direction")

    def _matches(self, record: MedicineRecord, needle: str) -> bool:
        if needle in record.name.casefold():
            return True
        if self.settings.search_manufacturer and record.manufacturer:
            return needle in record.manufacturer.casefold()
        return False

    def _filtered(self) -> List[MedicineRecord]:
        needle = self.search_term.casefold()
        if not needle:
            return list(self._records)
        return [r for r in self._records if self._matches(r, needle)]

    @staticmethod
    def _sorted(records: List[MedicineRecord], field: SortField, direction: SortDirection) -> List[MedicineRecord]:
        reverse = direction is SortDirection.DESC

        # Unparseable dates always trail, keeping their relative order.
        if field is SortField.EXPIRY_DATE:
            dated = [r for r in records if r.expiry is not None]
            undated = [r for r in records if r.expiry is None]
            dated.sort(key=lambda r: r.expiry, reverse=reverse)
            return dated + undated

        if field is SortField.NAME:
            return sorted(records, key=_name_key, reverse=reverse)
        return sorted(records, key=lambda r: r.quantity, reverse=reverse)

    def filtered_records(self) -> List[MedicineRecord]:
        """All records matching the search term, in the active sort order."""
        return self._sorted(self._filtered(), self.sort_field, self.sort_direction)

    @staticmethod
    def _check_page_size(page_size) -> None:
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
            raise InvalidArgumentError(
                f"Page size must be a positive integer, got {page_size!r}",
                details={"page_size": page_size}
            )

    def get_page(self, page_index: int, page_size: int) -> List[MedicineRecord]:
        """
        Return one 0-based page of the filtered, sorted records.

        Pages past the end are empty rather than an error.
        """
        self._check_page_size(page_size)
        if isinstance(page_index, bool) or not isinstance(page_index, int) or page_index < 0:
            raise InvalidArgumentError(
                f"Page index must be a non-negative integer, got {page_index!r}",
                details={"page_index": page_index}
            )

        start = page_index * page_size
        return self.filtered_records()[start:start + page_size]

    def page_count(self, page_size: int) -> int:
        self._check_page_size(page_size)
        return math.ceil(len(self._filtered()) / page_size)

    # ------------------------------------------------------------------
    # Status flags and summary
    # ------------------------------------------------------------------

    def status_for(self, record: MedicineRecord, window_days: Optional[int] = None) -> RecordStatus:
        """
        Compute the derived flags for ``record``.

        ``window_days`` defaults to the list-view expiry window.
        """
        if window_days is None:
            window_days = self.settings.list_expiry_window_days

        today = self._today()
        expiry = record.expiry
        is_expired = expiry is not None and expiry < today
        is_expiring_soon = (
            expiry is not None and today <= expiry <= today + timedelta(days=window_days)
        )
        return RecordStatus(
            is_expired=is_expired,
            is_expiring_soon=is_expiring_soon,
            is_low_stock=record.quantity < self.settings.low_stock_threshold,
        )

    def expiring_soon_records(self, window_days: Optional[int] = None) -> List[MedicineRecord]:
        """Records expiring within the window, soonest first (alert banner)."""
        soon = [r for r in self._records if self.status_for(r, window_days).is_expiring_soon]
        return self._sorted(soon, SortField.EXPIRY_DATE, SortDirection.ASC)

    def low_stock_records(self) -> List[MedicineRecord]:
        return [r for r in self._records if r.quantity < self.settings.low_stock_threshold]

    def compute_summary(self) -> InventorySummary:
        """
        Dashboard counts over the full collection.

        Ignores the search term and sort; expiring-soon uses the summary
        window rather than the list-view one.
        """
        summary = InventorySummary(total=len(self._records))
        window = self.settings.summary_expiry_window_days

        for record in self._records:
            status = self.status_for(record, window)
            if status.is_low_stock:
                summary.low_stock += 1
            if status.is_expiring_soon:
                summary.expiring_soon += 1
            if status.is_expired:
                summary.expired += 1
            if not record.has_valid_expiry:
                summary.invalid_dates += 1

        return summary

    # ------------------------------------------------------------------
    # Barcode lookup
    # ------------------------------------------------------------------

    def find_by_barcode(self, code: str) -> Optional[MedicineRecord]:
        """Find a record in the collection by its barcode."""
        if not self.barcode_lookup:
            raise FeatureDisabledError("Barcode lookup is disabled")

        code = (code or "").strip()
        if not code:
            return None
        for record in self._records:
            if record.barcode == code:
                return record
        return None

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_rows(self, format: Union[ExportFormat, str]) -> ExportTable:
        """
        Tabular projection of every filtered record (not just one page).

        Rows are ``[name, quantity, YYYY-MM-DD]`` sorted by expiry ascending
        whatever the active sort is; invalid dates come last.
        """
        fmt = coerce_option(ExportFormat, format, "export format")
        ordered = self._sorted(self.filtered_records(), SortField.EXPIRY_DATE, SortDirection.ASC)

        return ExportTable(
            format=fmt.value,
            header=list(EXPORT_HEADER),
            rows=[[r.name, r.quantity, r.expiry_display] for r in ordered],
        )
