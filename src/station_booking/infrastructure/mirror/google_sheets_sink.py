"""Google Sheets backup of booking records."""

import json
import threading
from typing import Any, Callable, Dict, Optional

import gspread

from src.station_booking.application.ports.mirror import MIRROR_COLUMNS, MirrorRecord, MirrorSink
from src.station_booking.domain.exceptions import MirrorSinkError
from src.station_booking.infrastructure.logging import get_logger

logger = get_logger(__name__)

STATUS_COLUMN = MIRROR_COLUMNS.index("status") + 1
CODE_COLUMN = MIRROR_COLUMNS.index("booking_code") + 1


def parse_service_account(raw: str) -> Dict[str, Any]:
    """Parse service-account JSON, restoring escaped newlines in the key."""
    try:
        creds = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MirrorSinkError("Invalid Google credentials JSON") from exc
    if "private_key" in creds:
        creds["private_key"] = creds["private_key"].replace("\\n", "\n")
    return creds


class GoogleSheetsMirrorSink(MirrorSink):
    """Appends booking rows to a worksheet, creating it on first use."""

    name = "google_sheets"

    def __init__(
        self,
        sheet_id: str,
        credentials: Dict[str, Any],
        worksheet_title: str = "Bookings",
        client_factory: Optional[Callable[[Dict[str, Any]], Any]] = None
    ):
        self._sheet_id = sheet_id
        self._credentials = credentials
        self._worksheet_title = worksheet_title
        self._client_factory = client_factory or gspread.service_account_from_dict
        self._worksheet = None
        self._lock = threading.Lock()

    def record(self, record: MirrorRecord) -> None:
        with self._lock:
            try:
                self._get_worksheet().append_row(record.as_row(), value_input_option="RAW")
            except Exception as exc:
                self._worksheet = None
                raise MirrorSinkError(f"Could not append {record.booking_code} to sheet") from exc

    def mark_completed(self, record: MirrorRecord) -> bool:
        with self._lock:
            try:
                worksheet = self._get_worksheet()
                row_index = self._find_row(worksheet, record)
                if row_index is None:
                    return False
                worksheet.update_cell(row_index, STATUS_COLUMN, record.status)
                return True
            except Exception as exc:
                self._worksheet = None
                raise MirrorSinkError(f"Could not update {record.booking_code} in sheet") from exc

    def _find_row(self, worksheet, record: MirrorRecord) -> Optional[int]:
        cell = worksheet.find(record.booking_code, in_column=CODE_COLUMN)
        if cell is not None:
            return cell.row

        for offset, row in enumerate(worksheet.get_all_values()[1:]):
            if record.matches_heuristically(row):
                logger.warning(
                    "Mirror row matched heuristically; booking code missing",
                    extra={"booking_code": record.booking_code, "row": offset + 2}
                )
                return offset + 2
        return None

    def _get_worksheet(self):
        if self._worksheet is not None:
            return self._worksheet

        client = self._client_factory(self._credentials)
        spreadsheet = client.open_by_key(self._sheet_id)
        try:
            worksheet = spreadsheet.worksheet(self._worksheet_title)
        except gspread.exceptions.WorksheetNotFound:
            worksheet = spreadsheet.add_worksheet(
                title=self._worksheet_title,
                rows=1000,
                cols=len(MIRROR_COLUMNS)
            )
            worksheet.append_row(MIRROR_COLUMNS)
        self._worksheet = worksheet
        logger.info("Google Sheets mirror connected", extra={"worksheet": self._worksheet_title})
        return worksheet
