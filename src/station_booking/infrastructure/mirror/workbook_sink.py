"""Excel workbook ledger for booking records."""

import threading
from pathlib import Path
from typing import Optional

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from src.station_booking.application.ports.mirror import MIRROR_COLUMNS, MirrorRecord, MirrorSink
from src.station_booking.domain.exceptions import MirrorSinkError
from src.station_booking.infrastructure.logging import get_logger

logger = get_logger(__name__)

STATUS_COLUMN = MIRROR_COLUMNS.index("status") + 1
CODE_COLUMN = MIRROR_COLUMNS.index("booking_code") + 1


class WorkbookMirrorSink(MirrorSink):
    """Keeps one worksheet row per booking in an .xlsx file on disk."""

    name = "workbook"

    def __init__(self, path: str, sheet_title: str = "Bookings"):
        self._path = Path(path)
        self._sheet_title = sheet_title
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def record(self, record: MirrorRecord) -> None:
        with self._lock:
            try:
                workbook = self._open()
                sheet = workbook[self._sheet_title]
                sheet.append(record.as_row())
                workbook.save(self._path)
            except Exception as exc:
                raise MirrorSinkError(f"Could not append {record.booking_code} to {self._path}") from exc

    def mark_completed(self, record: MirrorRecord) -> bool:
        with self._lock:
            try:
                workbook = self._open()
                sheet = workbook[self._sheet_title]
                row_index = self._find_row(sheet, record)
                if row_index is None:
                    return False
                sheet.cell(row=row_index, column=STATUS_COLUMN, value=record.status)
                workbook.save(self._path)
                return True
            except Exception as exc:
                raise MirrorSinkError(f"Could not update {record.booking_code} in {self._path}") from exc

    def _find_row(self, sheet, record: MirrorRecord) -> Optional[int]:
        rows = list(sheet.iter_rows(min_row=2, values_only=True))
        for offset, row in enumerate(rows):
            if row and row[CODE_COLUMN - 1] == record.booking_code:
                return offset + 2

        for offset, row in enumerate(rows):
            if row and record.matches_heuristically(list(row)):
                logger.warning(
                    "Mirror row matched heuristically; booking code missing",
                    extra={"booking_code": record.booking_code, "row": offset + 2}
                )
                return offset + 2
        return None

    def _open(self) -> Workbook:
        if self._path.exists():
            workbook = load_workbook(self._path)
            if self._sheet_title in workbook.sheetnames:
                return workbook
            sheet = workbook.create_sheet(self._sheet_title)
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            workbook = Workbook()
            sheet = workbook.active
            sheet.title = self._sheet_title

        sheet.append(MIRROR_COLUMNS)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
        for col_num in range(1, len(MIRROR_COLUMNS) + 1):
            cell = sheet.cell(row=1, column=col_num)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")
            sheet.column_dimensions[get_column_letter(col_num)].width = 16
        return workbook
