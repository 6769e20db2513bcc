"""
Excel export of the billboard inventory.
"""
import io
from datetime import date
from typing import Iterable, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from adboard.billboards.models import Billboard

# (header, attribute, column width)
COLUMNS: List[Tuple[str, str, int]] = [
    ("ID", "id", 10),
    ("Name", "name", 18),
    ("City", "city", 14),
    ("Municipality", "municipality", 16),
    ("Landmark", "landmark", 24),
    ("Size", "size", 10),
    ("Level", "level", 8),
    ("Faces", "faces_count", 8),
    ("Status", "status", 12),
    ("Contract", "contract_id", 10),
    ("Customer", "customer_name", 20),
    ("Rent Start", "rent_start_date", 12),
    ("Rent End", "rent_end_date", 12),
    ("Type", "billboard_type", 12),
    ("Coordinates", "coordinates", 22),
    ("Image URL", "image_url", 30),
]

HEADER_FILL = PatternFill(start_color="1F3864", end_color="1F3864", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def _cell_value(billboard: Billboard, attribute: str):
    value = getattr(billboard, attribute)
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value if value is not None else ""


def export_billboards_to_excel(billboards: Iterable[Billboard], title: str = "Billboards") -> io.BytesIO:
    """Writes one row per billboard, in the given order, and returns the workbook bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = title

    for col, (header, _, width) in enumerate(COLUMNS, start=1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")
        ws.column_dimensions[get_column_letter(col)].width = width

    for row, billboard in enumerate(billboards, start=2):
        for col, (_, attribute, _) in enumerate(COLUMNS, start=1):
            ws.cell(row=row, column=col, value=_cell_value(billboard, attribute))

    ws.freeze_panes = "A2"
    ws.auto_filter.ref = f"A1:{get_column_letter(len(COLUMNS))}{max(ws.max_row, 1)}"

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output
