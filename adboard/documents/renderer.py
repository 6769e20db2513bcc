"""
Printable HTML documents (invoice, printer order, installation sheet, contract, receipt).
Each render function returns one self-contained HTML string with its CSS inline and a print trigger.
Table geometry is expressed in millimetres so rows line up with the pre-printed A4 artwork.
"""
import os
from collections import OrderedDict
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from fastapi.templating import Jinja2Templates

from adboard.billboards.models import Billboard
from adboard.billing.models import Payment
from adboard.contracts.models import Contract
from adboard.contracts.service import contract_installments
from adboard.core.config import settings
from adboard.core.utils import canon_size, format_currency, parse_dimensions, round_money
from adboard.customers.models import Customer

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))
templates.env.filters["money"] = lambda value: format_currency(value or 0, settings.CURRENCY_SYMBOL)

# A4 geometry of the installation sheet artwork (mm)
PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297
TABLE_START_MM = 63.53
ROW_HEIGHT_MM = 13.818

T = TypeVar("T")


class DocumentKind(str, Enum):
    INVOICE = "invoice"
    PRINTER_ORDER = "printer-order"
    INSTALLATION = "installation"
    CONTRACT = "contract"


def paginate(rows: Sequence[T], per_page: int) -> List[List[T]]:
    """Splits rows into pages of `per_page`; no rows still yields one empty page."""
    per_page = max(1, per_page)
    pages = [list(rows[i:i + per_page]) for i in range(0, len(rows), per_page)]
    return pages or [[]]


def pad_rows(rows: Sequence[T], size: int) -> List[Optional[T]]:
    """Pads a table with empty rows up to `size`; longer tables are kept whole."""
    padded: List[Optional[T]] = list(rows)
    padded.extend([None] * max(0, size - len(padded)))
    return padded


def row_top_mm(index: int) -> float:
    return round(TABLE_START_MM + index * ROW_HEIGHT_MM, 3)


def _company() -> Dict[str, Any]:
    return {
        "name": settings.COMPANY_NAME,
        "address": settings.COMPANY_ADDRESS,
        "currency": settings.CURRENCY_SYMBOL,
    }


def _render(template_name: str, **context: Any) -> str:
    context.setdefault("company", _company())
    context.setdefault("issued_on", date.today())
    return templates.get_template(template_name).render(**context)


def _billboard_row(billboard: Billboard) -> Dict[str, Any]:
    return {
        "id": billboard.id,
        "name": billboard.name,
        "city": billboard.city or "",
        "municipality": billboard.municipality or "",
        "landmark": billboard.landmark or "",
        "size": billboard.size,
        "level": billboard.level,
        "faces": billboard.faces_count,
        "image_url": billboard.image_url,
        "map_url": f"https://www.google.com/maps?q={billboard.coordinates}" if billboard.coordinates else None,
    }


def printer_order_rows(billboards: Sequence[Billboard]) -> List[Dict[str, Any]]:
    """Print quantities grouped by size: billboards, faces and square metres to produce."""
    groups: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for billboard in billboards:
        size = canon_size(billboard.size)
        dims = parse_dimensions(size)
        face_area = dims[0] * dims[1] if dims else 0.0
        faces = billboard.faces_count or 1

        group = groups.setdefault(size, {"size": size, "quantity": 0, "faces": 0, "face_area": face_area, "total_area": 0.0})
        group["quantity"] += 1
        group["faces"] += faces
        group["total_area"] = round_money(group["total_area"] + face_area * faces)
    return list(groups.values())


def render_invoice(contract: Contract, billboards: Sequence[Billboard]) -> str:
    return _render(
        "documents/invoice.html",
        title=f"Invoice - Contract #{contract.contract_number}",
        contract=contract,
        rows=[_billboard_row(b) for b in billboards],
        installments=contract_installments(contract)
    )


def render_printer_order(contract: Contract, billboards: Sequence[Billboard]) -> str:
    rows = printer_order_rows(billboards)
    return _render(
        "documents/printer_order.html",
        title=f"Printer order - Contract #{contract.contract_number}",
        contract=contract,
        rows=rows,
        total_faces=sum(r["faces"] for r in rows),
        total_area=round_money(sum(r["total_area"] for r in rows))
    )


def render_installation_sheet(contract: Contract, billboards: Sequence[Billboard]) -> str:
    rows = [_billboard_row(b) for b in billboards]
    pages = []
    for page_rows in paginate(rows, settings.INSTALLATION_ROWS_PER_PAGE):
        pages.append([{**row, "top_mm": row_top_mm(i)} for i, row in enumerate(page_rows)])
    return _render(
        "documents/installation.html",
        title=f"Installation sheet - Contract #{contract.contract_number}",
        contract=contract,
        pages=pages,
        page_width_mm=PAGE_WIDTH_MM,
        page_height_mm=PAGE_HEIGHT_MM,
        row_height_mm=ROW_HEIGHT_MM
    )


def render_contract(contract: Contract, billboards: Sequence[Billboard]) -> str:
    return _render(
        "documents/contract.html",
        title=f"Contract #{contract.contract_number}",
        contract=contract,
        rows=pad_rows([_billboard_row(b) for b in billboards], settings.CONTRACT_FIXED_ROWS),
        installments=contract_installments(contract)
    )


def render_receipt(
    payment: Payment,
    customer: Customer,
    contract: Optional[Contract],
    remaining: float
) -> str:
    return _render(
        "documents/receipt.html",
        title=f"Receipt #{payment.id}",
        payment=payment,
        customer=customer,
        contract=contract,
        remaining=remaining
    )


RENDERERS = {
    DocumentKind.INVOICE: render_invoice,
    DocumentKind.PRINTER_ORDER: render_printer_order,
    DocumentKind.INSTALLATION: render_installation_sheet,
    DocumentKind.CONTRACT: render_contract,
}


def render_contract_document(kind: DocumentKind, contract: Contract, billboards: Sequence[Billboard]) -> str:
    return RENDERERS[kind](contract, billboards)
