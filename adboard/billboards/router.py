"""
FastAPI Router for the billboard inventory and the expiry sweep.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from adboard.billboards.cleanup import (
    cleanup_expired_billboards,
    cleanup_single_billboard,
    find_problem_billboards,
    get_cleanup_logs,
)
from adboard.billboards.export import export_billboards_to_excel
from adboard.billboards.models import BillboardStatus
from adboard.billboards.schemas import (
    BillboardCreate,
    BillboardResponse,
    BillboardUpdate,
    CleanupLogResponse,
    CleanupResult,
    ImportResult,
    ProblemBillboard,
)
from adboard.billboards.service import (
    create_billboard,
    import_billboards,
    list_billboards,
    sort_by_size_order,
    update_billboard,
)
from adboard.core.database import get_db
from adboard.core.utils import canon_size
from adboard.installation.service import list_sizes

router = APIRouter(tags=["Billboards"])


@router.get("/", response_model=List[BillboardResponse])
def get_billboards(
    status: Optional[BillboardStatus] = None,
    city: Optional[str] = None,
    size: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
    available_only: bool = False,
    db: Session = Depends(get_db)
):
    return list_billboards(db, status, city, size, level, search, available_only)


@router.post("/", response_model=BillboardResponse, status_code=201)
def add_billboard(data: BillboardCreate, db: Session = Depends(get_db)):
    return create_billboard(db, data)


@router.post("/import", response_model=ImportResult)
def import_records(
    records: List[Dict[str, Any]] = Body(..., description="Billboard records in any supported field spelling"),
    db: Session = Depends(get_db)
) -> ImportResult:
    return import_billboards(db, records)


@router.get("/export.xlsx")
def export_billboards(available_only: bool = False, db: Session = Depends(get_db)):
    """Inventory as an Excel workbook, ordered by the size catalogue then id."""
    size_order = {canon_size(s.name): s.sort_order for s in list_sizes(db)}
    billboards = sort_by_size_order(list_billboards(db, available_only=available_only), size_order)
    output = export_billboards_to_excel(billboards)
    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="billboards.xlsx"'}
    )


@router.get("/cleanup/problems", response_model=List[ProblemBillboard])
def get_problem_billboards(db: Session = Depends(get_db)):
    return find_problem_billboards(db)


@router.post("/cleanup", response_model=CleanupResult)
def run_cleanup(db: Session = Depends(get_db)) -> CleanupResult:
    return cleanup_expired_billboards(db)


@router.get("/cleanup/logs", response_model=List[CleanupLogResponse])
def get_logs(limit: int = 10, db: Session = Depends(get_db)):
    return get_cleanup_logs(db, limit)


@router.patch("/{billboard_id}", response_model=BillboardResponse)
def patch_billboard(billboard_id: int, data: BillboardUpdate, db: Session = Depends(get_db)):
    billboard = update_billboard(db, billboard_id, data)
    if not billboard:
        raise HTTPException(status_code=404, detail="Billboard not found")
    return billboard


@router.post("/{billboard_id}/release", response_model=BillboardResponse)
def release(billboard_id: int, db: Session = Depends(get_db)):
    billboard = cleanup_single_billboard(db, billboard_id)
    if not billboard:
        raise HTTPException(status_code=404, detail="Billboard not found")
    return billboard
