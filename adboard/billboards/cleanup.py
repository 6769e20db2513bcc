"""
Expiry sweep for rented billboards.
Finds billboards whose rental dates look wrong and returns the expired ones to the available pool.
"""
from datetime import date
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from adboard.billboards.models import Billboard, BillboardStatus, CleanupLog, CleanupType
from adboard.billboards.schemas import CleanupResult, ProblemBillboard
from adboard.billboards.service import clear_rental, get_billboard
from adboard.core.logger import audit_log, logger

ISSUE_EXPIRED = "expired"
ISSUE_FUTURE_DATES = "future_dates"
ISSUE_INVALID_DATES = "invalid_dates"


def classify_billboard(billboard: Any, today: Optional[date] = None) -> Optional[ProblemBillboard]:
    """Returns the billboard's date problem, or None while its rental is running normally."""
    end = billboard.rent_end_date
    if end is None:
        return None

    today = today or date.today()
    start = billboard.rent_start_date
    days_past_end = 0

    if start is not None and start > today and end > today:
        issue = ISSUE_FUTURE_DATES
    elif end < today:
        issue = ISSUE_EXPIRED
        days_past_end = (today - end).days
    elif start is None or end < start:
        issue = ISSUE_INVALID_DATES
    else:
        return None

    return ProblemBillboard(
        billboard_id=billboard.id,
        name=billboard.name,
        contract_id=billboard.contract_id,
        customer_name=billboard.customer_name,
        rent_start_date=start,
        rent_end_date=end,
        issue_type=issue,
        days_past_end=days_past_end
    )


def find_problem_billboards(db: Session, today: Optional[date] = None) -> List[ProblemBillboard]:
    rented = db.query(Billboard).filter(
        Billboard.status == BillboardStatus.RENTED,
        Billboard.rent_end_date.isnot(None)
    ).order_by(Billboard.id).all()

    problems = []
    for billboard in rented:
        problem = classify_billboard(billboard, today)
        if problem:
            problems.append(problem)
    return problems


def log_cleanup(db: Session, count: int, cleanup_type: CleanupType, notes: Optional[str] = None) -> CleanupLog:
    entry = CleanupLog(billboards_cleaned=count, cleanup_type=cleanup_type, notes=notes)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def cleanup_expired_billboards(
    db: Session,
    today: Optional[date] = None,
    cleanup_type: CleanupType = CleanupType.MANUAL,
    issue_types: Iterable[str] = (ISSUE_EXPIRED,)
) -> CleanupResult:
    """
    Releases every rented billboard whose problem is in `issue_types` (only expired rentals by default)
    and records the sweep in the cleanup log, even when nothing was cleaned.
    """
    wanted = set(issue_types)
    targets = [p for p in find_problem_billboards(db, today) if p.issue_type in wanted]

    cleaned_ids = []
    for problem in targets:
        billboard = get_billboard(db, problem.billboard_id)
        if billboard:
            clear_rental(billboard)
            cleaned_ids.append(billboard.id)
    db.commit()

    log_cleanup(
        db,
        len(cleaned_ids),
        cleanup_type,
        notes=f"issue_types={','.join(sorted(wanted))}"
    )

    logger.info(f"Billboard cleanup ({cleanup_type.value}): released {len(cleaned_ids)} billboards")
    audit_log(
        action="billboards_cleaned",
        user="system" if cleanup_type == CleanupType.AUTOMATIC else "admin",
        resource="billboards",
        details={"billboard_ids": cleaned_ids}
    )
    return CleanupResult(cleaned=len(cleaned_ids), billboard_ids=cleaned_ids)


def cleanup_single_billboard(db: Session, billboard_id: int) -> Optional[Billboard]:
    """Releases one billboard and logs it as a manual cleanup."""
    billboard = get_billboard(db, billboard_id)
    if not billboard:
        return None

    clear_rental(billboard)
    db.commit()
    db.refresh(billboard)

    log_cleanup(db, 1, CleanupType.MANUAL, notes=f"billboard_id={billboard_id}")
    audit_log(action="billboard_cleaned", user="admin", resource=f"billboard_id={billboard_id}")
    return billboard


def get_cleanup_logs(db: Session, limit: int = 10) -> List[CleanupLog]:
    return db.query(CleanupLog).order_by(CleanupLog.cleanup_date.desc(), CleanupLog.id.desc()).limit(limit).all()
