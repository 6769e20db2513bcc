"""
Business logic for the billboard inventory: availability, filtering, rental linkage and bulk import.
"""
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from adboard.billboards.adapter import normalize_billboard
from adboard.billboards.models import Billboard, BillboardStatus
from adboard.billboards.schemas import BillboardCreate, BillboardUpdate, ImportResult, ImportRowError
from adboard.contracts.lifecycle import is_contract_expired
from adboard.contracts.models import Contract
from adboard.core.logger import audit_log, logger
from adboard.core.utils import canon_level, canon_size


def is_billboard_available(billboard: Any, today: Optional[date] = None) -> bool:
    """
    Maintenance is never available; an unlinked billboard always is;
    a linked one frees up once its rental end date has passed.
    """
    if billboard.status == BillboardStatus.MAINTENANCE:
        return False
    if not billboard.contract_id:
        return True
    if not billboard.rent_end_date:
        return False
    return is_contract_expired(billboard.rent_end_date, today)


def get_billboard(db: Session, billboard_id: int) -> Optional[Billboard]:
    return db.query(Billboard).filter(Billboard.id == billboard_id).first()


def get_billboards_by_ids(db: Session, billboard_ids: Sequence[int]) -> List[Billboard]:
    """Loads billboards in the requested order. Raises ValueError naming any unknown id."""
    wanted = list(dict.fromkeys(billboard_ids))
    if not wanted:
        return []

    found = {b.id: b for b in db.query(Billboard).filter(Billboard.id.in_(wanted)).all()}
    missing = [str(i) for i in wanted if i not in found]
    if missing:
        raise ValueError(f"Billboards not found: {', '.join(missing)}")
    return [found[i] for i in wanted]


def list_billboards(
    db: Session,
    status: Optional[BillboardStatus] = None,
    city: Optional[str] = None,
    size: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
    available_only: bool = False,
    today: Optional[date] = None
) -> List[Billboard]:
    query = db.query(Billboard)
    if status:
        query = query.filter(Billboard.status == status)
    if city:
        query = query.filter(Billboard.city == city)
    if size:
        query = query.filter(Billboard.size == canon_size(size))
    if level:
        query = query.filter(Billboard.level == canon_level(level))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Billboard.name.ilike(pattern),
            Billboard.landmark.ilike(pattern),
            Billboard.municipality.ilike(pattern),
            Billboard.customer_name.ilike(pattern)
        ))

    billboards = query.order_by(Billboard.id).all()
    if available_only:
        billboards = [b for b in billboards if is_billboard_available(b, today)]
    return billboards


def create_billboard(db: Session, data: BillboardCreate) -> Billboard:
    billboard = Billboard(**data.model_dump())
    db.add(billboard)
    db.commit()
    db.refresh(billboard)

    audit_log(action="billboard_created", user="admin", resource=f"billboard_id={billboard.id}")
    return billboard


def update_billboard(db: Session, billboard_id: int, data: BillboardUpdate) -> Optional[Billboard]:
    billboard = get_billboard(db, billboard_id)
    if not billboard:
        return None

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(billboard, field, value)

    db.commit()
    db.refresh(billboard)

    audit_log(
        action="billboard_updated",
        user="admin",
        resource=f"billboard_id={billboard.id}",
        details=data.model_dump(mode="json", exclude_unset=True)
    )
    return billboard


def link_to_contract(
    billboard: Billboard,
    contract_id: int,
    customer_name: str,
    start_date: date,
    end_date: date
) -> None:
    """Marks a billboard as rented by a contract. The caller commits."""
    billboard.status = BillboardStatus.RENTED
    billboard.contract_id = contract_id
    billboard.customer_name = customer_name
    billboard.rent_start_date = start_date
    billboard.rent_end_date = end_date


def clear_rental(billboard: Billboard) -> None:
    """Resets a billboard to available and drops the rental linkage. The caller commits."""
    billboard.status = BillboardStatus.AVAILABLE
    billboard.contract_id = None
    billboard.customer_name = None
    billboard.rent_start_date = None
    billboard.rent_end_date = None


def import_billboards(db: Session, records: Iterable[Mapping[str, Any]]) -> ImportResult:
    """
    Upserts loosely-typed billboard records.
    Records carrying a known id update that billboard; the rest are inserted.
    Invalid records are reported by index and skipped.
    """
    result = ImportResult()
    pending: Dict[int, Billboard] = {}

    for index, raw in enumerate(records):
        try:
            record = normalize_billboard(raw)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            result.errors.append(ImportRowError(index=index, message=f"{field}: {first.get('msg')}"))
            continue

        values: Dict[str, Any] = record.model_dump(exclude={"id"})
        if record.contract_id and not db.query(Contract.id).filter(Contract.id == record.contract_id).first():
            values["contract_id"] = None

        billboard = None
        if record.id is not None:
            billboard = pending.get(record.id) or get_billboard(db, record.id)
        if billboard:
            for field, value in values.items():
                setattr(billboard, field, value)
            result.updated += 1
        else:
            billboard = Billboard(**values)
            if record.id is not None:
                billboard.id = record.id
                pending[record.id] = billboard
            db.add(billboard)
            result.created += 1

    db.commit()

    logger.info(f"Billboard import: created={result.created} updated={result.updated} errors={len(result.errors)}")
    audit_log(
        action="billboards_imported",
        user="admin",
        resource="billboards",
        details={"created": result.created, "updated": result.updated, "errors": len(result.errors)}
    )
    return result


def sort_by_size_order(billboards: Iterable[Billboard], size_order: Mapping[str, int]) -> List[Billboard]:
    """Catalogue size order first (unknown sizes last), then id."""
    return sorted(billboards, key=lambda b: (size_order.get(canon_size(b.size), 999), b.id))
