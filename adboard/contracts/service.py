"""
Business logic for the contract lifecycle: preview, creation, edition, renewal and expiry.
Every write recomputes the full cost breakdown and re-checks the installment plan before touching the database.
"""
import json
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from adboard.billboards.models import Billboard, BillboardStatus
from adboard.billboards.service import clear_rental, get_billboards_by_ids, is_billboard_available, link_to_contract
from adboard.contracts.calculator import calculate_contract_totals
from adboard.contracts.lifecycle import duration_in_months, is_contract_expired, is_near_expiry
from adboard.contracts.models import Contract, ContractStatus, DiscountType
from adboard.contracts.scheduler import calculate_due_date, default_plan, validate_installments
from adboard.contracts.schemas import (
    BillboardPriceLine,
    ContractCreate,
    ContractPreview,
    ContractStats,
    ContractUpdate,
    ExpireResult,
    Installment,
    RenewRequest,
)
from adboard.core.config import settings
from adboard.core.logger import audit_log, logger
from adboard.core.state import LookupState
from adboard.core.utils import round_money
from adboard.customers.service import find_or_create_customer
from adboard.installation.service import calculate_installation_cost, calculate_print_cost
from adboard.pricing.schemas import DurationMode

PRICING_FIELDS = (
    "billboard_ids",
    "pricing_category",
    "start_date",
    "end_date",
    "duration_mode",
    "duration_value",
    "rent_cost",
    "discount_type",
    "discount_value",
    "print_price_per_meter",
    "operating_fee_rate",
)


class InvalidInstallmentPlan(ValueError):
    """The installment plan does not add up to the contract total."""


def contract_billboard_ids(contract: Contract) -> List[int]:
    return [int(i) for i in json.loads(contract.billboard_ids or "[]")]


def contract_installments(contract: Contract) -> List[Installment]:
    return [Installment(**item) for item in json.loads(contract.installments or "[]")]


def resolve_end_date(start_date: date, duration_mode: DurationMode, duration_value: int) -> date:
    if duration_mode == DurationMode.DAYS:
        return start_date + timedelta(days=duration_value)
    return start_date + relativedelta(months=duration_value)


def duration_from_dates(start_date: date, end_date: date, duration_mode: DurationMode) -> int:
    if duration_mode == DurationMode.DAYS:
        return max(1, (end_date - start_date).days)
    return duration_in_months(start_date, end_date)


def resolve_period(
    start_date: date,
    duration_mode: DurationMode,
    duration_value: int,
    end_date: Optional[date] = None
) -> Tuple[date, int]:
    """
    Returns (end_date, duration_value). Without an end date it is derived from the duration;
    an explicit end date wins and the priced duration is derived from the dates instead.
    """
    if end_date is None:
        return resolve_end_date(start_date, duration_mode, duration_value), duration_value
    _check_dates(start_date, end_date)
    return end_date, duration_from_dates(start_date, end_date, duration_mode)


def price_lines(
    billboards: Iterable[Any],
    state: LookupState,
    category: str,
    duration_mode: DurationMode,
    duration_value: int
) -> List[BillboardPriceLine]:
    resolver = state.resolver()
    lines = []
    for billboard in billboards:
        quote = resolver.quote(billboard, category, duration_mode, duration_value)
        lines.append(BillboardPriceLine(
            billboard_id=billboard.id,
            name=billboard.name,
            size=billboard.size,
            level=billboard.level,
            unit_price=quote.unit_price,
            amount=quote.amount,
            source=quote.source
        ))
    return lines


def build_preview(
    billboards: Sequence[Any],
    state: LookupState,
    pricing_category: str,
    start_date: date,
    end_date: date,
    duration_mode: DurationMode,
    duration_value: int,
    rent_cost: float = 0.0,
    discount_type: DiscountType = DiscountType.PERCENT,
    discount_value: float = 0.0,
    print_price_per_meter: float = 0.0,
    operating_fee_rate: Optional[float] = None
) -> ContractPreview:
    """Prices, installation and totals for a set of billboards. Reads only in-memory lookups."""
    lines = price_lines(billboards, state, pricing_category, duration_mode, duration_value)
    estimated_total = round_money(sum(line.amount for line in lines)) if duration_value > 0 else 0.0
    installation = calculate_installation_cost(billboards, state.size_prices)
    print_cost = calculate_print_cost(billboards, print_price_per_meter)

    rate = settings.DEFAULT_OPERATING_FEE_RATE if operating_fee_rate is None else operating_fee_rate
    totals = calculate_contract_totals(
        estimated_total=estimated_total,
        rent_cost=rent_cost,
        discount_type=discount_type,
        discount_value=discount_value,
        installation_cost=installation.total_installation_cost,
        operating_fee_rate=rate,
        print_cost=print_cost
    )
    return ContractPreview(
        end_date=end_date,
        duration_value=duration_value,
        lines=lines,
        estimated_total=estimated_total,
        installation=installation,
        totals=totals
    )


def check_availability(
    billboards: Iterable[Billboard],
    allowed_contracts: Iterable[int] = (),
    today: Optional[date] = None
) -> None:
    """Raises ValueError naming every billboard that cannot be rented."""
    allowed: Set[int] = set(allowed_contracts)
    blocked = []
    for billboard in billboards:
        if billboard.status == BillboardStatus.MAINTENANCE:
            blocked.append(f"{billboard.name} (maintenance)")
        elif billboard.contract_id in allowed:
            continue
        elif not is_billboard_available(billboard, today):
            blocked.append(f"{billboard.name} (rented until {billboard.rent_end_date or 'unknown'})")
    if blocked:
        raise ValueError(f"Billboards not available: {', '.join(blocked)}")


def relink_billboards(
    contract: Contract,
    billboards: Iterable[Billboard],
    today: Optional[date] = None
) -> List[int]:
    """
    Points the contract's billboards back at it after an edit.
    Billboards held by another contract (a renewal or a later booking) keep that link.
    A contract past its end date only refreshes the dates of billboards it still holds.
    """
    can_rent = contract.status == ContractStatus.ACTIVE and not is_contract_expired(contract.end_date, today)

    linked = []
    for billboard in billboards:
        if billboard.contract_id == contract.id or (billboard.contract_id is None and can_rent):
            link_to_contract(billboard, contract.id, contract.customer_name, contract.start_date, contract.end_date)
            linked.append(billboard.id)
    return linked


def prepare_plan(
    installments: Optional[Sequence[Installment]],
    final_total: float,
    start_date: date,
    end_date: date
) -> List[Installment]:
    """
    Defaults to one on-signing payment; fills missing due dates; rejects plans that do not
    match the total with InvalidInstallmentPlan.
    """
    if installments is None:
        return default_plan(final_total, start_date, end_date)

    plan = []
    for index, inst in enumerate(installments):
        item = inst.model_copy()
        if item.due_date is None:
            item.due_date = calculate_due_date(item.payment_type, index, start_date, end_date)
        plan.append(item)

    validation = validate_installments(plan, final_total)
    if not validation.is_valid:
        raise InvalidInstallmentPlan(validation.message)
    return plan


def _dump_plan(plan: Sequence[Installment]) -> str:
    return json.dumps([inst.model_dump(mode="json") for inst in plan])


def _apply_costs(contract: Contract, params: Dict[str, Any], preview: ContractPreview) -> None:
    totals = preview.totals
    contract.pricing_category = params["pricing_category"]
    contract.start_date = params["start_date"]
    contract.end_date = params["end_date"]
    contract.duration_mode = DurationMode(params["duration_mode"]).value
    contract.duration_value = params["duration_value"]
    contract.rent_cost = params["rent_cost"]
    contract.discount_type = params["discount_type"]
    contract.discount_value = params["discount_value"]
    contract.print_price_per_meter = params["print_price_per_meter"]

    contract.estimated_total = preview.estimated_total
    contract.base_rent_total = totals.base_total
    contract.discount_amount = totals.discount_amount
    contract.installation_cost = totals.installation_cost
    contract.installation_details = json.dumps([line.model_dump() for line in preview.installation.details])
    contract.print_cost = totals.print_cost
    contract.operating_fee_rate = totals.operating_fee_rate
    contract.operating_fee = totals.operating_fee
    contract.rental_cost_only = totals.rental_cost_only
    contract.final_total = totals.final_total


def _check_dates(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValueError("End date cannot be before the start date")


def next_contract_number(db: Session) -> int:
    return (db.query(func.max(Contract.contract_number)).scalar() or 0) + 1


def get_contract(db: Session, contract_id: int) -> Optional[Contract]:
    return db.query(Contract).filter(Contract.id == contract_id).first()


def list_contracts(
    db: Session,
    status: Optional[ContractStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None
) -> List[Contract]:
    query = db.query(Contract)
    if status:
        query = query.filter(Contract.status == status)
    if customer_id:
        query = query.filter(Contract.customer_id == customer_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Contract.customer_name.ilike(pattern), Contract.ad_type.ilike(pattern)))
    return query.order_by(Contract.contract_number.desc()).all()


def preview_contract(db: Session, data: ContractCreate, state: LookupState) -> ContractPreview:
    billboards = get_billboards_by_ids(db, data.billboard_ids)
    end_date, duration_value = resolve_period(data.start_date, data.duration_mode, data.duration_value, data.end_date)
    return build_preview(
        billboards,
        state,
        pricing_category=data.pricing_category,
        start_date=data.start_date,
        end_date=end_date,
        duration_mode=data.duration_mode,
        duration_value=duration_value,
        rent_cost=data.rent_cost,
        discount_type=data.discount_type,
        discount_value=data.discount_value,
        print_price_per_meter=data.print_price_per_meter,
        operating_fee_rate=data.operating_fee_rate
    )


def _store_new_contract(
    db: Session,
    customer_name: str,
    customer_id: Optional[int],
    ad_type: Optional[str],
    billboards: Sequence[Billboard],
    params: Dict[str, Any],
    preview: ContractPreview,
    plan: Sequence[Installment],
    renewed_from_id: Optional[int] = None
) -> Contract:
    customer = find_or_create_customer(db, customer_name, customer_id)

    contract = Contract(
        contract_number=next_contract_number(db),
        customer_id=customer.id,
        customer_name=customer.name,
        ad_type=ad_type,
        billboard_ids=json.dumps([b.id for b in billboards]),
        installments=_dump_plan(plan),
        status=ContractStatus.ACTIVE,
        renewed_from_id=renewed_from_id
    )
    _apply_costs(contract, params, preview)
    db.add(contract)
    db.flush()

    for billboard in billboards:
        link_to_contract(billboard, contract.id, contract.customer_name, contract.start_date, contract.end_date)

    db.commit()
    db.refresh(contract)
    return contract


def create_contract(
    db: Session,
    data: ContractCreate,
    state: LookupState,
    correlation_id: Optional[str] = None,
    today: Optional[date] = None
) -> Contract:
    """
    Creates a contract and rents its billboards.
    Raises ValueError for unknown or unavailable billboards and InvalidInstallmentPlan
    for a plan that does not match the total; nothing is written in either case.
    """
    billboards = get_billboards_by_ids(db, data.billboard_ids)
    check_availability(billboards, today=today)

    end_date, duration_value = resolve_period(data.start_date, data.duration_mode, data.duration_value, data.end_date)

    params = {
        "pricing_category": data.pricing_category,
        "start_date": data.start_date,
        "end_date": end_date,
        "duration_mode": data.duration_mode,
        "duration_value": duration_value,
        "rent_cost": data.rent_cost,
        "discount_type": data.discount_type,
        "discount_value": data.discount_value,
        "print_price_per_meter": data.print_price_per_meter,
        "operating_fee_rate": data.operating_fee_rate,
    }
    preview = build_preview(billboards, state, **params)
    plan = prepare_plan(data.installments, preview.totals.final_total, data.start_date, end_date)

    contract = _store_new_contract(
        db, data.customer_name, data.customer_id, data.ad_type, billboards, params, preview, plan
    )

    logger.info(f"Contract created: number={contract.contract_number} total={contract.final_total}")
    audit_log(
        action="contract_created",
        user="admin",
        resource=f"contract_id={contract.id}",
        details={
            "contract_number": contract.contract_number,
            "billboard_ids": [b.id for b in billboards],
            "final_total": contract.final_total,
            "correlation_id": correlation_id
        }
    )
    return contract


def update_contract(
    db: Session,
    contract_id: int,
    data: ContractUpdate,
    state: LookupState,
    today: Optional[date] = None
) -> Optional[Contract]:
    """
    Edits a contract. Pricing inputs trigger a full recomputation of the totals;
    removed billboards are released and added ones rented, unless another contract has since
    taken them. An explicit end date re-derives the priced duration. The installment plan
    (new or existing) must still match the total.
    """
    contract = get_contract(db, contract_id)
    if not contract:
        return None

    changes = data.model_dump(exclude_unset=True)
    current_ids = contract_billboard_ids(contract)
    new_ids = data.billboard_ids if data.billboard_ids is not None else current_ids

    billboards = get_billboards_by_ids(db, new_ids)
    check_availability([b for b in billboards if b.id not in current_ids], allowed_contracts=[contract.id], today=today)

    start_date = data.start_date or contract.start_date
    duration_mode = data.duration_mode or DurationMode(contract.duration_mode)
    duration_value = contract.duration_value if data.duration_value is None else data.duration_value
    if data.end_date is not None:
        end_date, duration_value = resolve_period(start_date, duration_mode, duration_value, data.end_date)
    elif any(k in changes for k in ("start_date", "duration_mode", "duration_value")):
        end_date, duration_value = resolve_period(start_date, duration_mode, duration_value)
    else:
        end_date = contract.end_date
    _check_dates(start_date, end_date)

    pricing_changed = any(k in changes for k in PRICING_FIELDS)
    preview = None
    params: Dict[str, Any] = {}
    final_total = contract.final_total
    if pricing_changed:
        params = {
            "pricing_category": data.pricing_category or contract.pricing_category,
            "start_date": start_date,
            "end_date": end_date,
            "duration_mode": duration_mode,
            "duration_value": duration_value,
            "rent_cost": contract.rent_cost if data.rent_cost is None else data.rent_cost,
            "discount_type": data.discount_type or contract.discount_type,
            "discount_value": contract.discount_value if data.discount_value is None else data.discount_value,
            "print_price_per_meter": (
                contract.print_price_per_meter if data.print_price_per_meter is None else data.print_price_per_meter
            ),
            "operating_fee_rate": (
                contract.operating_fee_rate if data.operating_fee_rate is None else data.operating_fee_rate
            ),
        }
        preview = build_preview(billboards, state, **params)
        final_total = preview.totals.final_total

    installments = data.installments if data.installments is not None else contract_installments(contract)
    plan = prepare_plan(installments, final_total, start_date, end_date)

    if data.customer_name:
        contract.customer_name = data.customer_name.strip()
    if "ad_type" in changes:
        contract.ad_type = data.ad_type
    if preview is not None:
        _apply_costs(contract, params, preview)
    contract.billboard_ids = json.dumps(new_ids)
    contract.installments = _dump_plan(plan)

    removed = [i for i in current_ids if i not in new_ids]
    if removed:
        for billboard in db.query(Billboard).filter(Billboard.id.in_(removed)).all():
            if billboard.contract_id == contract.id:
                clear_rental(billboard)

    linked = relink_billboards(contract, billboards, today)

    db.commit()
    db.refresh(contract)

    audit_log(
        action="contract_updated",
        user="admin",
        resource=f"contract_id={contract.id}",
        details={
            "fields": sorted(changes),
            "released_billboards": removed,
            "linked_billboards": linked,
            "final_total": contract.final_total
        }
    )
    return contract


def renew_contract(
    db: Session,
    contract_id: int,
    data: RenewRequest,
    state: LookupState,
    today: Optional[date] = None
) -> Optional[Contract]:
    """
    Creates a follow-up contract over the same billboards.
    Dates default to today plus the original length in months; with keep_cost the
    original final total becomes the new rent (no discount), otherwise prices are re-estimated.
    """
    original = get_contract(db, contract_id)
    if not original:
        return None

    today = today or date.today()
    start_date = data.start_date or today
    if data.end_date:
        end_date = data.end_date
    else:
        end_date = start_date + relativedelta(months=duration_in_months(original.start_date, original.end_date))
    _check_dates(start_date, end_date)

    billboards = get_billboards_by_ids(db, contract_billboard_ids(original))
    check_availability(billboards, allowed_contracts=[original.id], today=today)

    params = {
        "pricing_category": original.pricing_category,
        "start_date": start_date,
        "end_date": end_date,
        "duration_mode": DurationMode.MONTHS,
        "duration_value": duration_in_months(start_date, end_date),
        "rent_cost": original.final_total if data.keep_cost else 0.0,
        "discount_type": DiscountType.PERCENT if data.keep_cost else original.discount_type,
        "discount_value": 0.0 if data.keep_cost else original.discount_value,
        "print_price_per_meter": original.print_price_per_meter,
        "operating_fee_rate": original.operating_fee_rate,
    }
    preview = build_preview(billboards, state, **params)
    plan = default_plan(preview.totals.final_total, start_date, end_date)

    contract = _store_new_contract(
        db,
        original.customer_name,
        original.customer_id,
        original.ad_type,
        billboards,
        params,
        preview,
        plan,
        renewed_from_id=original.id
    )

    audit_log(
        action="contract_renewed",
        user="admin",
        resource=f"contract_id={contract.id}",
        details={"renewed_from": original.id, "keep_cost": data.keep_cost, "final_total": contract.final_total}
    )
    return contract


def expire_contracts(db: Session, today: Optional[date] = None) -> ExpireResult:
    """Marks active contracts past their end date as expired and releases the billboards they still hold."""
    today = today or date.today()
    overdue = db.query(Contract).filter(
        Contract.status == ContractStatus.ACTIVE,
        Contract.end_date < today
    ).all()

    released: List[int] = []
    for contract in overdue:
        contract.status = ContractStatus.EXPIRED
        for billboard in db.query(Billboard).filter(Billboard.contract_id == contract.id).all():
            clear_rental(billboard)
            released.append(billboard.id)
    db.commit()

    expired_ids = [c.id for c in overdue]
    if expired_ids:
        logger.info(f"Expired {len(expired_ids)} contracts, released {len(released)} billboards")
        audit_log(
            action="contracts_expired",
            user="system",
            resource="contracts",
            details={"contract_ids": expired_ids, "billboard_ids": released}
        )
    return ExpireResult(expired_contracts=expired_ids, released_billboards=released)


def contract_stats(db: Session, today: Optional[date] = None) -> ContractStats:
    today = today or date.today()
    contracts = db.query(Contract).all()

    active = expired = near = 0
    for contract in contracts:
        if contract.status == ContractStatus.EXPIRED or is_contract_expired(contract.end_date, today):
            expired += 1
            continue
        active += 1
        if is_near_expiry(contract.end_date, today):
            near += 1

    return ContractStats(
        total=len(contracts),
        active=active,
        expired=expired,
        near_expiry=near,
        total_value=round_money(sum(c.final_total for c in contracts))
    )
