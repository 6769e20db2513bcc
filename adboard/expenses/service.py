"""
Operating-fee pool: each contract contributes its operating fee, rounded to whole currency units.
Excluded contracts and contracts inside a closed period or number range no longer count;
withdrawals are subtracted from what is left.
"""
from datetime import date
from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from adboard.contracts.models import Contract
from adboard.core.logger import audit_log, logger
from adboard.core.utils import round_half_up, round_money
from adboard.expenses.models import ClosureType, FeeExclusion, FeeWithdrawal, PeriodClosure
from adboard.expenses.schemas import ClosureCreate, PoolContract, PoolSummary, WithdrawalCreate


def contract_fee(contract: Contract) -> float:
    """Operating fee of one contract on its rental share, rounded half up to a whole amount."""
    return round_half_up((contract.rental_cost_only or 0.0) * (contract.operating_fee_rate or 0.0) / 100)


def _in_bounds(
    contract: Contract,
    closure_type: ClosureType,
    period_start: Optional[date],
    period_end: Optional[date],
    number_start: Optional[int],
    number_end: Optional[int]
) -> bool:
    if closure_type == ClosureType.PERIOD:
        if period_start is None or period_end is None:
            return False
        return period_start <= contract.start_date <= period_end
    if number_start is None or number_end is None:
        return False
    return number_start <= contract.contract_number <= number_end


def in_closure(contract: Contract, closure: PeriodClosure) -> bool:
    return _in_bounds(
        contract,
        closure.closure_type,
        closure.period_start,
        closure.period_end,
        closure.contract_start,
        closure.contract_end
    )


def is_closed(contract: Contract, closures: Iterable[PeriodClosure]) -> bool:
    return any(in_closure(contract, closure) for closure in closures)


def excluded_contract_ids(db: Session) -> Set[int]:
    return {row.contract_id for row in db.query(FeeExclusion).filter(FeeExclusion.excluded.is_(True)).all()}


def list_closures(db: Session) -> List[PeriodClosure]:
    return db.query(PeriodClosure).order_by(PeriodClosure.created_at.desc(), PeriodClosure.id.desc()).all()


def list_withdrawals(db: Session) -> List[FeeWithdrawal]:
    return db.query(FeeWithdrawal).order_by(FeeWithdrawal.withdrawn_on.desc(), FeeWithdrawal.id.desc()).all()


def pool_contracts(db: Session) -> List[PoolContract]:
    """Every contract, newest number first, with its fee and whether it still counts."""
    contracts = db.query(Contract).order_by(Contract.contract_number.desc()).all()
    excluded = excluded_contract_ids(db)
    closures = list_closures(db)

    return [
        PoolContract(
            contract_id=contract.id,
            contract_number=contract.contract_number,
            customer_name=contract.customer_name,
            start_date=contract.start_date,
            rental_cost_only=contract.rental_cost_only,
            operating_fee_rate=contract.operating_fee_rate,
            fee=contract_fee(contract),
            excluded=contract.id in excluded,
            closed=is_closed(contract, closures)
        )
        for contract in contracts
    ]


def pool_summary(db: Session) -> PoolSummary:
    entries = pool_contracts(db)
    counted = [entry for entry in entries if not entry.excluded and not entry.closed]
    pool_total = round_money(sum(entry.fee for entry in counted))
    withdrawn = round_money(sum(w.amount for w in db.query(FeeWithdrawal).all()))

    return PoolSummary(
        total_contracts=len(entries),
        counted_contracts=len(counted),
        pool_total=pool_total,
        total_withdrawn=withdrawn,
        remaining=max(0.0, round_money(pool_total - withdrawn))
    )


def set_exclusion(db: Session, contract_id: int, excluded: bool) -> FeeExclusion:
    """Adds or clears a contract's exclusion flag. Raises ValueError for unknown contracts."""
    if not db.query(Contract.id).filter(Contract.id == contract_id).first():
        raise ValueError(f"Contract {contract_id} not found")

    flag = db.query(FeeExclusion).filter(FeeExclusion.contract_id == contract_id).first()
    if flag is None:
        flag = FeeExclusion(contract_id=contract_id)
        db.add(flag)
    flag.excluded = excluded
    db.commit()
    db.refresh(flag)

    audit_log(
        action="fee_exclusion_set",
        user="admin",
        resource=f"contract_id={contract_id}",
        details={"excluded": excluded}
    )
    return flag


def record_withdrawal(db: Session, data: WithdrawalCreate, today: Optional[date] = None) -> FeeWithdrawal:
    withdrawal = FeeWithdrawal(
        amount=data.amount,
        withdrawn_on=data.withdrawn_on or today or date.today(),
        method=data.method,
        note=data.note
    )
    db.add(withdrawal)
    db.commit()
    db.refresh(withdrawal)

    logger.info(f"Fee pool withdrawal: id={withdrawal.id} amount={withdrawal.amount}")
    audit_log(
        action="fee_withdrawal_recorded",
        user="admin",
        resource=f"withdrawal_id={withdrawal.id}",
        details={"amount": withdrawal.amount, "method": withdrawal.method}
    )
    return withdrawal


def close_period(db: Session, data: ClosureCreate, today: Optional[date] = None) -> PeriodClosure:
    """
    Freezes the fees of the open contracts inside the requested period or number range.
    Raises ValueError when no counted contract falls inside it.
    """
    excluded = excluded_contract_ids(db)
    closures = list_closures(db)

    matching = [
        contract for contract in db.query(Contract).all()
        if contract.id not in excluded
        and not is_closed(contract, closures)
        and _in_bounds(
            contract,
            data.closure_type,
            data.period_start,
            data.period_end,
            data.contract_start,
            data.contract_end
        )
    ]
    if not matching:
        raise ValueError("No open contracts in the requested range")

    total_amount = round_money(sum(contract_fee(c) for c in matching))
    is_period = data.closure_type == ClosureType.PERIOD
    closure = PeriodClosure(
        closure_type=data.closure_type,
        period_start=data.period_start if is_period else None,
        period_end=data.period_end if is_period else None,
        contract_start=None if is_period else data.contract_start,
        contract_end=None if is_period else data.contract_end,
        closure_date=data.closure_date or today or date.today(),
        total_contracts=len(matching),
        total_amount=total_amount,
        total_withdrawn=0.0,
        remaining_balance=total_amount,
        notes=data.notes
    )
    db.add(closure)
    db.commit()
    db.refresh(closure)

    logger.info(f"Fee pool closed: type={closure.closure_type.value} contracts={len(matching)} amount={total_amount}")
    audit_log(
        action="fee_period_closed",
        user="admin",
        resource=f"closure_id={closure.id}",
        details={"contract_ids": [c.id for c in matching], "total_amount": total_amount}
    )
    return closure
