"""
Revenue sharing for billboards co-owned with partner companies.

While partner capital remains, each rent is split 35% company / 35% partners and the
remaining 30% is deducted from the capital still to recover. Once the capital is recovered
the rent is shared 50/50. The partners' part is divided evenly between the partner companies.
"""
import json
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from adboard.billboards.models import Billboard
from adboard.contracts.models import Contract
from adboard.core.config import settings
from adboard.core.logger import audit_log, logger
from adboard.core.utils import round_money
from adboard.partnerships.models import Partnership, SharedTransaction, SplitPhase, TransactionType
from adboard.partnerships.schemas import (
    BeneficiaryTotal,
    PartnerShare,
    PartnershipCreate,
    PartnershipUpdate,
    RentApplication,
    RentResult,
    RevenueSplit,
    TransactionResponse,
)

DEFAULT_PARTNER = "partner"


def calculate_split(capital_remaining: float, rent: float) -> RevenueSplit:
    """
    Shares one rent payment. The capital deduction is always the full recovery rate of the
    rent; the capital left is floored at 0.
    """
    capital_remaining = float(capital_remaining or 0.0)
    if capital_remaining > 0:
        deduction = round_money(rent * settings.SHARED_RECOVERY_CAPITAL_RATE)
        return RevenueSplit(
            phase=SplitPhase.RECOVERY,
            rent=round_money(rent),
            company_share=round_money(rent * settings.SHARED_RECOVERY_COMPANY_RATE),
            partner_share=round_money(rent * settings.SHARED_RECOVERY_PARTNER_RATE),
            capital_deduction=deduction,
            capital_remaining=max(0.0, round_money(capital_remaining - deduction))
        )

    company = round_money(rent * settings.SHARED_PROFIT_COMPANY_RATE)
    return RevenueSplit(
        phase=SplitPhase.PROFIT_SHARING,
        rent=round_money(rent),
        company_share=company,
        partner_share=round_money(rent - company),
        capital_deduction=0.0,
        capital_remaining=0.0
    )


def split_among_partners(amount: float, partners: Sequence[str]) -> List[PartnerShare]:
    """Even shares; the last partner absorbs the rounding remainder. No partners yields one generic share."""
    if not partners:
        return [PartnerShare(beneficiary=DEFAULT_PARTNER, amount=round_money(amount))]

    each = round_money(amount / len(partners))
    shares = [PartnerShare(beneficiary=name, amount=each) for name in partners[:-1]]
    shares.append(PartnerShare(beneficiary=partners[-1], amount=round_money(amount - each * (len(partners) - 1))))
    return shares


def partner_names(partnership: Partnership) -> List[str]:
    return list(json.loads(partnership.partner_companies or "[]"))


def get_partnership(db: Session, partnership_id: int) -> Optional[Partnership]:
    return db.query(Partnership).filter(Partnership.id == partnership_id).first()


def list_partnerships(db: Session) -> List[Partnership]:
    return db.query(Partnership).order_by(Partnership.updated_at.desc(), Partnership.id.desc()).all()


def create_partnership(db: Session, data: PartnershipCreate) -> Partnership:
    """Raises ValueError for unknown billboards and billboards already shared."""
    if not db.query(Billboard.id).filter(Billboard.id == data.billboard_id).first():
        raise ValueError(f"Billboard {data.billboard_id} not found")
    if db.query(Partnership.id).filter(Partnership.billboard_id == data.billboard_id).first():
        raise ValueError(f"Billboard {data.billboard_id} is already shared")

    remaining = data.capital if data.capital_remaining is None else data.capital_remaining
    if remaining > data.capital:
        raise ValueError("Remaining capital cannot exceed the capital")

    partnership = Partnership(
        billboard_id=data.billboard_id,
        partner_companies=json.dumps(data.partner_companies),
        capital=data.capital,
        capital_remaining=remaining
    )
    db.add(partnership)
    db.commit()
    db.refresh(partnership)

    audit_log(
        action="partnership_created",
        user="admin",
        resource=f"billboard_id={partnership.billboard_id}",
        details={"partners": data.partner_companies, "capital": data.capital}
    )
    return partnership


def update_partnership(db: Session, partnership_id: int, data: PartnershipUpdate) -> Optional[Partnership]:
    partnership = get_partnership(db, partnership_id)
    if not partnership:
        return None

    if data.partner_companies is not None:
        partnership.partner_companies = json.dumps(data.partner_companies)
    if data.capital is not None:
        partnership.capital = data.capital
    if data.capital_remaining is not None:
        partnership.capital_remaining = data.capital_remaining
    if partnership.capital_remaining > partnership.capital:
        raise ValueError("Remaining capital cannot exceed the capital")

    db.commit()
    db.refresh(partnership)

    audit_log(
        action="partnership_updated",
        user="admin",
        resource=f"partnership_id={partnership.id}",
        details=data.model_dump(exclude_unset=True)
    )
    return partnership


def remove_partnership(db: Session, partnership_id: int) -> bool:
    """Ends the partnership. Its transactions stay on the billboard's ledger."""
    partnership = get_partnership(db, partnership_id)
    if not partnership:
        return False

    billboard_id = partnership.billboard_id
    db.delete(partnership)
    db.commit()

    audit_log(action="partnership_removed", user="admin", resource=f"billboard_id={billboard_id}")
    return True


def apply_rent(db: Session, partnership: Partnership, data: RentApplication) -> RentResult:
    """
    Splits a rent payment, lowers the capital still to recover and books one transaction
    per beneficiary (company, each partner, and the capital deduction when there is one).
    """
    if data.contract_id is not None and not db.query(Contract.id).filter(Contract.id == data.contract_id).first():
        raise ValueError(f"Contract {data.contract_id} not found")

    split = calculate_split(partnership.capital_remaining, data.rent)
    shares = split_among_partners(split.partner_share, partner_names(partnership))

    entries = [(settings.COMPANY_NAME, split.company_share, TransactionType.RENTAL_INCOME)]
    entries += [(share.beneficiary, share.amount, TransactionType.RENTAL_INCOME) for share in shares]
    if split.capital_deduction > 0:
        entries.append(
            (settings.SHARED_CAPITAL_BENEFICIARY, split.capital_deduction, TransactionType.CAPITAL_DEDUCTION)
        )

    transactions = [
        SharedTransaction(
            billboard_id=partnership.billboard_id,
            contract_id=data.contract_id,
            beneficiary=beneficiary,
            amount=amount,
            transaction_type=transaction_type,
            phase=split.phase
        )
        for beneficiary, amount, transaction_type in entries
    ]
    db.add_all(transactions)
    partnership.capital_remaining = split.capital_remaining
    db.commit()
    for transaction in transactions:
        db.refresh(transaction)

    logger.info(
        f"Shared rent applied: billboard={partnership.billboard_id} phase={split.phase.value} "
        f"capital_remaining={split.capital_remaining}"
    )
    audit_log(
        action="shared_rent_applied",
        user="admin",
        resource=f"billboard_id={partnership.billboard_id}",
        details={"rent": split.rent, "phase": split.phase.value, "capital_remaining": split.capital_remaining}
    )
    return RentResult(
        split=split,
        partner_shares=shares,
        transactions=[TransactionResponse.model_validate(t) for t in transactions]
    )


def list_transactions(db: Session, billboard_id: Optional[int] = None) -> List[SharedTransaction]:
    query = db.query(SharedTransaction)
    if billboard_id is not None:
        query = query.filter(SharedTransaction.billboard_id == billboard_id)
    return query.order_by(SharedTransaction.created_at, SharedTransaction.id).all()


def beneficiary_totals(db: Session) -> List[BeneficiaryTotal]:
    """Income and capital deductions per beneficiary across every shared billboard."""
    totals: Dict[str, Dict[TransactionType, float]] = {}
    for transaction in list_transactions(db):
        per_type = totals.setdefault(transaction.beneficiary, {})
        per_type[transaction.transaction_type] = per_type.get(transaction.transaction_type, 0.0) + transaction.amount

    return [
        BeneficiaryTotal(
            beneficiary=name,
            rental_income=round_money(per_type.get(TransactionType.RENTAL_INCOME, 0.0)),
            capital_deduction=round_money(per_type.get(TransactionType.CAPITAL_DEDUCTION, 0.0))
        )
        for name, per_type in sorted(totals.items())
    ]
