"""
Customer registry and duplicate detection.
Two customers are considered duplicates when their trimmed, lower-cased names are equal
or more similar than the configured threshold (normalized Levenshtein distance).
"""
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from adboard.billing.models import Payment
from adboard.contracts.models import Contract
from adboard.core.config import settings
from adboard.core.logger import audit_log, logger
from adboard.customers.models import Customer
from adboard.customers.schemas import CustomerCreate, CustomerResponse, DuplicateGroup, DuplicateMember, MergeResult


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insertions, deletions, substitutions)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    s1 = (a or "").strip().lower()
    s2 = (b or "").strip().lower()
    if s1 == s2:
        return 1.0
    longest = max(len(s1), len(s2))
    if min(len(s1), len(s2)) == 0:
        return 0.0
    return (longest - levenshtein(s1, s2)) / longest


def list_customers(db: Session, search: Optional[str] = None) -> List[Customer]:
    query = db.query(Customer)
    if search:
        query = query.filter(Customer.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Customer.name).all()


def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == customer_id).first()


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    customer = Customer(**data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    audit_log(action="customer_created", user="admin", resource=f"customer_id={customer.id}")
    return customer


def find_or_create_customer(db: Session, name: str, customer_id: Optional[int] = None) -> Customer:
    """
    Resolves a contract's customer: explicit id, else a case-insensitive name match, else a new customer.
    New customers are flushed, not committed; the caller owns the transaction.
    """
    if customer_id is not None:
        customer = get_customer(db, customer_id)
        if not customer:
            raise ValueError(f"Customer {customer_id} not found")
        return customer

    clean = name.strip()
    customer = db.query(Customer).filter(func.lower(Customer.name) == clean.lower()).first()
    if customer:
        return customer

    customer = Customer(name=clean)
    db.add(customer)
    db.flush()
    logger.info(f"Customer created from contract: id={customer.id} name={clean}")
    return customer


def _contracts_count(db: Session) -> Dict[int, int]:
    rows = db.query(Contract.customer_id, func.count(Contract.id)).group_by(Contract.customer_id).all()
    return {customer_id: count for customer_id, count in rows if customer_id is not None}


def find_duplicate_groups(db: Session, threshold: Optional[float] = None) -> List[DuplicateGroup]:
    """
    Greedy grouping: each customer not yet grouped seeds a group with every later similar customer.
    Members are ordered by contracts count (desc); groups of one are dropped.
    """
    limit = settings.DUPLICATE_SIMILARITY_THRESHOLD if threshold is None else threshold
    customers = db.query(Customer).order_by(Customer.id).all()
    counts = _contracts_count(db)

    groups: List[DuplicateGroup] = []
    grouped = set()
    for i, seed in enumerate(customers):
        if seed.id in grouped:
            continue
        grouped.add(seed.id)
        members = [DuplicateMember(id=seed.id, name=seed.name, contracts_count=counts.get(seed.id, 0), similarity=1.0)]

        for other in customers[i + 1:]:
            if other.id in grouped:
                continue
            score = similarity(seed.name, other.name)
            if score > limit or score == 1.0:
                grouped.add(other.id)
                members.append(DuplicateMember(
                    id=other.id,
                    name=other.name,
                    contracts_count=counts.get(other.id, 0),
                    similarity=round(score, 3)
                ))

        if len(members) > 1:
            members.sort(key=lambda m: m.contracts_count, reverse=True)
            groups.append(DuplicateGroup(members=members, contracts_count=sum(m.contracts_count for m in members)))

    return groups


def merge_customers(db: Session, keep_id: int, merge_ids: Sequence[int]) -> MergeResult:
    """
    Moves contracts and ledger entries of `merge_ids` onto `keep_id`, fills the keeper's
    missing contact fields from the merged customers, then deletes them.
    """
    others = [i for i in dict.fromkeys(merge_ids) if i != keep_id]
    if not others:
        raise ValueError("Nothing to merge")

    keeper = get_customer(db, keep_id)
    if not keeper:
        raise ValueError(f"Customer {keep_id} not found")

    duplicates = db.query(Customer).filter(Customer.id.in_(others)).all()
    missing = sorted(set(others) - {c.id for c in duplicates})
    if missing:
        raise ValueError(f"Customers not found: {', '.join(str(i) for i in missing)}")

    for duplicate in duplicates:
        keeper.company = keeper.company or duplicate.company
        keeper.phone = keeper.phone or duplicate.phone
        keeper.email = keeper.email or duplicate.email

    contracts_moved = db.query(Contract).filter(Contract.customer_id.in_(others)).update(
        {Contract.customer_id: keep_id}, synchronize_session=False
    )
    payments_moved = db.query(Payment).filter(Payment.customer_id.in_(others)).update(
        {Payment.customer_id: keep_id}, synchronize_session=False
    )
    for duplicate in duplicates:
        db.delete(duplicate)

    db.commit()
    db.refresh(keeper)

    audit_log(
        action="customers_merged",
        user="admin",
        resource=f"customer_id={keep_id}",
        details={"merged_ids": others, "contracts_moved": contracts_moved, "payments_moved": payments_moved}
    )
    return MergeResult(
        customer=CustomerResponse.model_validate(keeper),
        merged_ids=others,
        contracts_moved=contracts_moved,
        payments_moved=payments_moved
    )
