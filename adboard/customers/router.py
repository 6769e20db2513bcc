from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from adboard.core.database import get_db
from adboard.customers.schemas import CustomerCreate, CustomerResponse, DuplicateGroup, MergeRequest, MergeResult
from adboard.customers.service import create_customer, find_duplicate_groups, list_customers, merge_customers

router = APIRouter(tags=["Customers"])


@router.get("/", response_model=List[CustomerResponse])
def get_customers(search: Optional[str] = None, db: Session = Depends(get_db)):
    return list_customers(db, search)


@router.post("/", response_model=CustomerResponse, status_code=201)
def add_customer(data: CustomerCreate, db: Session = Depends(get_db)):
    return create_customer(db, data)


@router.get("/duplicates", response_model=List[DuplicateGroup])
def get_duplicates(threshold: Optional[float] = None, db: Session = Depends(get_db)):
    """Groups of customers whose names look alike (normalized Levenshtein similarity)."""
    return find_duplicate_groups(db, threshold)


@router.post("/merge", response_model=MergeResult)
def merge(data: MergeRequest, db: Session = Depends(get_db)):
    try:
        return merge_customers(db, data.keep_id, data.merge_ids)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
