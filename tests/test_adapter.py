"""
Unit tests for the billboard ingestion adapter and bulk import.
"""
from datetime import date

import pytest
from pydantic import ValidationError

from adboard.billboards.adapter import normalize_billboard, pick
from adboard.billboards.models import BillboardStatus


def test_english_export_record():
    record = normalize_billboard({
        "ID": "17",
        "Billboard_Name": "Airport Road 17",
        "City": "Tripoli",
        "Size": "12x4",
        "Level": "b",
        "Faces_Count": "1",
        "Price": "1,250",
        "Status": "Rented",
        "Contract_Number": "C-42",
        "Rent_End_Date": "31/12/2024",
    })

    assert record.id == 17
    assert record.size == "4x12"
    assert record.level == "B"
    assert record.faces_count == 1
    assert record.price == 1250
    assert record.status == BillboardStatus.RENTED
    assert record.contract_id == 42
    assert record.rent_end_date == date(2024, 12, 31)


def test_arabic_headers():
    record = normalize_billboard({
        "اسم اللوحة": "لوحة الميناء",
        "المقاس": "6*18",
        "عدد الأوجه": "وجه واحد",
        "الحالة": "متاح",
    })

    assert record.name == "لوحة الميناء"
    assert record.size == "6x18"
    assert record.faces_count == 1
    assert record.status == BillboardStatus.AVAILABLE


def test_status_inferred_from_contract():
    assert normalize_billboard({"name": "A", "size": "4x12", "contract_id": 3}).status == BillboardStatus.RENTED
    assert normalize_billboard({"name": "A", "size": "4x12"}).status == BillboardStatus.AVAILABLE


def test_placeholder_values_are_skipped():
    record = {"Size": "undefined", "size": "", "billboard_size": "4x12"}
    assert pick(record, "size") == "4x12"


def test_name_falls_back_to_id():
    assert normalize_billboard({"id": 9, "size": "4x12"}).name == "9"


def test_missing_size_is_rejected():
    with pytest.raises(ValidationError):
        normalize_billboard({"name": "No size"})


def test_import_endpoint_creates_updates_and_reports(client):
    response = client.post("/billboards/import", json=[
        {"ID": 1, "Billboard_Name": "First", "Size": "4x12"},
        {"id": 2, "name": "Second", "billboard_size": "18x6", "faces": 1},
        {"name": "Broken"},
        {"ID": 1, "Billboard_Name": "First renamed", "Size": "4x12", "Contract_Number": 999},
    ])
    assert response.status_code == 200
    result = response.json()
    assert result["created"] == 2
    assert result["updated"] == 1
    assert [e["index"] for e in result["errors"]] == [2]

    billboards = {b["id"]: b for b in client.get("/billboards/").json()}
    assert billboards[1]["name"] == "First renamed"
    assert billboards[1]["contract_id"] is None
    assert billboards[2]["size"] == "6x18"
