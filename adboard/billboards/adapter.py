"""
Ingestion adapter for billboard records.
Legacy exports spell the same field many ways (English, snake_case, Arabic headers);
this module resolves them once, at the import boundary, into a BillboardRecord.
"""
import re
from typing import Any, Dict, List, Mapping, Optional

from adboard.billboards.models import BillboardStatus
from adboard.billboards.schemas import BillboardRecord
from adboard.core.utils import parse_date

FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["ID", "id", "Billboard_ID", "billboard_id"],
    "name": ["Billboard_Name", "name", "billboard_name", "اسم اللوحة"],
    "city": ["City", "city", "المدينة"],
    "municipality": ["Municipality", "municipality", "City_Council", "city_council", "البلدية"],
    "landmark": ["Nearest_Landmark", "nearest_landmark", "landmark", "location", "Location", "أقرب معلم"],
    "size": ["Size", "size", "billboard_size", "Billboard size", "المقاس"],
    "level": ["Level", "level", "billboard_level", "المستوى"],
    "faces_count": ["Faces_Count", "faces_count", "faces", "Faces", "Number_of_Faces", "Number of Faces", "عدد الأوجه"],
    "price": ["Price", "price", "monthly_price"],
    "status": ["Status", "status", "الحالة"],
    "contract_id": ["Contract_Number", "contract_id", "current_contract_id", "contractNumber", "رقم العقد"],
    "customer_name": ["Customer_Name", "customer_name", "clientName", "Client Name", "اسم العميل"],
    "rent_start_date": ["Rent_Start_Date", "rent_start_date", "تاريخ بداية الإيجار"],
    "rent_end_date": ["Rent_End_Date", "rent_end_date", "expiryDate", "تاريخ نهاية الإيجار"],
    "billboard_type": ["billboard_type", "Billboard_Type", "نوع اللوحة"],
    "image_url": ["Image_URL", "image_url", "image", "billboard_image", "رابط الصورة"],
    "coordinates": ["GPS_Coordinates", "gps_coordinates", "coordinates", "coords", "GPS", "إحداثيات GPS"],
}

STATUS_ALIASES: Dict[str, BillboardStatus] = {
    "available": BillboardStatus.AVAILABLE,
    "free": BillboardStatus.AVAILABLE,
    "متاح": BillboardStatus.AVAILABLE,
    "rented": BillboardStatus.RENTED,
    "booked": BillboardStatus.RENTED,
    "مؤجر": BillboardStatus.RENTED,
    "محجوز": BillboardStatus.RENTED,
    "maintenance": BillboardStatus.MAINTENANCE,
    "صيانة": BillboardStatus.MAINTENANCE,
}

FACES_WORDS = {"وجه واحد": 1, "وجه": 1, "وجهين": 2, "single": 1, "double": 2}

_MISSING = ("", "null", "undefined", "none")


def pick(record: Mapping[str, Any], field: str) -> Any:
    """First non-empty value among the field's alias spellings."""
    for key in FIELD_ALIASES[field]:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and value.strip().lower() in _MISSING:
            continue
        return value
    return None


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = re.search(r"\d+", str(value))
    return int(match.group()) if match else None


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).replace(",", "").strip()
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def _faces(value: Any) -> int:
    if isinstance(value, str) and value.strip() in FACES_WORDS:
        return FACES_WORDS[value.strip()]
    faces = _to_int(value)
    return faces if faces and faces > 0 else 2


def _status(value: Any, contract_id: Optional[int]) -> BillboardStatus:
    if value is not None:
        status = STATUS_ALIASES.get(str(value).strip().lower())
        if status is not None:
            return status
    return BillboardStatus.RENTED if contract_id else BillboardStatus.AVAILABLE


def normalize_billboard(record: Mapping[str, Any]) -> BillboardRecord:
    """
    Builds a BillboardRecord from a loosely-typed mapping.
    Raises pydantic.ValidationError when the name or size cannot be found.
    """
    contract_id = _to_int(pick(record, "contract_id"))

    name = pick(record, "name")
    record_id = _to_int(pick(record, "id"))
    if name is None and record_id is not None:
        name = str(record_id)

    def text(field: str) -> Optional[str]:
        value = pick(record, field)
        return str(value).strip() if value is not None else None

    return BillboardRecord(
        id=record_id,
        name=str(name).strip() if name is not None else "",
        size=str(pick(record, "size") or ""),
        level=str(pick(record, "level") or "A"),
        city=text("city"),
        municipality=text("municipality"),
        landmark=text("landmark"),
        faces_count=_faces(pick(record, "faces_count")),
        price=_to_float(pick(record, "price")),
        status=_status(pick(record, "status"), contract_id),
        contract_id=contract_id,
        customer_name=text("customer_name"),
        rent_start_date=parse_date(pick(record, "rent_start_date")),
        rent_end_date=parse_date(pick(record, "rent_end_date")),
        billboard_type=text("billboard_type"),
        image_url=text("image_url"),
        coordinates=text("coordinates"),
    )
