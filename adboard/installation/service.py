"""
Installation and print cost aggregation.
A billboard without a registered price contributes 0; the aggregate never fails.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from adboard.core.logger import audit_log, logger
from adboard.core.utils import canon_size, parse_dimensions, round_half_up, round_money
from adboard.installation.models import SizeSpec
from adboard.installation.schemas import InstallationLine, InstallationSummary, SizeSpecUpsert

DEFAULT_FACES = 2


def price_by_faces(base_price: Optional[float], faces: int) -> float:
    """Single-face billboards are installed at half the registered price."""
    if not base_price:
        return 0.0
    if faces == 1:
        return round_half_up(base_price / 2)
    return float(base_price)


def calculate_installation_cost(
    billboards: Iterable[Any],
    size_prices: Mapping[str, Optional[float]]
) -> InstallationSummary:
    """
    Sums the installation fee of each billboard.
    `size_prices` maps canonical size -> installation price.
    """
    total = 0.0
    details: List[InstallationLine] = []

    for billboard in billboards:
        size = canon_size(billboard.size)
        faces = int(getattr(billboard, "faces_count", None) or DEFAULT_FACES)
        base_price = size_prices.get(size)

        if not base_price:
            logger.warning(f"No installation price for billboard {billboard.id} (size={size})")

        charged = price_by_faces(base_price, faces)
        details.append(InstallationLine(
            billboard_id=billboard.id,
            billboard_name=getattr(billboard, "name", None) or f"Billboard {billboard.id}",
            size=size,
            faces=faces,
            base_price=float(base_price or 0.0),
            installation_price=charged
        ))
        total += charged

    return InstallationSummary(total_installation_cost=round_money(total), details=details)


def calculate_print_cost(billboards: Iterable[Any], price_per_meter: float) -> float:
    """Printing is billed per square metre per face; sizes that do not parse contribute 0."""
    if not price_per_meter or price_per_meter <= 0:
        return 0.0

    total = 0.0
    for billboard in billboards:
        dims = parse_dimensions(billboard.size)
        if dims is None:
            continue
        width, height = dims
        faces = int(getattr(billboard, "faces_count", None) or 1)
        total += width * height * faces * price_per_meter
    return round_money(total)


def load_size_prices(db: Session) -> Dict[str, Optional[float]]:
    return {canon_size(s.name): s.installation_price for s in db.query(SizeSpec).all()}


def list_sizes(db: Session) -> List[SizeSpec]:
    return db.query(SizeSpec).order_by(SizeSpec.sort_order, SizeSpec.name).all()


def upsert_size(db: Session, data: SizeSpecUpsert) -> SizeSpec:
    size = db.query(SizeSpec).filter(SizeSpec.name == data.name).first()
    dims = parse_dimensions(data.name)

    if not size:
        size = SizeSpec(name=data.name)
        db.add(size)

    size.installation_price = data.installation_price
    size.sort_order = data.sort_order
    if dims:
        size.width, size.height = sorted(dims)

    db.commit()
    db.refresh(size)

    audit_log(
        action="size_upserted",
        user="admin",
        resource=f"size={size.name}",
        details={"installation_price": size.installation_price}
    )
    return size
