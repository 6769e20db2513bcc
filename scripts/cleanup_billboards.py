import sys
import os

# Add project root to python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adboard.billboards.cleanup import cleanup_expired_billboards
from adboard.billboards.models import CleanupType
from adboard.contracts.service import expire_contracts
from adboard.core.database import SessionLocal, init_db
from adboard.core.logger import logger


def run_cleanup():
    """
    Scheduled sweep (cron): expires overdue contracts, then releases any billboard
    still rented past its end date.
    """
    logger.info("Starting automatic billboard cleanup...")
    init_db()

    db = SessionLocal()
    try:
        expired = expire_contracts(db)
        logger.info(
            f"Contracts expired: {len(expired.expired_contracts)} | "
            f"billboards released: {len(expired.released_billboards)}"
        )

        result = cleanup_expired_billboards(db, cleanup_type=CleanupType.AUTOMATIC)
        logger.info(f"Orphaned rentals released: {result.cleaned}")
    finally:
        db.close()

    logger.info("Billboard cleanup completed.")


if __name__ == "__main__":
    run_cleanup()
