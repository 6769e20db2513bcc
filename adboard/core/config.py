"""
Centralized application configuration implementing the 12-Factor App methodology.
Business constants (fee rates, thresholds, print layout) live here so they can be tuned per deployment.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable configuration schema backed by environment variables."""

    APP_NAME: str = "AdBoard"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # SQLite for local work; any SQLAlchemy URL (PostgreSQL in production)
    DATABASE_URL: str = "sqlite:///./adboard.db"

    LOG_LEVEL: str = "INFO"

    # Printed on every generated document
    COMPANY_NAME: str = "AdBoard Outdoor Advertising"
    COMPANY_ADDRESS: str = "Airport Road, Tripoli"
    CURRENCY_SYMBOL: str = "LYD"

    # Contract arithmetic
    DEFAULT_OPERATING_FEE_RATE: float = 3.0
    DAYS_PER_MONTH: int = 30
    MAX_INSTALLMENTS: int = 6
    INSTALLMENT_TOLERANCE: float = 1.0
    INSTALLATION_DUE_OFFSET_DAYS: int = 7

    # Contracts ending within this many days are flagged as near expiry
    NEAR_EXPIRY_DAYS: int = 20

    # Shared billboards: rent split while the partner capital is recovered, then profit sharing
    SHARED_RECOVERY_COMPANY_RATE: float = 0.35
    SHARED_RECOVERY_PARTNER_RATE: float = 0.35
    SHARED_RECOVERY_CAPITAL_RATE: float = 0.30
    SHARED_PROFIT_COMPANY_RATE: float = 0.50
    SHARED_CAPITAL_BENEFICIARY: str = "capital"

    # Customer de-duplication
    DUPLICATE_SIMILARITY_THRESHOLD: float = 0.8

    # Print layout (A4, rows tied to the background artwork)
    INSTALLATION_ROWS_PER_PAGE: int = 12
    CONTRACT_FIXED_ROWS: int = 10

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
