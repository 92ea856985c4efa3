from decimal import Decimal

from pydantic import field_validator
from pydantic_settings import BaseSettings


def _strip_inline_comment(value: str) -> str:
    """Strip trailing inline comments that python-dotenv keeps for unquoted values."""
    idx = value.find(" #")
    if idx != -1:
        value = value[:idx]
    return value.strip()


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./car_rental.db"
    use_real_apis: bool = False
    log_level: str = "INFO"

    # Pricing
    currency: str = "USD"
    tax_rate: Decimal = Decimal("0.12")
    airport_fee: Decimal = Decimal("25")
    young_driver_age_threshold: int = 25
    young_driver_fee_per_day: Decimal = Decimal("15")
    # Advertised in the search UI; off until product confirms it is a real charge
    apply_young_driver_fee: bool = False

    # Confirm flow
    booking_timeout_seconds: float = 30.0

    # Real booking gateway (required when USE_REAL_APIS=true)
    gateway_base_url: str = "https://api.hertz.com/v1"
    gateway_client_id: str = ""
    gateway_client_secret: str = ""
    gateway_sandbox: bool = True

    @field_validator("gateway_client_id", "gateway_client_secret", mode="before")
    @classmethod
    def clean_credentials(cls, v: str) -> str:
        if isinstance(v, str):
            return _strip_inline_comment(v)
        return v

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
