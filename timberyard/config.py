from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./timberyard.db"
    COMPANY_NAME: str = "Timberyard Oak Buildings"
    COMPANY_EMAIL: str = "sales@timberyard.co.uk"
    CURRENCY_SYMBOL: str = "£"

    # Flat VAT, single jurisdiction
    VAT_RATE: float = 0.20

    # Delivery defaults, overridable at runtime via the delivery_settings table
    FREE_DELIVERY_THRESHOLD: float = 500.00
    MIN_DELIVERY_CHARGE: float = 35.00
    SHIPPING_RATE_PER_CUBIC_METER: float = 50.00

    class Config:
        env_file = ".env"


settings = Settings()
