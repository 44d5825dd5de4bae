from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./maktaba.db"
    SECRET_KEY: str = "dev-insecure-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # CORS origins for the back-office front end
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Account lockout
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCKOUT_MINUTES: int = 15

    LOG_LEVEL: str = "INFO"

    # Shop
    SHOP_NAME: str = "Maktaba Bookshop"
    SHOP_ADDRESS: str = ""
    SHOP_TIMEZONE: str = "Africa/Cairo"
    LOW_STOCK_THRESHOLD: int = 5

    # Ledger descriptions and default account names ("ar" or "en")
    LEDGER_LANGUAGE: str = "ar"

    # Account credited when a shipping/reservation order is marked paid
    PAYMENT_COLLECTION_ACCOUNT_CODE: str = "cash-default"

    # Allow more than one closeout per cashier per day (shift hand-over)
    TILL_ALLOW_REPEAT_CLOSEOUT: bool = False


settings = Settings()
