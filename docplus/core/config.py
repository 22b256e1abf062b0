from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"

DEFAULT_SLOT_TIMES = "09:00 AM,10:00 AM,11:00 AM,12:00 PM,02:00 PM,03:00 PM,04:00 PM,05:00 PM"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 60 * 24 * 7
    algorithm: str = "HS256"
    bcrypt_rounds: int = 12

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Admin console credentials (single admin account, not stored in DB)
    admin_email: str = ""
    admin_password: str = ""

    # Razorpay. Leave key id empty to disable online payments.
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    currency: str = "INR"

    # Booking rules
    slot_times: str = DEFAULT_SLOT_TIMES
    latest_appointments_limit: int = 5

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def slot_times_list(self) -> list[str]:
        return [t.strip() for t in self.slot_times.split(",") if t.strip()]

    @property
    def payments_enabled(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)

    @property
    def admin_enabled(self) -> bool:
        return bool(self.admin_email and self.admin_password)


settings = Settings()
