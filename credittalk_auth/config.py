import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./credittalk.db")
    database_echo: bool = _env_bool("DATABASE_ECHO", False)
    otp_length: int = int(os.getenv("OTP_LENGTH", "6"))
    otp_ttl_seconds: int = int(os.getenv("OTP_TTL_SECONDS", "300"))
    phone_country_code: str = os.getenv("PHONE_COUNTRY_CODE", "82")
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_messaging_service_sid: str = os.getenv("TWILIO_MESSAGING_SERVICE_SID", "")
    twilio_phone_number: str = os.getenv(
        "TWILIO_PHONE_NUMBER", os.getenv("PHONE_NUMBER", "")
    )
    sms_timeout_seconds: float = float(os.getenv("SMS_TIMEOUT_SECONDS", "5"))
    sms_brand: str = os.getenv("SMS_BRAND", "CreditTalk")
    cors_origins: tuple[str, ...] = _env_list("CORS_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
