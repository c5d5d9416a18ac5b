# portal/core/config.py
from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    SECRET_KEY: str = "change-me"  # override in .env / secrets
    LOG_LEVEL: str = "INFO"
    # comma separated list of frontend origins
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Admin session tokens
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    # proof that an email passed OTP verification, consumed by checkout
    VERIFICATION_TOKEN_EXPIRE_MINUTES: int = 30

    # Transactional store (Postgres behind the hosted backend, sqlite locally)
    DATABASE_URL: str = "sqlite:///./portal.db"

    # Remote functions (send-otp / verify-otp)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None

    # S3 resume storage
    AWS_REGION: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_S3_BUCKET: Optional[str] = None

    # External onboarding API
    ONBOARDING_API_URL: str = "https://ticketingtoolapplywizz.vercel.app/api/direct-onboard"

    # outbound httpx timeout
    HTTP_TIMEOUT_SEC: float = 20.0

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

# single shared settings instance
settings = Settings()
