"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "WaterJunction API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront backend for Water Junction"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://waterjunction.in" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:3000"
    FRONTEND_URL: str = "http://localhost:5173"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list, always including FRONTEND_URL"""
        origins: List[str] = []

        if self.ALLOWED_ORIGINS:
            # Try JSON parse first (for array format)
            import json
            try:
                parsed = json.loads(self.ALLOWED_ORIGINS)
                if isinstance(parsed, list):
                    origins = [str(origin) for origin in parsed]
            except (json.JSONDecodeError, ValueError):
                pass

            # Fall back to comma-separated string
            if not origins:
                origins = [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)

        return origins

    # JWT
    JWT_SECRET: str = "dev_jwt_secret_change_me"
    JWT_REFRESH_SECRET: str = "dev_jwt_refresh_secret_change_me"
    JWT_EXPIRE_DAYS: int = 7
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    # Razorpay
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"

    # Shipmozo
    SHIPMOZO_BASE_URL: str = "https://api.shipmozo.com"
    SHIPMOZO_PUBLIC_KEY: str = ""
    SHIPMOZO_PRIVATE_KEY: str = ""

    # Transactional email (HTTP provider, e.g. https://api.sendgrid.com/v3/mail/send)
    EMAIL_API_URL: str = ""
    EMAIL_API_KEY: str = ""
    EMAIL_FROM: str = "no-reply@waterjunction.in"
    ADMIN_EMAIL: str = ""

    # Twilio SMS for phone OTP
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    TWILIO_API_URL: str = "https://api.twilio.com/2010-04-01"

    # Rate limiting (per client IP on /api/*)
    RATE_LIMIT_MAX_REQUESTS: int = 300
    RATE_LIMIT_WINDOW_SECONDS: int = 900

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
