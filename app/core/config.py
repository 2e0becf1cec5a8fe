import os
from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()

class Settings(BaseModel):
    """Application settings."""
    APP_NAME: str = os.getenv("APP_NAME", "AI Dialer")
    API_PREFIX: str = "/api"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-here")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./dialer.db")
    DB_ECHO: bool = os.getenv("DB_ECHO", "false").lower() == "true"
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-jwt-secret-key-here")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

    # AI dialer backend
    AI_DIALER_URL: str = os.getenv("AI_DIALER_URL", "http://127.0.0.1:8000")
    AI_DIALER_API_KEY: str = os.getenv("AI_DIALER_API_KEY", "")
    AI_DIALER_TIMEOUT: float = float(os.getenv("AI_DIALER_TIMEOUT", "30"))

    # Email/SMTP Configuration
    SMTP_SERVER: str = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", "noreply@aidialer.local")
    SMTP_FROM_NAME: str = os.getenv("SMTP_FROM_NAME", "AI Dialer")
    SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Signup verification
    OTP_TTL_MINUTES: int = int(os.getenv("OTP_TTL_MINUTES", "10"))
    PENDING_USER_TTL_MINUTES: int = int(os.getenv("PENDING_USER_TTL_MINUTES", "10"))
    MASTER_OTP: str = os.getenv("MASTER_OTP", "")
    EMAIL_MAX_RETRIES: int = int(os.getenv("EMAIL_MAX_RETRIES", "3"))
    EMAIL_QUEUE_INTERVAL_SECONDS: int = int(os.getenv("EMAIL_QUEUE_INTERVAL_SECONDS", "1"))

    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "./log")

settings = Settings()
