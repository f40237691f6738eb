from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Regdesk"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # Database
    DATABASE_URL: str = "sqlite:///./regdesk.db"

    # Registration
    EVENT_NAME: str = "Community Selection"
    GROUPS: List[str] = ["Khana", "Gokana", "Tai", "Eleme"]

    # Approval
    APPROVAL_TIME_WINDOW_SECONDS: int = 60
    CODE_MAX_ATTEMPTS: int = 50

    # Sessions
    SESSION_TTL_HOURS: int = 24

    # Mail API (LogNotifier is used when MAIL_API_URL is empty)
    MAIL_API_URL: Optional[str] = None
    MAIL_API_KEY: str = ""
    MAIL_FROM: str = "noreply@regdesk.local"
    NOTIFIER_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "regdesk.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
