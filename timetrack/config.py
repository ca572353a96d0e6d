from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./timesheets.db"

    # Business calendar: "now" for current-week lookups is taken in this zone
    timezone: str = "UTC"
    # Number of blank rows seeded into a freshly created weekly timesheet
    placeholder_rows: int = 5

    # Credentials
    # Password given to employees created without one, and used by admin resets
    default_password: str = "password"
    # Bootstrap administrator seeded into an empty employees table
    admin_user_name: str = "admin"
    admin_password: str = "admin123"

    # Application
    app_env: str = "development"
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_retention_days: int = 30
    # Comma-separated list of origins, "*" for any
    cors_allow_origins: str = "*"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
