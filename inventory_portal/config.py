from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Inventory Portal"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Security settings
    secret_key: str
    session_cookie_name: str = "portal_session"
    auth_cookie_max_age: int = 60 * 60 * 24 * 7
    secure_cookies: bool = False

    # Backend settings
    api_base_url: str = "http://localhost:8080/api"
    request_timeout_seconds: float = 10.0

    # Tenancy settings
    root_origin: str = "http://localhost:3000"
    loopback_label: str = "localhost"
    redirect_on_tenant_failure: bool = False

    # Routing settings
    marketing_path: str = "/index"
    login_path: str = "/login"
    admin_role: str = "ADMIN"

    # Logging settings
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
