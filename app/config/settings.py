from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # anon key
    supabase_service_role_key: Optional[str] = None  # Required for sweeps and cross-user reads

    # Public web app (invite links, deep links)
    public_web_base_url: str = "https://dinnerbell.app"

    # Analytics forwarding (optional)
    analytics_endpoint: Optional[str] = None

    # Dev-only sign-in (ignored unless debug is on)
    dev_sign_in_email: Optional[str] = None
    dev_sign_in_password: Optional[str] = None

    # Push / e-mail / SMS providers
    push_api_url: str = "https://exp.host/--/api/v2/push/send"
    resend_api_key: Optional[str] = None
    invite_from_email: str = "Dinner Bell <invites@dinner-bell.app>"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_messaging_service_sid: Optional[str] = None
    http_timeout_sec: float = 10.0

    # Notification sweep
    cron_secret: Optional[str] = None
    notification_sweep_enabled: bool = False
    notification_sweep_interval_sec: int = 60
    notification_stale_after_minutes: int = 15

    # Event aggregate fetch fan-out
    aggregate_fetch_workers: int = 6

    # App
    app_name: str = "dinner-bell-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    invite_rate_limit: str = "30/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def dev_sign_in_enabled(self) -> bool:
        return self.debug and bool(self.dev_sign_in_email and self.dev_sign_in_password)

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
