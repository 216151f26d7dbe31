from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    database_url: str

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12
    # Honour X-Forwarded-For when resolving the voter key
    trust_proxy_headers: bool = False

    # File Upload
    upload_dir: str = "./uploads"
    max_file_size: int = 5242880  # 5MB
    allowed_image_extensions: str = "jpg,jpeg,png,gif"

    # CORS
    cors_origins: str = "*"

    # Payments
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_webhook_tolerance: int = 300
    frontend_url: str = "http://localhost:5173"

    # Contest sweep
    scheduler_enabled: bool = True
    contest_sweep_interval_seconds: int = 60

    # Bootstrap admin account
    admin_email: str = ""
    admin_password: str = ""

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def image_extensions(self) -> List[str]:
        return [
            ext.strip().lower().lstrip(".")
            for ext in self.allowed_image_extensions.split(",")
            if ext.strip()
        ]


settings = Settings()
