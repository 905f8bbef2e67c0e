from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./sellerhub.db"
    app_secret_key: str

    marketplace_app_key: str
    marketplace_app_secret: str
    marketplace_api_base: str = "https://api.lazada.com/rest"
    marketplace_auth_base: str = "https://auth.lazada.com/rest"
    marketplace_authorize_url: str = "https://auth.lazada.com/oauth/authorize"
    marketplace_redirect_uri: str = "http://localhost:8000/auth/callback"

    request_timeout_sec: float = 30.0
    log_level: str = "INFO"
    log_health_checks: bool = False

settings = Settings()
