from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///usercenter.db"
    secret_key: str = "change-me-in-production"
    session_cookie: str = "usercenter_session"
    session_max_age: int = 60 * 60 * 24 * 7
    default_page_size: int = 10
    max_page_size: int = 100
    log_level: str = "INFO"
    root_account: str | None = None
    root_password: str | None = None

    class Config:
        env_prefix = "USERCENTER_"


settings = Settings()
