from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # Local file by default; "sqlite://" is the ephemeral in-memory mode
    DATABASE_URL: str = "sqlite:///todos.db"
    TEST_DATABASE_URL: str = "sqlite://"
    SQL_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # Bootstrap account, rotated on first login by the surrounding system
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@localhost.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin"

    # Security
    MIN_PASSWORD_LENGTH: int = 6

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
