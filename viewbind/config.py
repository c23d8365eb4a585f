"""
viewbind configuration
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Generator and API settings (environment prefix ``VIEWBIND_``)"""

    # Generator
    SOURCE_ROOT: str = "."
    OUTPUT_ROOT: str | None = None      # None: write binders next to sources
    REPORT_DIR: str | None = None
    PRUNE: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    API_TITLE: str = "viewbind API"
    API_VERSION: str = "0.1.0"

    class Config:
        env_prefix = "VIEWBIND_"
        env_file = ".env"
        case_sensitive = True


settings = Settings()
