# app/config.py
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"

    # Validation
    VALIDATE_FORMATS: bool = True      # check "format" keywords (email, date-time, ...)
    SCHEMA_CACHE_SIZE: int = 128       # compiled schemas kept in memory

    # MCP host identity
    MCP_SERVER_NAME: str = "json-validate"
    MCP_SERVER_VERSION: str = "0.1.0"

    # Logged argument previews are cut to this many characters
    LOG_PREVIEW_CHARS: int = 200

    class Config:
        env_file = ".env"
