"""Application configuration via pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "COBS_",
        "extra": "ignore",
    }

    # Codec
    MARKER: int = 0x00

    # CLI
    HEX: bool = False
    LOG_LEVEL: str = "INFO"

    @field_validator("MARKER", mode="before")
    @classmethod
    def parse_byte(cls, v: object) -> object:
        if isinstance(v, str):
            # Accept "0x0A" as well as "10"
            return int(v.strip(), 0)
        return v

    @field_validator("MARKER")
    @classmethod
    def validate_byte(cls, v: int) -> int:
        if not 0 <= v <= 0xFF:
            raise ValueError(f"must be a single byte (0-255), got {v}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(
                f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, got '{v}'"
            )
        return v
