"""
Runtime Configuration.

- Reads PADORA_* variables from the environment.
- A .env file in the working directory is loaded first (python-dotenv).
- Values are validated by a Pydantic model.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from padora.crypto.aes import AES_KEY_SIZES

# --- Limits for the number of secret-message blocks ---

DEFAULT_NUM_BLOCKS = 3
MIN_NUM_BLOCKS = 1
MAX_NUM_BLOCKS = 4_000

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """All tunables of the demo and the cracker."""
    key_hex: Optional[str] = None      # Hex AES key; a random key is used when unset
    num_blocks: int = Field(DEFAULT_NUM_BLOCKS, ge=MIN_NUM_BLOCKS, le=MAX_NUM_BLOCKS)
    workers: int = Field(1, ge=1)
    strict: bool = False
    progress_interval: int = Field(10_000, ge=1)
    log_level: str = "WARNING"

    @field_validator("key_hex")
    @classmethod
    def _check_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            key = bytes.fromhex(value)
        except ValueError:
            raise ValueError("PADORA_KEY is not a hex string.")
        if len(key) not in AES_KEY_SIZES:
            raise ValueError("PADORA_KEY must encode 16, 24 or 32 bytes.")
        return value.lower()

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def key(self) -> Optional[bytes]:
        return bytes.fromhex(self.key_hex) if self.key_hex else None


# Environment variable -> Settings field
ENV_VARS = {
    "PADORA_KEY": "key_hex",
    "PADORA_NUM_BLOCKS": "num_blocks",
    "PADORA_WORKERS": "workers",
    "PADORA_STRICT": "strict",
    "PADORA_PROGRESS_INTERVAL": "progress_interval",
    "PADORA_LOG_LEVEL": "log_level",
}

def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """
    Builds the Settings from the environment.

    Raises:
        ValueError: a variable is set to an invalid value.
    """
    load_dotenv(dotenv_path)

    values = {}
    for env_name, field_name in ENV_VARS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()

    return Settings.model_validate(values)
