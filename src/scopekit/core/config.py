"""scopekit settings.

Read from `SCOPEKIT_`-prefixed environment variables or a .env file. The
CREATE2 parameters decide condition storage addresses, so changing them
points every condition at a different address.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ERC2470_SINGLETON_FACTORY_ADDRESS = "0xce0042b868300000d44a59004da54a005ffdcf9f"
ZERO_SALT = "0x" + "00" * 32

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


class Settings(BaseSettings):
    """Engine settings, validated on load."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCOPEKIT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "scopekit"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Condition Storage Settings
    singleton_factory_address: str = Field(
        default=ERC2470_SINGLETON_FACTORY_ADDRESS,
        description="CREATE2 deployer that stores condition bytecode",
    )
    create2_salt: str = Field(
        default=ZERO_SALT,
        description="Salt used when deriving condition storage addresses",
    )

    # Normalization Settings
    push_down_or: bool = Field(
        default=True,
        description="Default for normalize_condition(push_down=...) when not given",
    )

    @field_validator("singleton_factory_address")
    @classmethod
    def validate_factory_address(cls, v: str) -> str:
        """Validate the factory is a 20-byte hex address and lower-case it."""
        if not _ADDRESS_PATTERN.match(v):
            raise ValueError(f"Invalid factory address: {v!r}")
        return v.lower()

    @field_validator("create2_salt")
    @classmethod
    def validate_salt(cls, v: str) -> str:
        """Validate the salt is a 32-byte hex string."""
        if not _BYTES32_PATTERN.match(v):
            raise ValueError(f"Invalid CREATE2 salt: {v!r}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded on first use.

    Call `get_settings.cache_clear()` to pick up environment changes.
    """
    return Settings()
