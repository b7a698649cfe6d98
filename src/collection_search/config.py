import re
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

FIELD_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.]+$")


def parse_field_list(raw: str) -> List[str]:
    """
    Split a comma-separated field list and validate every dot-path.

    Raises
    ------
    ValueError
        If a field name contains anything other than alphanumerics,
        dots and underscores.
    """
    if not raw:
        return []

    fields = [part.strip() for part in raw.split(",")]
    fields = [f for f in fields if f]

    for field in fields:
        if not FIELD_NAME_PATTERN.match(field):
            raise ValueError(
                f"Invalid field name: {field}. Field names must contain only "
                "alphanumeric characters, dots, and underscores."
            )

    return fields


class Settings(BaseSettings):
    # Comma-separated dot-paths, parsed by the *_list properties below
    searchable_fields: str = ""
    default_return_fields: str = ""
    searchable_collections: str = ""

    enable_fuzzy_search: bool = False
    fuzzy_search_typo_tolerance: int = Field(default=4, ge=1)
    enable_case_sensitive_search: bool = False

    default_search_limit: int = Field(default=50, ge=1)
    max_search_limit: int = Field(default=1000, ge=1)

    # 0 disables rate limiting
    rate_limit_requests_per_minute: int = Field(default=60, ge=0)
    rate_limit_window_minutes: int = Field(default=1, ge=1)

    database_url: str = "sqlite+aiosqlite:///./collection_search.db"

    slow_search_ms: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @field_validator("searchable_fields", "default_return_fields")
    @classmethod
    def validate_field_names(cls, v: str) -> str:
        parse_field_list(v)
        return v

    @property
    def searchable_field_list(self) -> List[str]:
        return parse_field_list(self.searchable_fields)

    @property
    def return_field_list(self) -> List[str]:
        return parse_field_list(self.default_return_fields)

    @property
    def searchable_collection_list(self) -> List[str]:
        return [c.strip() for c in self.searchable_collections.split(",") if c.strip()]

    @property
    def rate_limit_window_ms(self) -> int:
        return self.rate_limit_window_minutes * 60 * 1000


settings = Settings()
