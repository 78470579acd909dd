from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .container.client import DEFAULT_ENDPOINT_TEMPLATE
from .exceptions import ConfigurationError


class SyncConfiguration(BaseSettings):
    destination_root: Path
    account: str = Field(min_length=1)
    container: str = Field(min_length=1)
    max_results: int | None = Field(default=None, ge=0)

    endpoint_template: str = DEFAULT_ENDPOINT_TEMPLATE
    concurrency: int = Field(default=8, ge=1)
    listing_timeout: float | None = Field(default=30.0, gt=0)
    fetch_timeout: float | None = Field(default=60.0, gt=0)
    fetch_attempts: int = Field(default=1, ge=1)
    interleave: bool = False

    model_config = SettingsConfigDict(
        env_prefix="BLOBMIRROR_", frozen=True, extra="ignore"
    )

    @field_validator("destination_root", mode="before")
    @classmethod
    def _destination_not_empty(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("destination root must not be empty")
        return value

    @field_validator("max_results")
    @classmethod
    def _zero_means_default(cls, value: int | None) -> int | None:
        return value or None

    @field_validator("endpoint_template")
    @classmethod
    def _template_has_placeholders(cls, value: str) -> str:
        if "{container}" not in value:
            raise ValueError("endpoint template must contain '{container}'")
        try:
            value.format(account="account", container="container")
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise ValueError(
                "endpoint template may only use {account} and {container}"
            ) from e
        return value


def load_configuration(**values) -> SyncConfiguration:
    """
    Build the run configuration from explicit values, falling back to
    `BLOBMIRROR_*` environment variables for anything passed as None.
    """
    explicit = {k: v for k, v in values.items() if v is not None}
    try:
        return SyncConfiguration(**explicit)
    except ValidationError as e:
        fields = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
        missing = sorted(
            {str(error["loc"][0]) for error in e.errors() if error["type"] == "missing"}
        )
        if missing:
            message = f"missing required configuration: {', '.join(missing)}"
        else:
            message = f"invalid configuration: {', '.join(fields)}"
        raise ConfigurationError(message, fields=fields) from e
