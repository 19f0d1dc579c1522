"""Runtime settings for the schema provisioner.

Values come from ``PROVISIONER_*`` environment variables or a ``.env`` file,
so deployments can tune the size budget and bundle retention without code
changes.

Examples:
    >>> from provisioner.core.settings import ProvisionerSettings
    >>> settings = ProvisionerSettings(retain_bundle=True)
    >>> settings.bundle_size_limit
    47185920.0
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Largest message the database transport accepts, in bytes.
DEFAULT_MAX_MESSAGE_LENGTH = 50 * 1024 * 1024

# Share of the maximum message a bundle may use; the rest is framing headroom.
BUNDLE_SIZE_RATIO = 0.9


class ProvisionerSettings(BaseSettings):
    """Settings shared by the builder and the CLI.

    Fields
    ──────
    max_message_length : Transport maximum message size in bytes
    retain_bundle      : Keep the bundle file after a successful upload
    temp_dir_prefix    : Prefix of the per-run temporary directory
    log_level          : Structlog log level
    json_logs          : Force JSON (True) or console (False) log output
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVISIONER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Transport ────────────────────────────────────────────────
    max_message_length: int = Field(
        default=DEFAULT_MAX_MESSAGE_LENGTH,
        gt=0,
        description="Maximum transport message size in bytes",
    )

    # ── Bundle ───────────────────────────────────────────────────
    retain_bundle: bool = False
    temp_dir_prefix: str = "schema_bundle_"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @property
    def bundle_size_limit(self) -> float:
        """Largest bundle size in bytes that may be uploaded."""
        return self.max_message_length * BUNDLE_SIZE_RATIO
