"""
Fetcher run configuration loaded from environment variables and CLI flags.

Uses ``pydantic-settings`` for validated, typed configuration.  The instance
is frozen: one run reads one configuration, and per-contract decisions are
returned by the comparator rather than stored back here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from codegen.naming import FORMATS
from registry.constants import (
    CAYENNE_REGISTRY_URL,
    DEFAULT_NETWORK,
    DEFAULT_OUTDIR,
    SERRANO_REGISTRY_URL,
)


class FetcherConfig(BaseSettings):
    """Configuration for one fetch-and-generate run.

    All values can be overridden via ``LIT_CONTRACTS_*`` environment
    variables (case-insensitive) or a ``.env`` file; CLI flags take
    precedence over both.
    """

    model_config = {
        "env_prefix": "LIT_CONTRACTS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    # ---- Output ----
    outdir: Path = Field(
        default=Path(DEFAULT_OUTDIR),
        description="Root directory receiving one <Name>.sol/ folder per contract.",
    )
    formats: str = Field(
        default=",".join(FORMATS),
        description="Comma-separated module formats to emit (ts, mjs, js).",
    )

    # ---- Registry ----
    network: Literal["cayenne", "serrano"] = Field(
        default=DEFAULT_NETWORK,
        description="Which registry endpoint to read.",
    )
    index: int = Field(
        default=0,
        ge=0,
        description="Position in each contract's version list to generate from.",
    )
    cayenne_registry_url: str = Field(default=CAYENNE_REGISTRY_URL)
    serrano_registry_url: str = Field(default=SERRANO_REGISTRY_URL)
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # ---- Sync policy ----
    update: bool = Field(
        default=False,
        description="Overwrite artifacts whose remote version is newer.",
    )
    compare: Literal["timestamp", "address"] = Field(
        default="timestamp",
        description=(
            "'timestamp' regenerates when the remote inserted_at is newer, "
            "'address' when the deployed address differs."
        ),
    )

    # ---- Binding generator ----
    generate_bindings: bool = Field(
        default=True,
        description="Run TypeChain against each written artifact.",
    )
    typechain_command: str = Field(
        default="npx typechain",
        description="Command used to invoke TypeChain.",
    )
    typechain_target: str = Field(default="ethers-v5")

    @field_validator("formats")
    @classmethod
    def _check_formats(cls, value: str) -> str:
        requested = [f.strip().lstrip(".") for f in value.split(",") if f.strip()]
        if not requested:
            raise ValueError("at least one module format is required")
        unknown = sorted(set(requested) - set(FORMATS))
        if unknown:
            raise ValueError(f"unknown module format(s): {', '.join(unknown)}")
        return ",".join(requested)

    @property
    def format_list(self) -> tuple[str, ...]:
        """Enabled formats in canonical order, without duplicates."""
        enabled = set(self.formats.split(","))
        return tuple(fmt for fmt in FORMATS if fmt in enabled)

    @property
    def registry_url(self) -> str:
        if self.network == "serrano":
            return self.serrano_registry_url
        return self.cayenne_registry_url
