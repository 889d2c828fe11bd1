"""
In-memory records for remote contracts and their cached on-disk artifacts.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from registry.errors import ContractNameError, MalformedArtifact

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_WHITESPACE_RE = re.compile(r"\s+")
_FRACTION_RE = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def sanitize_name(name: str) -> str:
    """Strip all whitespace from a registry contract name.

    ``"PKP Helper"`` becomes ``"PKPHelper"``.  The result must be usable both
    as a directory name and as a JS/TS identifier.

    Raises
    ------
    ContractNameError
        If the stripped name is empty or not a valid identifier.
    """
    sanitized = _WHITESPACE_RE.sub("", name)
    if not _IDENTIFIER_RE.match(sanitized):
        raise ContractNameError(
            f"name {name!r} does not sanitize to a valid identifier",
            contract=name,
        )
    return sanitized


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; ``Z`` and naive values are taken as UTC."""
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat on 3.10 only takes 3 or 6 fractional digits
    text = _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ContractDescriptor:
    """One contract entry fetched from the registry during this run."""

    name: str
    address: str
    date: str
    abi: Any
    symbol: str | None = None

    @property
    def sanitized_name(self) -> str:
        return sanitize_name(self.name)

    def version_signal(self, mode: str) -> str:
        """Return the value compared against the cache under *mode*.

        ``"timestamp"`` compares the ``inserted_at`` date, ``"address"``
        compares the deployed address.
        """
        if mode == "address":
            return self.address
        return self.date


@dataclass(frozen=True)
class CachedArtifact:
    """The canonical ``<Name>.json`` record of what was last generated."""

    date: str
    address: str
    contract_name: str
    abi: Any

    @classmethod
    def from_descriptor(cls, descriptor: ContractDescriptor) -> CachedArtifact:
        return cls(
            date=descriptor.date,
            address=descriptor.address,
            contract_name=descriptor.sanitized_name,
            abi=descriptor.abi,
        )

    @classmethod
    def from_file(cls, path: Path) -> CachedArtifact:
        """Load an artifact previously written by the artifact writer.

        Raises
        ------
        MalformedArtifact
            If the file is unreadable, not JSON, or lacks required keys.
        """
        try:
            data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
            return cls(
                date=data["date"],
                address=data["address"],
                contract_name=data["contractName"],
                abi=data.get("abi"),
            )
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as exc:
            raise MalformedArtifact(
                f"cannot load cached artifact {path}: {exc}",
                contract=path.stem,
            ) from exc

    def to_json(self) -> dict[str, Any]:
        """Return the serialisable form with the canonical key order."""
        return {
            "date": self.date,
            "address": self.address,
            "contractName": self.contract_name,
            "abi": self.abi,
        }

    def dumps(self) -> str:
        """Canonical text: 2-space indent, no trailing newline."""
        return json.dumps(self.to_json(), indent=2, ensure_ascii=False)
