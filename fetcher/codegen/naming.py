"""
Every generated file name and exported symbol, derived from a contract name.

All names are pure functions of the sanitized contract name so that repeated
runs against the same registry produce the same tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from registry.models import sanitize_name

#: Module formats the writer knows how to emit.
FORMATS = ("ts", "mjs", "js")

AGGREGATE_INDEX = "types.ts"


@dataclass(frozen=True)
class ContractNames:
    """Derived names for one contract, keyed by its sanitized name."""

    name: str

    @classmethod
    def for_contract(cls, raw_name: str) -> ContractNames:
        return cls(sanitize_name(raw_name))

    @property
    def directory(self) -> str:
        return f"{self.name}.sol"

    @property
    def artifact_file(self) -> str:
        return f"{self.name}.json"

    @property
    def data_symbol(self) -> str:
        return f"{self.name}Data"

    @property
    def wrapper_function(self) -> str:
        return f"get{self.name}Contract"

    @property
    def bindings_module(self) -> str:
        """Module specifier of the typed bindings, relative to the contract directory."""
        return f"./{self.name}"

    def data_module(self, fmt: str) -> str:
        return f"{self.data_symbol}.{fmt}"

    def wrapper_module(self, fmt: str) -> str:
        return f"{self.name}Contract.{fmt}"

    def index_module(self, fmt: str) -> str:
        return f"index.{fmt}"

    def contract_dir(self, outdir: Path) -> Path:
        return outdir / self.directory

    def artifact_path(self, outdir: Path) -> Path:
        return self.contract_dir(outdir) / self.artifact_file

    def aggregate_entry(self, typed: bool = True) -> str:
        """Path re-exported from the top-level ``types.ts``.

        Without typed bindings there is no ``<Name>.ts``; the per-contract
        ``index.ts`` is re-exported instead.
        """
        if typed:
            return f"./{self.directory}/{self.name}.ts"
        return f"./{self.directory}/{self.index_module('ts')}"
