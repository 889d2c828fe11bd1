"""
Top-level ``types.ts`` re-exporting every fetched contract's bindings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import structlog

from codegen.naming import AGGREGATE_INDEX, FORMATS, ContractNames
from codegen.templates import AggregateIndex
from registry.errors import ContractNameError, FilesystemFailure
from registry.models import ContractDescriptor

logger = structlog.get_logger(__name__)


def write_aggregate_index(
    descriptors: Sequence[ContractDescriptor],
    outdir: Path,
    typed: bool = True,
    formats: Sequence[str] = FORMATS,
) -> Path | None:
    """Overwrite ``<outdir>/types.ts`` with one line per descriptor.

    Every descriptor in the fetched set is listed, in fetch order, whether
    or not it was regenerated this run.  Descriptors whose names cannot be
    sanitized are left out, as are later descriptors sanitizing to a name
    already listed.

    With *typed* unset each line points at the contract's ``index.ts``
    instead of its ``<Name>.ts`` binding.  If neither exists (untyped and
    ``ts`` not among *formats*) nothing is written and ``None`` is returned.
    """
    if not typed and "ts" not in formats:
        logger.warning(
            "aggregator.skipped",
            reason="no typed bindings and no ts index modules to re-export",
        )
        return None

    contracts: list[ContractNames] = []
    seen: set[str] = set()
    for descriptor in descriptors:
        try:
            names = ContractNames.for_contract(descriptor.name)
        except ContractNameError:
            logger.warning("aggregator.contract_skipped", contract=descriptor.name)
            continue
        if names.name in seen:
            logger.warning("aggregator.duplicate_skipped", contract=descriptor.name)
            continue
        seen.add(names.name)
        contracts.append(names)

    path = outdir / AGGREGATE_INDEX
    try:
        path.write_text(AggregateIndex(contracts, typed=typed).render(), encoding="utf-8")
    except OSError as exc:
        raise FilesystemFailure(f"cannot write {path}: {exc}") from exc

    logger.info("aggregator.wrote", path=str(path), contracts=len(contracts), typed=typed)
    return path
