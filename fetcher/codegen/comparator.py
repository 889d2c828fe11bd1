"""
Decide whether a contract's cached artifact must be (re)generated.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

import structlog

from codegen.config import FetcherConfig
from codegen.naming import ContractNames
from registry.errors import MalformedArtifact, MalformedResponse
from registry.models import CachedArtifact, ContractDescriptor, parse_timestamp

logger = structlog.get_logger(__name__)


class Freshness(str, enum.Enum):
    """State of the cached artifact relative to the remote descriptor."""

    MISSING = "missing"
    STALE = "stale"
    CURRENT = "current"


@dataclass(frozen=True)
class Decision:
    """Per-contract outcome of the comparison, threaded through the run loop."""

    freshness: Freshness
    generate: bool
    cached: CachedArtifact | None = None

    @property
    def needs_confirmation(self) -> bool:
        """Remote is newer but overwriting was not requested."""
        return self.freshness is Freshness.STALE and not self.generate


def should_regenerate(
    descriptor: ContractDescriptor,
    outdir: Path,
    mode: str = "timestamp",
) -> tuple[Freshness, CachedArtifact | None]:
    """Compare *descriptor* with the artifact cached under *outdir*.

    Parameters
    ----------
    descriptor:
        Contract fetched from the registry this run.
    outdir:
        Root output directory.
    mode:
        ``"timestamp"``: stale when the remote date is strictly newer.
        ``"address"``: stale when the addresses differ.

    Returns
    -------
    tuple
        The :class:`Freshness` and the loaded artifact (``None`` if missing).

    Raises
    ------
    ContractNameError
        If the descriptor name cannot be sanitized.
    MalformedArtifact
        If a cached artifact exists but cannot be parsed.
    MalformedResponse
        If the remote ``inserted_at`` is not a timestamp (recoverable per contract).
    """
    path = ContractNames.for_contract(descriptor.name).artifact_path(outdir)
    if not path.exists():
        return Freshness.MISSING, None

    cached = CachedArtifact.from_file(path)

    if mode == "address":
        stale = descriptor.version_signal(mode) != cached.address
    else:
        try:
            remote = parse_timestamp(descriptor.version_signal(mode))
        except ValueError as exc:
            raise MalformedResponse(
                f"registry inserted_at {descriptor.date!r} is not an ISO-8601 timestamp: {exc}",
                contract=descriptor.name,
                phase="compare",
            ) from exc
        try:
            local = parse_timestamp(cached.date)
        except ValueError as exc:
            raise MalformedArtifact(
                f"cached artifact date {cached.date!r} is not an ISO-8601 timestamp: {exc}",
                contract=descriptor.name,
            ) from exc
        stale = remote > local

    return (Freshness.STALE if stale else Freshness.CURRENT), cached


def decide(
    descriptor: ContractDescriptor,
    outdir: Path,
    config: FetcherConfig,
) -> Decision:
    """Return whether *descriptor* should be written this run.

    A missing artifact is always generated.  A stale one is generated only
    when ``config.update`` is set.
    """
    freshness, cached = should_regenerate(descriptor, outdir, config.compare)

    if freshness is Freshness.MISSING:
        generate = True
    elif freshness is Freshness.STALE:
        generate = config.update
    else:
        generate = False

    logger.debug(
        "comparator.decided",
        contract=descriptor.name,
        freshness=freshness.value,
        generate=generate,
        mode=config.compare,
    )
    return Decision(freshness=freshness, generate=generate, cached=cached)
