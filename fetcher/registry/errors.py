"""
Error types raised while fetching and generating contract artifacts.

Every error carries the contract it concerns (when known) and the phase of
the run it came from, so an operator can tell *what* failed *where* from the
message alone.  Fetch-phase errors abort the whole run; generation-phase
errors are isolated to a single contract by the run loop.
"""

from __future__ import annotations


class FetcherError(RuntimeError):
    """Base class for all fetcher errors."""

    #: Run phase the error originated from.  Subclasses override.
    phase: str = "run"

    def __init__(
        self,
        message: str,
        contract: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.contract = contract
        if phase is not None:
            self.phase = phase

    def __str__(self) -> str:
        if self.contract:
            return f"[{self.phase}] {self.contract}: {self.message}"
        return f"[{self.phase}] {self.message}"


# ---------------------------------------------------------------------------
# Fatal (fetch phase)
# ---------------------------------------------------------------------------


class NetworkFailure(FetcherError):
    """Registry or ABI request failed, or returned a non-success envelope."""

    phase = "registry"


class MalformedResponse(FetcherError):
    """Registry data is unusable: an ABI document without embedded JSON in
    ``result``, or an ``inserted_at`` that is not a timestamp.

    Raised while fetching it aborts the run; raised while comparing it only
    fails that contract.
    """

    phase = "abi"


# ---------------------------------------------------------------------------
# Recoverable (per contract)
# ---------------------------------------------------------------------------


class ContractNameError(FetcherError):
    """Sanitized name is not usable as a path segment and identifier."""

    phase = "sanitize"


class MalformedArtifact(FetcherError):
    """A cached ``<Name>.json`` exists but cannot be read back."""

    phase = "compare"


class FilesystemFailure(FetcherError):
    """Creating a directory or writing a generated file failed."""

    phase = "write"


class BindingGenerationError(FetcherError):
    """The external binding generator exited unsuccessfully."""

    phase = "bindings"
