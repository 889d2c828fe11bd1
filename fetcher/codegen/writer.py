"""
Artifact writer: materialises one contract's generated directory.

Layout produced under ``<outdir>/<Name>.sol/``::

    <Name>.json               canonical artifact {date, address, contractName, abi}
    <Name>Data.{ts,mjs,js}    artifact re-exported as <Name>Data
    <Name>Contract.{ts,mjs,js} get<Name>Contract(provider) factory
    <Name>.ts, factories/...  typed bindings (external generator)
    index.{ts,mjs,js}         per-contract re-exports

Every file is regenerated from the canonical artifact, so writing the same
descriptor twice yields byte-identical output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import structlog

from codegen.bindings import BindingGenerator, NullBindingGenerator
from codegen.naming import FORMATS, ContractNames
from codegen.templates import DataModule, IndexModule, WrapperModule
from registry.errors import FetcherError, FilesystemFailure
from registry.models import CachedArtifact, ContractDescriptor

logger = structlog.get_logger(__name__)


@dataclass
class WriteResult:
    """Files written for one contract, in write order."""

    contract: str
    directory: Path
    files: list[Path] = field(default_factory=list)


class ArtifactWriter:
    """Writes the canonical artifact and its derived modules for a contract.

    Parameters
    ----------
    bindings:
        Binding generator run against the canonical JSON.  Defaults to
        :class:`NullBindingGenerator`.
    formats:
        Module formats to emit for data, wrapper and index modules.
    """

    def __init__(
        self,
        bindings: BindingGenerator | None = None,
        formats: Sequence[str] = FORMATS,
    ) -> None:
        self._bindings = bindings or NullBindingGenerator()
        self._formats = tuple(formats)

    @property
    def typed(self) -> bool:
        """Whether written contracts get a ``<Name>.ts`` typed binding."""
        return self._bindings.typed

    @property
    def formats(self) -> tuple[str, ...]:
        return self._formats

    def _write(self, result: WriteResult, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise FilesystemFailure(
                f"cannot write {path}: {exc}", contract=result.contract
            ) from exc
        result.files.append(path)

    def _restore_artifact(self, path: Path, previous: bytes | None) -> None:
        """Put back the artifact that was on disk before a failed write."""
        try:
            if previous is None:
                path.unlink(missing_ok=True)
            else:
                path.write_bytes(previous)
        except OSError:
            logger.exception("writer.restore_failed", path=str(path))
            return
        logger.warning("writer.artifact_restored", path=str(path), existed=previous is not None)

    async def write(self, descriptor: ContractDescriptor, outdir: Path) -> WriteResult:
        """Generate every file for *descriptor* under *outdir*.

        If any step after the directory is created fails, the canonical
        ``<Name>.json`` is put back to what it was before (or removed when
        there was none), so the next run sees the contract as missing or
        stale again instead of current.

        Raises
        ------
        ContractNameError
            If the descriptor name cannot be sanitized.
        FilesystemFailure
            If the directory or any file cannot be written.
        BindingGenerationError
            If the binding generator fails.
        """
        names = ContractNames.for_contract(descriptor.name)
        artifact = CachedArtifact.from_descriptor(descriptor)
        contract_dir = names.contract_dir(outdir)
        result = WriteResult(contract=names.name, directory=contract_dir)

        # 1. Directory
        try:
            contract_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemFailure(
                f"cannot create {contract_dir}: {exc}",
                contract=names.name,
                phase="mkdir",
            ) from exc

        artifact_path = contract_dir / names.artifact_file
        try:
            previous: bytes | None = artifact_path.read_bytes()
        except FileNotFoundError:
            previous = None
        except OSError as exc:
            raise FilesystemFailure(
                f"cannot read {artifact_path}: {exc}", contract=names.name
            ) from exc

        typed = self._bindings.typed
        try:
            # 2. Canonical JSON
            self._write(result, artifact_path, artifact.dumps())

            # 3. Data modules
            data = DataModule(names=names, artifact=artifact)
            for fmt in self._formats:
                self._write(result, contract_dir / names.data_module(fmt), data.render(fmt))

            # 4. Typed bindings (must follow the canonical JSON)
            await self._bindings.generate(names.name, artifact_path, contract_dir)

            # 5. Wrapper modules
            wrapper = WrapperModule(names=names, typed=typed)
            for fmt in self._formats:
                self._write(result, contract_dir / names.wrapper_module(fmt), wrapper.render(fmt))

            # 6. Index modules (replaces any index the binding generator wrote)
            index = IndexModule(names=names, typed=typed)
            for fmt in self._formats:
                self._write(result, contract_dir / names.index_module(fmt), index.render(fmt))
        except FetcherError:
            self._restore_artifact(artifact_path, previous)
            raise

        logger.info(
            "writer.wrote",
            contract=names.name,
            directory=str(contract_dir),
            files=len(result.files),
            typed=typed,
        )
        return result
