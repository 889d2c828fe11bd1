"""
Adapters for the external ABI-to-typed-bindings generator.

The generator itself is opaque: it is handed one canonical ``<Name>.json``
artifact and an output directory and is expected to write typed bindings
named ``<Name>.ts`` there.  The default adapter shells out to TypeChain.
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path
from typing import Protocol

import structlog

from registry.errors import BindingGenerationError

logger = structlog.get_logger(__name__)


class BindingGenerator(Protocol):
    """Interface shared by all binding generator adapters."""

    #: Whether the generator produces a ``<Name>`` type wrappers can return.
    typed: bool

    async def generate(self, contract: str, artifact_path: Path, out_dir: Path) -> None:
        ...


class TypeChainGenerator:
    """Run ``typechain --target <target> --out-dir <dir> <artifact>``.

    Parameters
    ----------
    command:
        How to invoke TypeChain, split with :func:`shlex.split`
        (e.g. ``"npx typechain"``).
    target:
        TypeChain target, ``ethers-v5`` by default.
    cwd:
        Working directory for the subprocess.
    """

    typed = True

    def __init__(
        self,
        command: str = "npx typechain",
        target: str = "ethers-v5",
        cwd: Path | None = None,
    ) -> None:
        self._argv = shlex.split(command)
        self._target = target
        self._cwd = cwd

    def build_argv(self, artifact_path: Path, out_dir: Path) -> list[str]:
        return [
            *self._argv,
            "--target",
            self._target,
            "--out-dir",
            str(out_dir),
            str(artifact_path),
        ]

    async def generate(self, contract: str, artifact_path: Path, out_dir: Path) -> None:
        argv = self.build_argv(artifact_path, out_dir)
        logger.debug("bindings.typechain.start", contract=contract, argv=argv)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=self._cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise BindingGenerationError(
                f"cannot start {argv[0]!r}: {exc}", contract=contract
            ) from exc

        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            output = (stderr or stdout).decode(errors="replace").strip()
            logger.error(
                "bindings.typechain.failed",
                contract=contract,
                returncode=proc.returncode,
                output=output[:500],
            )
            raise BindingGenerationError(
                f"typechain exited with status {proc.returncode}: {output[:200]}",
                contract=contract,
            )

        logger.debug("bindings.typechain.done", contract=contract, out_dir=str(out_dir))


class NullBindingGenerator:
    """Skip typed binding generation entirely (``--no-bindings``)."""

    typed = False

    async def generate(self, contract: str, artifact_path: Path, out_dir: Path) -> None:
        logger.debug("bindings.skipped", contract=contract)
