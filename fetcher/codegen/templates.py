"""
Source builders for the modules emitted next to each contract artifact.

One builder per output kind.  Builders only produce text; the artifact
writer decides where it goes.  Three module formats are supported:

* ``ts``  -- TypeScript, ES module syntax
* ``mjs`` -- JavaScript ES module, explicit ``.mjs`` import specifiers
* ``js``  -- JavaScript CommonJS
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from codegen.naming import ContractNames
from registry.models import CachedArtifact


class ModuleTemplate:
    """Dispatch ``render(fmt)`` to a per-format method."""

    def render(self, fmt: str) -> str:
        renderer = getattr(self, f"_render_{fmt}", None)
        if renderer is None:
            raise ValueError(f"{type(self).__name__} cannot render format {fmt!r}")
        return renderer()


@dataclass(frozen=True)
class DataModule(ModuleTemplate):
    """Re-exports the canonical artifact JSON as ``<Name>Data``."""

    names: ContractNames
    artifact: CachedArtifact

    def _render_ts(self) -> str:
        return f"export const {self.names.data_symbol} = {self.artifact.dumps()}"

    def _render_mjs(self) -> str:
        return self._render_ts()

    def _render_js(self) -> str:
        return f"exports.{self.names.data_symbol} = {self.artifact.dumps()}"


@dataclass(frozen=True)
class WrapperModule(ModuleTemplate):
    """Exposes ``get<Name>Contract(provider)`` building an ``ethers.Contract``.

    When *typed* is set the TypeScript wrapper narrows the returned contract
    to the ``<Name>`` interface produced by the binding generator.
    """

    names: ContractNames
    typed: bool = False

    def _construct(self) -> str:
        data = self.names.data_symbol
        return f"new ethers.Contract({data}.address, {data}.abi, provider)"

    def _render_ts(self) -> str:
        n = self.names
        lines = ['import { ethers } from "ethers";']
        if self.typed:
            lines.append(f'import type {{ {n.name} }} from "{n.bindings_module}";')
        lines.append(f'import {{ {n.data_symbol} }} from "./{n.data_symbol}";')
        lines.append("")
        return_type = n.name if self.typed else "ethers.Contract"
        body = self._construct()
        if self.typed:
            body = f"{body} as unknown as {n.name}"
        lines.extend(
            [
                f"export function {n.wrapper_function}(",
                "  provider: ethers.Signer | ethers.providers.Provider",
                f"): {return_type} {{",
                f"  return {body};",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    def _render_mjs(self) -> str:
        n = self.names
        return "\n".join(
            [
                'import { ethers } from "ethers";',
                f'import {{ {n.data_symbol} }} from "./{n.data_module("mjs")}";',
                "",
                f"export function {n.wrapper_function}(provider) {{",
                f"  return {self._construct()};",
                "}",
                "",
            ]
        )

    def _render_js(self) -> str:
        n = self.names
        return "\n".join(
            [
                'const { ethers } = require("ethers");',
                f'const {{ {n.data_symbol} }} = require("./{n.data_module("js")}");',
                "",
                f"function {n.wrapper_function}(provider) {{",
                f"  return {self._construct()};",
                "}",
                "",
                f"module.exports = {{ {n.wrapper_function} }};",
                "",
            ]
        )


@dataclass(frozen=True)
class IndexModule(ModuleTemplate):
    """Per-contract ``index`` re-exporting data, wrapper and typed bindings.

    Typed bindings are TypeScript-only, so only ``index.ts`` re-exports them.
    """

    names: ContractNames
    typed: bool = False

    def _render_ts(self) -> str:
        n = self.names
        specifiers = [f"./{n.data_symbol}", f"./{n.name}Contract"]
        if self.typed:
            specifiers.append(n.bindings_module)
        return "".join(f'export * from "{specifier}";\n' for specifier in specifiers)

    def _render_mjs(self) -> str:
        n = self.names
        return (
            f'export * from "./{n.data_module("mjs")}";\n'
            f'export * from "./{n.wrapper_module("mjs")}";\n'
        )

    def _render_js(self) -> str:
        n = self.names
        return (
            "module.exports = {\n"
            f'  ...require("./{n.data_module("js")}"),\n'
            f'  ...require("./{n.wrapper_module("js")}"),\n'
            "};\n"
        )


@dataclass(frozen=True)
class AggregateIndex:
    """Top-level ``types.ts`` re-exporting every contract's bindings."""

    contracts: Sequence[ContractNames]
    typed: bool = True

    def render(self) -> str:
        return "\n".join(
            f'export * from "{names.aggregate_entry(self.typed)}";' for names in self.contracts
        )
