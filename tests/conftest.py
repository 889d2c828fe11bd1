from __future__ import annotations

import copy
import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from yarl import URL

from registry.errors import BindingGenerationError
from registry.models import ContractDescriptor


class FakeBindings:
    """Stands in for TypeChain: writes a stub ``<Name>.ts`` and ``index.ts``."""

    typed = True

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.calls: list[str] = []

    async def generate(self, contract: str, artifact_path: Path, out_dir: Path) -> None:
        self.calls.append(contract)
        if contract in self.fail_for:
            raise BindingGenerationError("typechain exited with status 1", contract=contract)
        assert artifact_path.exists()
        (out_dir / f"{contract}.ts").write_text(
            f"export interface {contract} {{}}\n", encoding="utf-8"
        )
        (out_dir / "index.ts").write_text("// typechain index\n", encoding="utf-8")


def registry_item(
    name: str,
    inserted_at: str = "2023-01-01T00:00:00Z",
    address: str = "0xabc",
    entry_type: str = "contract",
    abi_key: str | None = None,
) -> dict[str, Any]:
    return {
        "name": name,
        "contracts": [
            {
                "inserted_at": inserted_at,
                "address_hash": address,
                "type": entry_type,
                "ABIUrl": f"/abi/{abi_key or name}",
            }
        ],
    }


@pytest.fixture
def fake_bindings() -> FakeBindings:
    return FakeBindings()


@pytest.fixture
def make_descriptor():
    def _make(
        name: str = "Foo",
        date: str = "2023-01-01T00:00:00Z",
        address: str = "0xabc",
        abi: Any = None,
    ) -> ContractDescriptor:
        return ContractDescriptor(
            name=name,
            address=address,
            date=date,
            abi=[] if abi is None else abi,
        )

    return _make


@pytest.fixture
def serve_registry():
    """Serve a fake registry and ABI endpoint; ABIUrls are resolved against the server."""

    @asynccontextmanager
    async def _serve(
        items: list[dict[str, Any]],
        abis: dict[str, Any] | None = None,
        success: bool = True,
        status: int = 200,
    ):
        abis = abis if abis is not None else {}
        hits: list[str] = []

        async def registry(request: web.Request) -> web.Response:
            hits.append("registry")
            if status != 200:
                return web.Response(status=status, text="upstream unavailable")
            data = copy.deepcopy(items)
            for item in data:
                for entry in item.get("contracts", []):
                    entry["ABIUrl"] = str(request.url.join(URL(entry["ABIUrl"])))
            return web.json_response({"success": success, "data": data})

        async def abi(request: web.Request) -> web.Response:
            key = request.match_info["key"]
            hits.append(key)
            body = abis.get(key, {"result": "[]"})
            if isinstance(body, str):
                return web.Response(text=body, content_type="text/plain")
            return web.json_response(body)

        app = web.Application()
        app.router.add_get("/contract-addresses", registry)
        app.router.add_get("/abi/{key}", abi)

        server = TestServer(app)
        await server.start_server()
        try:
            server.hits = hits
            yield server
        finally:
            await server.close()

    return _serve


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))
