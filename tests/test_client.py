import asyncio
import json

import pytest
from conftest import registry_item

from registry.client import RegistryClient
from registry.errors import MalformedResponse, NetworkFailure


def _fetch(serve_registry, items, index=0, **kwargs):
    async def _run():
        async with serve_registry(items, **kwargs) as server:
            url = str(server.make_url("/contract-addresses"))
            async with RegistryClient(url, timeout_seconds=5) as client:
                return await client.fetch_contracts(index=index), list(server.hits)

    return asyncio.run(_run())


def test_descriptors_are_built_from_registry_and_abi(serve_registry):
    abi = [{"type": "function", "name": "owner", "inputs": [], "outputs": []}]
    items = [registry_item("PKP Helper", address="0x0eBb", abi_key="pkp")]
    items[0]["symbol"] = "PKPH"

    descriptors, hits = _fetch(serve_registry, items, abis={"pkp": {"result": json.dumps(abi)}})

    assert len(descriptors) == 1
    descriptor = descriptors[0]
    assert descriptor.name == "PKP Helper"
    assert descriptor.symbol == "PKPH"
    assert descriptor.address == "0x0eBb"
    assert descriptor.date == "2023-01-01T00:00:00Z"
    assert descriptor.abi == abi
    assert hits == ["registry", "pkp"]


def test_abis_are_fetched_in_registry_order(serve_registry):
    items = [registry_item("B"), registry_item("A"), registry_item("C")]

    descriptors, hits = _fetch(serve_registry, items)

    assert [d.name for d in descriptors] == ["B", "A", "C"]
    assert hits == ["registry", "B", "A", "C"]


def test_non_contract_entries_are_filtered(serve_registry):
    items = [registry_item("Foo"), registry_item("Proxy", entry_type="proxy")]

    descriptors, hits = _fetch(serve_registry, items)

    assert [d.name for d in descriptors] == ["Foo"]
    assert "Proxy" not in hits


def test_index_selects_version_entry(serve_registry):
    item = registry_item("Foo", inserted_at="2023-01-01T00:00:00Z", address="0x1")
    item["contracts"].append(
        {
            "inserted_at": "2023-05-01T00:00:00Z",
            "address_hash": "0x2",
            "type": "contract",
            "ABIUrl": "/abi/Foo",
        }
    )
    short = registry_item("Short")

    descriptors, _ = _fetch(serve_registry, [item, short], index=1)

    assert [(d.name, d.address) for d in descriptors] == [("Foo", "0x2")]


def test_unsuccessful_envelope_aborts(serve_registry):
    with pytest.raises(NetworkFailure) as excinfo:
        _fetch(serve_registry, [registry_item("Foo")], success=False)

    assert excinfo.value.phase == "registry"


def test_http_error_aborts(serve_registry):
    with pytest.raises(NetworkFailure, match="HTTP 503"):
        _fetch(serve_registry, [registry_item("Foo")], status=503)


def test_abi_result_must_be_embedded_json(serve_registry):
    with pytest.raises(MalformedResponse) as excinfo:
        _fetch(serve_registry, [registry_item("Foo")], abis={"Foo": {"result": "Contract source code not verified"}})

    assert excinfo.value.contract == "Foo"
    assert excinfo.value.phase == "abi"


def test_abi_without_result_is_malformed(serve_registry):
    with pytest.raises(MalformedResponse):
        _fetch(serve_registry, [registry_item("Foo")], abis={"Foo": {"status": "0"}})


def test_non_json_abi_body_is_malformed(serve_registry):
    with pytest.raises(MalformedResponse):
        _fetch(serve_registry, [registry_item("Foo")], abis={"Foo": "<html>oops</html>"})


def test_unreachable_registry_is_a_network_failure():
    async def _run():
        async with RegistryClient("http://127.0.0.1:1/contract-addresses", timeout_seconds=2) as client:
            await client.fetch_registry()

    with pytest.raises(NetworkFailure):
        asyncio.run(_run())
