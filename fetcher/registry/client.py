"""
HTTP reader for the contract-address registry and per-contract ABI documents.

The registry lists every contract together with its deployment history::

    {
        "success": true,
        "data": [
            {
                "name": "PKP Helper",
                "symbol": "PKPH",
                "contracts": [
                    {
                        "inserted_at": "2023-09-11T06:33:36.605626Z",
                        "address_hash": "0x0eBb...6c70",
                        "type": "contract",
                        "ABIUrl": "https://.../api?module=contract&action=getabi&address=..."
                    }
                ]
            }
        ]
    }

Each ``ABIUrl`` returns ``{"result": "<ABI array encoded as a JSON string>"}``.

Requests are issued strictly one after another on a single session.  Any
failure aborts the fetch; there is no retry.
"""

from __future__ import annotations

import asyncio
import json
from types import TracebackType
from typing import Any

import aiohttp
import structlog

from registry.constants import CONTRACT_ENTRY_TYPE
from registry.errors import MalformedResponse, NetworkFailure
from registry.models import ContractDescriptor

logger = structlog.get_logger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class RegistryClient:
    """Fetch contract descriptors from a registry endpoint.

    Parameters
    ----------
    registry_url:
        Full URL of the contract-address registry.
    timeout_seconds:
        Total timeout applied to each request.
    session:
        Optional pre-built :class:`aiohttp.ClientSession`.  When omitted the
        client opens its own on ``__aenter__`` and closes it on exit.
    """

    def __init__(
        self,
        registry_url: str,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._registry_url = registry_url
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

        logger.debug(
            "registry_client.initialized",
            registry=self._registry_url,
            timeout=timeout_seconds,
        )

    async def __aenter__(self) -> RegistryClient:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # ------------------------------------------------------------------
    # Low-level GET
    # ------------------------------------------------------------------

    async def _get_json(self, url: str, contract: str | None, phase: str) -> Any:
        if self._session is None:
            raise RuntimeError("RegistryClient must be used as an async context manager")

        logger.debug("registry_client.get", url=url, contract=contract, phase=phase)
        try:
            async with self._session.get(url, timeout=self._timeout) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    logger.error(
                        "registry_client.http_error",
                        url=url,
                        status=resp.status,
                        body=body[:500],
                    )
                    raise NetworkFailure(
                        f"GET {url} failed: HTTP {resp.status}",
                        contract=contract,
                        phase=phase,
                    )
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.exception("registry_client.transport_error", url=url, contract=contract)
            raise NetworkFailure(
                f"GET {url} failed: {exc}", contract=contract, phase=phase
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedResponse(
                f"GET {url} returned a non-JSON body: {exc}",
                contract=contract,
                phase=phase,
            ) from exc

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def fetch_registry(self) -> list[dict[str, Any]]:
        """Return the registry's ``data`` list.

        Raises
        ------
        NetworkFailure
            If the request fails or the envelope's ``success`` is not ``true``.
        """
        logger.info("registry_client.fetch_registry.start", registry=self._registry_url)
        payload = await self._get_json(self._registry_url, contract=None, phase="registry")

        if not isinstance(payload, dict) or payload.get("success") is not True:
            raise NetworkFailure(
                f"registry returned a non-success envelope: {str(payload)[:200]}",
                phase="registry",
            )

        items: list[dict[str, Any]] = payload.get("data") or []
        logger.info("registry_client.fetch_registry.done", count=len(items))
        return items

    # ------------------------------------------------------------------
    # ABI
    # ------------------------------------------------------------------

    async def fetch_abi(self, name: str, abi_url: str) -> Any:
        """Fetch and decode the ABI embedded in an ABI document's ``result``.

        Raises
        ------
        NetworkFailure
            If the request fails.
        MalformedResponse
            If ``result`` is missing or is not a JSON-encoded string.
        """
        payload = await self._get_json(abi_url, contract=name, phase="abi")

        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, str):
            raise MalformedResponse(
                f"ABI document has no string 'result' field: {str(payload)[:200]}",
                contract=name,
            )

        try:
            abi = json.loads(result)
        except json.JSONDecodeError as exc:
            raise MalformedResponse(
                f"ABI 'result' is not valid JSON: {result[:200]!r}",
                contract=name,
            ) from exc

        logger.debug(
            "registry_client.abi_fetched",
            contract=name,
            entries=len(abi) if isinstance(abi, list) else None,
        )
        return abi

    # ------------------------------------------------------------------
    # Descriptors
    # ------------------------------------------------------------------

    async def fetch_contracts(self, index: int = 0) -> list[ContractDescriptor]:
        """Return one descriptor per registry contract, ABIs included.

        For every registry item the version entry at *index* is selected and
        kept only if its ``type`` is ``"contract"``.  Items without an entry
        at *index* are skipped with a warning.  ABIs are fetched in registry
        order, one request at a time.
        """
        items = await self.fetch_registry()

        selected: list[tuple[dict[str, Any], dict[str, Any]]] = []
        for item in items:
            versions = item.get("contracts") or []
            if index >= len(versions):
                logger.warning(
                    "registry_client.version_index_missing",
                    contract=item.get("name"),
                    index=index,
                    available=len(versions),
                )
                continue
            entry = versions[index]
            if entry.get("type") != CONTRACT_ENTRY_TYPE:
                continue
            selected.append((item, entry))

        descriptors: list[ContractDescriptor] = []
        for item, entry in selected:
            name: str = item["name"]
            abi = await self.fetch_abi(name, entry["ABIUrl"])
            descriptors.append(
                ContractDescriptor(
                    name=name,
                    symbol=item.get("symbol"),
                    address=entry["address_hash"],
                    date=entry["inserted_at"],
                    abi=abi,
                )
            )

        logger.info("registry_client.fetch_contracts.done", count=len(descriptors), index=index)
        return descriptors
