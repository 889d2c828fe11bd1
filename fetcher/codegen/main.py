"""
Lit contracts fetcher -- command-line entry point.

Fetches the contract registry, compares each contract with its cached
artifact under the output directory, regenerates missing (and, with
``--update``, stale) contracts, then rewrites the aggregated ``types.ts``.

Usage::

    python -m codegen.main --network cayenne --outdir lit-contracts
    python -m codegen.main --update
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Sequence

import structlog
from pydantic import ValidationError

from codegen.aggregator import write_aggregate_index
from codegen.bindings import NullBindingGenerator, TypeChainGenerator
from codegen.comparator import Freshness, decide
from codegen.config import FetcherConfig
from codegen.naming import AGGREGATE_INDEX, ContractNames
from codegen.writer import ArtifactWriter
from registry.client import RegistryClient
from registry.constants import NETWORKS
from registry.errors import ContractNameError, FetcherError, FilesystemFailure
from registry.models import ContractDescriptor, parse_timestamp

logger = structlog.get_logger("codegen.main")

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_CONTRACTS_FAILED = 2

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def configure_logging(verbose: bool = False) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


@dataclass
class RunSummary:
    """Per-contract outcome of one run, by sanitized or raw name."""

    generated: list[str] = field(default_factory=list)
    current: list[str] = field(default_factory=list)
    needs_update: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    aggregated: bool = False

    @property
    def exit_code(self) -> int:
        return EXIT_CONTRACTS_FAILED if self.failed else EXIT_OK


def build_writer(config: FetcherConfig) -> ArtifactWriter:
    if config.generate_bindings:
        bindings = TypeChainGenerator(
            command=config.typechain_command,
            target=config.typechain_target,
        )
    else:
        bindings = NullBindingGenerator()
    return ArtifactWriter(bindings=bindings, formats=config.format_list)


def _describe_date(value: str) -> str:
    try:
        return parse_timestamp(value).astimezone().strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return value


async def fetch_descriptors(config: FetcherConfig) -> list[ContractDescriptor]:
    async with RegistryClient(
        config.registry_url,
        timeout_seconds=config.http_timeout_seconds,
    ) as client:
        return await client.fetch_contracts(index=config.index)


async def sync_contracts(
    descriptors: Sequence[ContractDescriptor],
    config: FetcherConfig,
    writer: ArtifactWriter,
) -> RunSummary:
    """Compare and write every descriptor, isolating per-contract failures."""
    summary = RunSummary()
    outdir = config.outdir
    width = max((len(d.name) for d in descriptors), default=0)
    triggered = False
    claimed: dict[str, str] = {}

    for descriptor in descriptors:
        name = descriptor.name
        try:
            sanitized = ContractNames.for_contract(name).name
            if sanitized in claimed:
                raise ContractNameError(
                    f"sanitizes to {sanitized!r}, already used by {claimed[sanitized]!r}",
                    contract=name,
                )
            claimed[sanitized] = name

            decision = decide(descriptor, outdir, config)

            if decision.needs_confirmation:
                logger.warning(
                    "fetcher.newer_version_available",
                    contract=name,
                    hint="re-run with --update to overwrite",
                )
                summary.needs_update.append(name)
                continue

            if decision.freshness is Freshness.CURRENT:
                logger.info(
                    "fetcher.up_to_date",
                    contract=name.ljust(width),
                    date=_describe_date(descriptor.date),
                )
                summary.current.append(name)
                continue

            triggered = True
            logger.info(
                "fetcher.generating",
                contract=name,
                reason=decision.freshness.value,
            )
            await writer.write(descriptor, outdir)
            summary.generated.append(name)

        except FetcherError as exc:
            logger.error(
                "fetcher.contract_failed",
                contract=name,
                phase=exc.phase,
                error=exc.message,
            )
            summary.failed[name] = str(exc)

    if triggered:
        try:
            path = write_aggregate_index(
                descriptors, outdir, typed=writer.typed, formats=writer.formats
            )
        except FilesystemFailure as exc:
            logger.error("fetcher.aggregate_failed", phase=exc.phase, error=exc.message)
            summary.failed[AGGREGATE_INDEX] = str(exc)
        else:
            summary.aggregated = path is not None

    return summary


async def run(config: FetcherConfig, writer: ArtifactWriter | None = None) -> RunSummary:
    """Fetch the registry and synchronise the output directory.

    Raises
    ------
    NetworkFailure, MalformedResponse
        If the registry or any ABI cannot be fetched.  Nothing is written.
    FilesystemFailure
        If the output directory itself cannot be created.
    """
    logger.info(
        "fetcher.start",
        network=config.network,
        registry=config.registry_url,
        outdir=str(config.outdir),
        update=config.update,
        compare=config.compare,
    )

    try:
        config.outdir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemFailure(
            f"cannot create {config.outdir}: {exc}", phase="mkdir"
        ) from exc

    descriptors = await fetch_descriptors(config)
    summary = await sync_contracts(descriptors, config, writer or build_writer(config))

    logger.info(
        "fetcher.done",
        generated=len(summary.generated),
        current=len(summary.current),
        needs_update=len(summary.needs_update),
        failed=len(summary.failed),
    )
    return summary


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lit-contracts-fetcher",
        description="Fetch Lit contract ABIs and generate JS/TS modules for them.",
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("--update", action="store_true",
                        help="Overwrite artifacts that have a newer remote version")
    parser.add_argument("--outdir", type=str, metavar="<path>",
                        help="Output directory (default: lit-contracts)")
    parser.add_argument("--network", choices=NETWORKS,
                        help="Registry to read (default: cayenne)")
    parser.add_argument("--index", type=int, metavar="<int>",
                        help="Entry of each contract's version list to use (default: 0)")
    parser.add_argument("--compare", choices=("timestamp", "address"),
                        help="Staleness policy (default: timestamp)")
    parser.add_argument("--formats", type=str, metavar="<ts,mjs,js>",
                        help="Comma-separated module formats to emit")
    parser.add_argument("--no-bindings", dest="generate_bindings", action="store_false",
                        help="Do not run TypeChain")
    parser.add_argument("--typechain-command", type=str, metavar="<command>",
                        help="Command used to invoke TypeChain (default: npx typechain)")
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Debug logging")
    return parser


def load_config(args: argparse.Namespace) -> FetcherConfig:
    overrides = {k: v for k, v in vars(args).items() if k != "verbose"}
    return FetcherConfig(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args)
    except ValidationError as exc:
        parser.error(str(exc))

    try:
        summary = asyncio.run(run(config))
    except FetcherError as exc:
        logger.error("fetcher.aborted", phase=exc.phase, contract=exc.contract, error=exc.message)
        return EXIT_FETCH_FAILED
    except KeyboardInterrupt:
        logger.info("fetcher.keyboard_interrupt")
        return EXIT_FETCH_FAILED

    if summary.failed:
        logger.error("fetcher.contracts_failed", contracts=sorted(summary.failed))
    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
