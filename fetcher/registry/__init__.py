"""
Contract registry access re-exported for convenience.
"""

from registry.client import RegistryClient
from registry.constants import (
    CAYENNE_REGISTRY_URL,
    DEFAULT_NETWORK,
    DEFAULT_OUTDIR,
    NETWORKS,
    SERRANO_REGISTRY_URL,
)
from registry.errors import (
    BindingGenerationError,
    ContractNameError,
    FetcherError,
    FilesystemFailure,
    MalformedArtifact,
    MalformedResponse,
    NetworkFailure,
)
from registry.models import CachedArtifact, ContractDescriptor, parse_timestamp, sanitize_name

__all__ = [
    "RegistryClient",
    "CachedArtifact",
    "ContractDescriptor",
    "parse_timestamp",
    "sanitize_name",
    # errors
    "FetcherError",
    "NetworkFailure",
    "MalformedResponse",
    "ContractNameError",
    "MalformedArtifact",
    "FilesystemFailure",
    "BindingGenerationError",
    # constants
    "CAYENNE_REGISTRY_URL",
    "SERRANO_REGISTRY_URL",
    "NETWORKS",
    "DEFAULT_NETWORK",
    "DEFAULT_OUTDIR",
]
