"""
Registry endpoints and defaults shared by the fetcher and code generator.
"""

CAYENNE_REGISTRY_URL = "https://lit-general-worker.getlit.dev/contract-addresses"
SERRANO_REGISTRY_URL = "https://lit-general-worker.getlit.dev/serrano-contract-addresses"

NETWORKS = ("cayenne", "serrano")
DEFAULT_NETWORK = "cayenne"
DEFAULT_OUTDIR = "lit-contracts"

#: Only registry version entries of this ``type`` are generated.
CONTRACT_ENTRY_TYPE = "contract"
