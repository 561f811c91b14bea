"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
"""

import os

# ---------------------------------------------------------------------------
# Python gRPC server (the GraphQL layer connects to us on this address)
# ---------------------------------------------------------------------------

GRPC_SERVER_HOST: str = os.getenv("GRPC_SERVER_HOST", "0.0.0.0")
GRPC_SERVER_PORT: int = int(os.getenv("GRPC_SERVER_PORT", "50061"))

# Thread pool size for the gRPC server.  Each concurrent RPC occupies one
# thread, so this caps concurrent request handling.
GRPC_MAX_WORKERS: int = int(os.getenv("GRPC_MAX_WORKERS", "10"))

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

# Threads used to analyse and score the events of one list request.
SCORING_MAX_WORKERS: int = int(os.getenv("SCORING_MAX_WORKERS", "4"))

# Analysis confidence (0-100) below which an event gets the conservative
# default priority instead of a full computation.
DEGRADED_CONFIDENCE_THRESHOLD: float = float(
    os.getenv("DEGRADED_CONFIDENCE_THRESHOLD", "40")
)

# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

# Default number of entries returned by GetPopularTags.
POPULAR_TAGS_LIMIT: int = int(os.getenv("POPULAR_TAGS_LIMIT", "10"))

# Events whose tag inputs are kept in memory.  Beyond this the least recently
# written event is dropped.
TAG_LEDGER_MAX_EVENTS: int = int(os.getenv("TAG_LEDGER_MAX_EVENTS", "10000"))
