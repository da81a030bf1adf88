"""Prometheus counters for the token lifecycle."""

from prometheus_client import Counter

TOKENS_ISSUED = Counter(
    "viewer_tokens_issued_total",
    "Number of viewer tokens minted",
)
TOKEN_RESOLUTIONS = Counter(
    "viewer_token_resolutions_total",
    "Number of token resolutions by outcome",
    ["outcome"],  # live, missing, expired
)
TOKENS_SWEPT = Counter(
    "viewer_tokens_swept_total",
    "Number of expired viewer tokens physically deleted by the sweeper",
)
