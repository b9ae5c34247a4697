"""Internal constants shared across the library."""

BASE_URL = "http://localhost:5000"
USER_AGENT = "pystorefront"
TOKEN_FILENAME = "token"

# Console-wide query default: data is considered fresh for five minutes.
DEFAULT_STALE_AFTER_S = 5 * 60.0
DEFAULT_REQUEST_TIMEOUT_S = 30.0
# Unused cache entries are dropped after five minutes.
DEFAULT_GC_AFTER_S = 5 * 60.0

# Number of body characters kept on a malformed-response error.
MALFORMED_BODY_PREFIX = 100

GET_LIKE_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})
MUTATING_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# ------------------------------------------------------------------
# Pull-to-refresh defaults (pixels)
# ------------------------------------------------------------------

PULL_THRESHOLD = 80.0
PULL_MAX_DISTANCE = 120.0
PULL_RESISTANCE = 0.5
