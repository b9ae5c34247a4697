"""Query cache.

The store is the single mutable shared resource of the data layer; see
:class:`pystorefront.cache.store.CacheStore`.
"""

from pystorefront.cache.entry import CacheEntry, ErrorInfo, QueryOptions, QueryStatus
from pystorefront.cache.keys import CacheKey, KeyLike, is_prefix, make_key
from pystorefront.cache.store import CacheStore, Loader, Subscriber, Unsubscribe

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStore",
    "ErrorInfo",
    "KeyLike",
    "Loader",
    "QueryOptions",
    "QueryStatus",
    "Subscriber",
    "Unsubscribe",
    "is_prefix",
    "make_key",
]
