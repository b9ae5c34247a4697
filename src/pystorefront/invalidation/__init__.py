"""Cache invalidation after successful mutations."""

from pystorefront.invalidation.policy import (
    InvalidationPolicy,
    Invalidator,
    MutationDescriptor,
    descriptor,
    endpoint_segments,
)
from pystorefront.invalidation.table import CACHE_IRRELEVANT_ENDPOINTS, DEFAULT_DESCRIPTORS, default_policy

__all__ = [
    "CACHE_IRRELEVANT_ENDPOINTS",
    "DEFAULT_DESCRIPTORS",
    "InvalidationPolicy",
    "Invalidator",
    "MutationDescriptor",
    "default_policy",
    "descriptor",
    "endpoint_segments",
]
