"""The console's invalidation table.

Every state-changing endpoint that affects cached data must have a row
here. Endpoints that change nothing cached are listed in
``CACHE_IRRELEVANT_ENDPOINTS`` instead, so ``tests/test_invalidation.py``
can check that every mutating endpoint the console calls is accounted
for.

Paid services debit the wallet, so their rows always include the balance
and transaction history.
"""

from __future__ import annotations

from pystorefront.invalidation.policy import InvalidationPolicy, MutationDescriptor, descriptor

BALANCE = "/api/user/balance"
TRANSACTIONS = "/api/transactions"

_CHARGED = (BALANCE, TRANSACTIONS)

DEFAULT_DESCRIPTORS: tuple[MutationDescriptor, ...] = (
    # Paid checks and extractions
    descriptor("/api/phone-check", *_CHARGED, "/api/phone-checks"),
    descriptor("/api/phone-checks", *_CHARGED, "/api/phone-checks"),
    descriptor("/api/phone-live-checks", *_CHARGED, "/api/phone-live-checks"),
    descriptor("/api/account-check", *_CHARGED, "/api/account-checks"),
    descriptor("/api/tracking-check", *_CHARGED, "/api/tracking-checks"),
    descriptor("/api/tracking-checks", *_CHARGED, "/api/tracking-checks"),
    descriptor("/api/add-email", *_CHARGED, "/api/email-additions"),
    descriptor("/api/email-additions", *_CHARGED, "/api/email-additions"),
    descriptor("/api/cookie-extract", *_CHARGED, "/api/cookie-extractions"),
    descriptor("/api/cookie-extractions", *_CHARGED, "/api/cookie-extractions"),
    descriptor("/api/cookie-extractions/qr/generate"),
    descriptor("/api/cookie-rapid-checks", *_CHARGED, "/api/cookie-rapid-checks"),
    descriptor("/api/spc-f-extract", *_CHARGED, "/api/spc-f-extractions"),
    descriptor("/api/username-checks", *_CHARGED, "/api/username-checks/history"),
    descriptor("/api/voucher-saving", *_CHARGED, "/api/voucher-saving"),
    # Rentals
    descriptor(
        "/api/phone-rental",
        *_CHARGED,
        "/api/phone-rental/active-sessions",
        "/api/phone-rental-history",
    ),
    descriptor("/api/phone-rentals", *_CHARGED, "/api/phone-rentals", "/api/phone-rental-history"),
    descriptor(
        "/api/tiktok-rental",
        *_CHARGED,
        "/api/tiktok-rental/active-sessions",
        "/api/tiktok-rental/history",
    ),
    descriptor("/api/external-api-rentals", *_CHARGED, "/api/external-api-rentals"),
    # Wallet
    descriptor("/api/topup/generate-qr", *_CHARGED, "/api/topup/history", "/api/topup/pending"),
    # Account resources
    descriptor("/api/shopee-cookies", "/api/shopee-cookies"),
    descriptor("/api/http-proxies", "/api/http-proxies"),
    descriptor("/api/api-keys", "/api/api-keys"),
    descriptor("/api/external-api-keys", "/api/external-api-keys"),
    # Administration
    descriptor("/api/users", "/api/users"),
    descriptor("/api/users/{id}/balance", "/api/users", BALANCE, TRANSACTIONS),
    # Read-only report fetched with POST.
    descriptor("/api/users/activity-stats"),
    descriptor("/api/system-config", "/api/system-config"),
    descriptor("/api/system-config/validate-proxy"),
    descriptor("/api/service-pricing", "/api/service-pricing"),
    descriptor("/api/admin/webhook-token", "/api/admin/webhook-token"),
    descriptor("/api/admin/cleanup-service", "/api/admin/cleanup-service/status"),
    descriptor("/api/admin/auto-refund-manual-check", "/api/admin/auto-refund-status"),
    descriptor("/api/database-migration", "/api/database-migration/status", "/api/database-migration/history"),
    descriptor("/api/database-migration/test-connection"),
)

CACHE_IRRELEVANT_ENDPOINTS: tuple[str, ...] = (
    # Login/logout swap the token; callers reset the whole client instead.
    "/api/auth/login",
    "/api/auth/logout",
    "/api/auth/register",
    "/api/user/password",
    "/api/contact",
    "/api/database-cleanup/manual",
    "/api/cookie-pairs/auto-fetch",
    # Diagnostics endpoint used before bulk tracking checks.
    "/api/test-bulk",
)


def default_policy() -> InvalidationPolicy:
    return InvalidationPolicy(DEFAULT_DESCRIPTORS, cache_irrelevant=CACHE_IRRELEVANT_ENDPOINTS)
