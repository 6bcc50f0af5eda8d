"""
Credential gate for the Stripe client.

Every tool call passes its secret key through this gate before a
``stripe.StripeClient`` is built. The gate refuses missing keys and keys that
look like live-mode keys, so no request can ever reach production data.

The gate is a pure function of its input: the caller supplies the key
explicitly (usually read from the environment at call time) and nothing is
cached between calls.
"""

from __future__ import annotations

import re
from enum import Enum

import stripe

STRIPE_API_VERSION = "2025-04-30.basil"
APP_NAME = "stripe-testing-tools-mcp"
APP_VERSION = "0.1.0"

MISSING_CREDENTIAL_MESSAGE = "No Stripe secret key found"
LIVE_CREDENTIAL_MESSAGE = "You cannot use a live Stripe secret key for testing"

# Optional two-letter role prefix (sk_, rk_, pk_) followed by the live segment.
_LIVE_PREFIX_RE = re.compile(r"^(?:[a-z]{2}_)?live(?:_|$)")


class RejectionKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    LIVE_CREDENTIAL_REJECTED = "live_credential_rejected"


class LiveKeyPolicy(str, Enum):
    """How a key is recognised as a live-mode key.

    PREFIX_SEGMENT: ``live`` as the segment right after an optional two-letter
        role prefix (``sk_live_``, ``rk_live_``, ``pk_live_``, ``live_``),
        ignoring surrounding whitespace. ``sk_test_for_live_stream`` and
        ``prefix_sk_live_suffix`` are accepted.
    SUBSTRING: any occurrence of ``live`` in the key (case-sensitive).
    """

    PREFIX_SEGMENT = "prefix"
    SUBSTRING = "substring"

    @classmethod
    def parse(cls, value: str | LiveKeyPolicy) -> LiveKeyPolicy:
        if isinstance(value, LiveKeyPolicy):
            return value
        normalized = value.strip().lower().replace("-", "_")
        aliases = {
            "prefix": cls.PREFIX_SEGMENT,
            "prefix_segment": cls.PREFIX_SEGMENT,
            "substring": cls.SUBSTRING,
        }
        if normalized not in aliases:
            raise ValueError(
                f"Unknown live key policy: {value!r}. Expected 'prefix' or 'substring'"
            )
        return aliases[normalized]


class CredentialGateError(Exception):
    """Base class for credential rejections. Never retryable."""

    kind: RejectionKind
    message: str

    def __init__(self) -> None:
        super().__init__(self.message)


class MissingCredentialError(CredentialGateError):
    kind = RejectionKind.MISSING_CREDENTIAL
    message = MISSING_CREDENTIAL_MESSAGE


class LiveCredentialRejectedError(CredentialGateError):
    kind = RejectionKind.LIVE_CREDENTIAL_REJECTED
    message = LIVE_CREDENTIAL_MESSAGE


def is_live_key(api_key: str, policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT) -> bool:
    """Return True if ``api_key`` carries the live marker under ``policy``."""
    if policy is LiveKeyPolicy.SUBSTRING:
        return "live" in api_key
    return _LIVE_PREFIX_RE.match(api_key.strip()) is not None


def validate_stripe_api_key(
    api_key: str | None,
    policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT,
) -> None:
    """
    Check that ``api_key`` is present and is not a live-mode key.

    Surrounding whitespace is ignored, so ``" sk_live_..."`` is still live.

    Raises:
        MissingCredentialError: key is None, empty or whitespace only
        LiveCredentialRejectedError: key matches the live marker for ``policy``
    """
    if not api_key or not api_key.strip():
        raise MissingCredentialError()
    if is_live_key(api_key, policy):
        raise LiveCredentialRejectedError()


def build_stripe_client(
    api_key: str | None,
    policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT,
) -> stripe.StripeClient:
    """Validate ``api_key`` and return a client pinned to the test API version."""
    validate_stripe_api_key(api_key, policy)
    stripe.set_app_info(APP_NAME, version=APP_VERSION)
    return stripe.StripeClient(api_key.strip(), stripe_version=STRIPE_API_VERSION)
