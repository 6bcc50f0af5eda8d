"""
Credential health checks.

Validates a stored credential with a lightweight API call before the tools
are used. The Stripe checker runs the credential gate first, so a live key is
rejected without any request leaving the process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .gate import (
    LIVE_CREDENTIAL_MESSAGE,
    STRIPE_API_VERSION,
    CredentialGateError,
    LiveKeyPolicy,
    validate_stripe_api_key,
)


@dataclass
class HealthCheckResult:
    """Result of a credential health check."""

    valid: bool
    """Whether the credential is valid."""

    message: str
    """Human-readable status message."""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details (e.g., error codes, gate rejection kind)."""


class CredentialHealthChecker(Protocol):
    """Protocol for credential health checkers."""

    def check(self, credential_value: str | None) -> HealthCheckResult: ...


class StripeHealthChecker:
    """Health checker for Stripe test-mode secret keys."""

    ENDPOINT = "https://api.stripe.com/v1/balance"
    TIMEOUT = 10.0

    def __init__(self, policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT):
        self.policy = policy

    def check(self, api_key: str | None) -> HealthCheckResult:
        """
        Validate a Stripe key by fetching the account balance.

        The live-key gate runs first; a rejected key never reaches the network.
        A key that Stripe itself reports as ``livemode`` is also refused.
        """
        try:
            validate_stripe_api_key(api_key, self.policy)
        except CredentialGateError as e:
            return HealthCheckResult(
                valid=False,
                message=e.message,
                details={"rejection": e.kind.value},
            )

        try:
            with httpx.Client(timeout=self.TIMEOUT) as client:
                response = client.get(
                    self.ENDPOINT,
                    headers={
                        "Authorization": f"Bearer {api_key.strip()}",
                        "Stripe-Version": STRIPE_API_VERSION,
                        "Accept": "application/json",
                    },
                )

                if response.status_code == 200:
                    livemode = None
                    try:
                        livemode = response.json().get("livemode")
                    except ValueError:
                        pass
                    if livemode:
                        return HealthCheckResult(
                            valid=False,
                            message=LIVE_CREDENTIAL_MESSAGE,
                            details={"livemode": True},
                        )
                    return HealthCheckResult(
                        valid=True,
                        message="Stripe test credentials valid",
                        details={"livemode": livemode},
                    )
                elif response.status_code == 401:
                    return HealthCheckResult(
                        valid=False,
                        message="Stripe API key is invalid",
                        details={"status_code": 401},
                    )
                elif response.status_code == 403:
                    return HealthCheckResult(
                        valid=False,
                        message="Stripe API key lacks permission to read the balance",
                        details={"status_code": 403},
                    )
                else:
                    return HealthCheckResult(
                        valid=False,
                        message=f"Stripe API returned status {response.status_code}",
                        details={"status_code": response.status_code},
                    )
        except httpx.TimeoutException:
            return HealthCheckResult(
                valid=False,
                message="Stripe API request timed out",
                details={"error": "timeout"},
            )
        except httpx.RequestError as e:
            error_msg = str(e)
            if "Bearer" in error_msg or "Authorization" in error_msg:
                error_msg = "Request failed (details redacted for security)"
            return HealthCheckResult(
                valid=False,
                message=f"Failed to connect to Stripe: {error_msg}",
                details={"error": error_msg},
            )


HEALTH_CHECKERS: dict[str, CredentialHealthChecker] = {
    "stripe": StripeHealthChecker(),
}


def check_credential_health(
    credential_name: str,
    credential_value: str | None,
    policy: LiveKeyPolicy | None = None,
) -> HealthCheckResult:
    """
    Check if a credential is valid.

    Args:
        credential_name: Name of the credential (e.g., 'stripe')
        credential_value: The credential value to validate
        policy: Live key policy override for the Stripe checker

    Returns:
        HealthCheckResult with validation status
    """
    if credential_name == "stripe" and policy is not None:
        return StripeHealthChecker(policy).check(credential_value)

    checker = HEALTH_CHECKERS.get(credential_name)
    if checker is None:
        return HealthCheckResult(
            valid=True,
            message=f"No health checker for '{credential_name}', assuming valid",
            details={"no_checker": True},
        )
    return checker.check(credential_value)
