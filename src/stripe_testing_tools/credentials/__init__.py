"""
Credential specs, lookup and the live-key gate.

Usage:
    from stripe_testing_tools.credentials import CredentialStoreAdapter

    credentials = CredentialStoreAdapter.default()
    api_key = credentials.get("stripe")  # re-read from the environment on every call
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from .base import CredentialSpec
from .gate import (
    LIVE_CREDENTIAL_MESSAGE,
    MISSING_CREDENTIAL_MESSAGE,
    STRIPE_API_VERSION,
    CredentialGateError,
    LiveCredentialRejectedError,
    LiveKeyPolicy,
    MissingCredentialError,
    RejectionKind,
    build_stripe_client,
    is_live_key,
    validate_stripe_api_key,
)
from .stripe import STRIPE_CREDENTIALS

CREDENTIAL_SPECS: dict[str, CredentialSpec] = {
    **STRIPE_CREDENTIALS,
}


class CredentialStoreAdapter:
    """
    Resolves credential values by name.

    Values are looked up on every ``get`` call, so a key that is rotated or
    cleared in the environment is picked up by the next tool invocation.
    """

    def __init__(
        self,
        specs: Mapping[str, CredentialSpec] | None = None,
        overrides: Mapping[str, str] | None = None,
        use_env: bool = True,
    ):
        self._specs = dict(specs if specs is not None else CREDENTIAL_SPECS)
        self._overrides = dict(overrides or {})
        self._use_env = use_env

    @classmethod
    def default(cls) -> CredentialStoreAdapter:
        """Adapter backed by environment variables."""
        return cls()

    @classmethod
    def for_testing(cls, values: Mapping[str, str]) -> CredentialStoreAdapter:
        """Adapter with fixed values that never touches the environment."""
        return cls(overrides=values, use_env=False)

    def get_spec(self, name: str) -> CredentialSpec:
        if name not in self._specs:
            raise KeyError(f"Unknown credential: {name}")
        return self._specs[name]

    def get(self, name: str) -> str | None:
        if name in self._overrides:
            return self._overrides[name]
        if not self._use_env:
            return None
        spec = self._specs.get(name)
        if spec is None:
            return None
        return os.environ.get(spec.env_var) or None

    def is_available(self, name: str) -> bool:
        return bool(self.get(name))


__all__ = [
    "CREDENTIAL_SPECS",
    "LIVE_CREDENTIAL_MESSAGE",
    "MISSING_CREDENTIAL_MESSAGE",
    "STRIPE_API_VERSION",
    "CredentialGateError",
    "CredentialSpec",
    "CredentialStoreAdapter",
    "LiveCredentialRejectedError",
    "LiveKeyPolicy",
    "MissingCredentialError",
    "RejectionKind",
    "build_stripe_client",
    "is_live_key",
    "validate_stripe_api_key",
]
