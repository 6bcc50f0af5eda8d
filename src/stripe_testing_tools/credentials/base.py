"""Credential spec definition shared by every integration."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CredentialSpec:
    """Describes a credential: where it lives and which tools need it."""

    env_var: str
    """Environment variable holding the credential (e.g., 'STRIPE_API_KEY')"""

    tools: list[str] = field(default_factory=list)
    """Tools that require this credential"""

    required: bool = True
    """Whether the tools cannot work without it"""

    startup_required: bool = False
    """Whether the server refuses to start without it"""

    help_url: str = ""
    """URL where the user can obtain the credential"""

    description: str = ""

    api_key_instructions: str = ""
    """Step-by-step instructions for getting an API key"""

    health_check_endpoint: str = ""
    health_check_method: str = "GET"

    credential_id: str = ""
    credential_key: str = "api_key"
