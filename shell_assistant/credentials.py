"""Provider credentials stored in the operating system keyring."""

import json

from dataclasses import asdict, dataclass
from typing import List, NamedTuple, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import ConfigError

KEYRING_USERNAME = "shell-assistant"


@dataclass(frozen=True)
class ProviderSecret:
    api_key: str
    organization: Optional[str] = None
    project: Optional[str] = None

    def validate(self):
        if not self.api_key or not self.api_key.strip():
            raise ConfigError("API key cannot be empty")

    def masked(self) -> str:
        if len(self.api_key) > 10:
            return f"{self.api_key[:7]}...{self.api_key[-4:]}"
        return "***"

    def to_json(self) -> str:
        return json.dumps({k: v for k, v in asdict(self).items() if v})


class SecretField(NamedTuple):
    name: str
    label: str
    required: bool
    is_password: bool


SECRET_FIELDS = {
    "openai": [
        SecretField("api_key", "OpenAI API Key (required)", True, True),
        SecretField("organization", "Organization ID (optional, press Enter to skip)", False, False),
        SecretField("project", "Project ID (optional, press Enter to skip)", False, False),
    ],
    "anthropic": [
        SecretField("api_key", "Anthropic API Key (required)", True, True),
    ],
}


def secret_fields(provider_id: str) -> List[SecretField]:
    if provider_id not in SECRET_FIELDS:
        raise ConfigError(f"Unknown provider: {provider_id}. Available: {', '.join(SECRET_FIELDS)}")
    return SECRET_FIELDS[provider_id]


def load_secret(provider_id: str) -> ProviderSecret:
    try:
        value = keyring.get_password(provider_id, KEYRING_USERNAME)
    except KeyringError as e:
        raise ConfigError(f"Failed to access keyring: {e}") from e

    if not value:
        raise ConfigError(
            f"No credentials stored for '{provider_id}'. Run 'assist secret {provider_id}' to configure them."
        )

    try:
        data = json.loads(value)
        return ProviderSecret(
            api_key=data.get("api_key", ""),
            organization=data.get("organization") or None,
            project=data.get("project") or None,
        )
    except (ValueError, AttributeError) as e:
        raise ConfigError(f"Stored credentials for '{provider_id}' are corrupted: {e}") from e


def save_secret(provider_id: str, secret: ProviderSecret):
    secret.validate()
    try:
        keyring.set_password(provider_id, KEYRING_USERNAME, secret.to_json())
    except KeyringError as e:
        raise ConfigError(f"Failed to save to keyring: {e}") from e


def delete_secret(provider_id: str):
    try:
        keyring.delete_password(provider_id, KEYRING_USERNAME)
    except PasswordDeleteError:
        # Nothing stored, nothing to delete.
        pass
    except KeyringError as e:
        raise ConfigError(f"Failed to delete from keyring: {e}") from e
