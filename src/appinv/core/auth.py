from __future__ import annotations
import logging, os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from appinv.config.loader import Settings

log = logging.getLogger("appinv.auth")

SECRET_ENV = "APPINV_CLIENT_SECRET"

# Error classes
class AuthenticationError(Exception):
    code = "auth_error"; hint = "Unknown error."
    def __init__(self, message: str = "", *, hint: str | None = None):
        super().__init__(message or self.__class__.__name__)
        if hint: self.hint = hint

class InvalidTenantId(AuthenticationError):
    code = "invalid_tenant_id"; hint = "Tenant ID invalid or unreachable."
class InvalidClientId(AuthenticationError):
    code = "invalid_client_id"; hint = "Client ID invalid."
class InvalidClientSecret(AuthenticationError):
    code = "invalid_client_secret"; hint = "Client Secret rejected."
class MissingSecret(AuthenticationError):
    code = "missing_secret"; hint = "Set APPINV_CLIENT_SECRET or configure a Key Vault secret."
class NetworkError(AuthenticationError):
    code = "network_error"; hint = "Network or timeout issue."

@dataclass(frozen=True)
class Credentials:
    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)

    @property
    def client_hint(self) -> str:
        return f"{self.client_id[:6]}..."


def _secret_from_keyvault(settings: Settings, secret_client=None) -> Optional[str]:
    if not settings.keyvault_name:
        return None
    if not settings.keyvault_secret_name:
        raise MissingSecret("keyvault.name is set but keyvault.secret_name is not.")

    if secret_client is None:
        from azure.identity import DefaultAzureCredential
        from azure.keyvault.secrets import SecretClient

        vault_url = f"https://{settings.keyvault_name}.vault.azure.net"
        secret_client = SecretClient(vault_url=vault_url, credential=DefaultAzureCredential())

    log.info("fetching client secret %r from Key Vault %s",
             settings.keyvault_secret_name, settings.keyvault_name)
    sec = secret_client.get_secret(settings.keyvault_secret_name)
    return sec.value


def resolve_credentials(
    settings: Settings,
    *,
    env: Mapping[str, str] | None = None,
    secret_client=None,
) -> Credentials:
    """
    Secret lookup order: APPINV_CLIENT_SECRET, identity.client_secret,
    then the Key Vault secret. Only the first hit is used.
    """
    env = os.environ if env is None else env
    tenant_id = (settings.tenant_id or "").strip()
    client_id = (settings.client_id or "").strip()

    if not tenant_id: raise InvalidTenantId("Tenant ID required.")
    if not client_id: raise InvalidClientId("Client ID required.")

    client_secret = (env.get(SECRET_ENV) or settings.client_secret or "").strip()
    if not client_secret:
        client_secret = (_secret_from_keyvault(settings, secret_client) or "").strip()
    if not client_secret:
        raise MissingSecret("Client Secret required.")

    log.info("credentials resolved: tenant=%s client=%s", tenant_id, client_id[:6] + "...")
    return Credentials(tenant_id=tenant_id, client_id=client_id, client_secret=client_secret)
