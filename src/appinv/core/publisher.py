# src/appinv/core/publisher.py
from __future__ import annotations
import logging, pathlib
from dataclasses import dataclass
from typing import Optional

from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError
from azure.identity import ManagedIdentityCredential
from azure.mgmt.storage import StorageManagementClient
from azure.storage.blob import BlobServiceClient

from appinv.config.loader import Settings

log = logging.getLogger("appinv.publisher")

BLOB_NAME = "AppInvRawData.csv"
MANAGEMENT_SCOPE = "https://management.azure.com/.default"


class PlatformLoginError(Exception):
    pass

class StorageTargetError(Exception):
    pass


@dataclass(frozen=True)
class StorageTarget:
    subscription_id: str
    resource_group: str
    account: str
    container: str
    managed_identity_client_id: Optional[str] = None

    @classmethod
    def from_settings(cls, s: Settings) -> "StorageTarget":
        return cls(
            subscription_id=s.subscription_id,
            resource_group=s.resource_group,
            account=s.storage_account,
            container=s.container,
            managed_identity_client_id=s.managed_identity_client_id,
        )

    @property
    def resource_id(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}"
            f"/providers/Microsoft.Storage/storageAccounts/{self.account}"
        )


def platform_login(target: StorageTarget, credential=None):
    """Managed-identity login. Returns a credential that has already issued a token."""
    cred = credential
    if cred is None:
        if target.managed_identity_client_id:
            cred = ManagedIdentityCredential(client_id=target.managed_identity_client_id)
        else:
            cred = ManagedIdentityCredential()
    try:
        cred.get_token(MANAGEMENT_SCOPE)
    except ClientAuthenticationError as ex:
        log.debug("managed identity login failed: %r", ex)
        raise PlatformLoginError(f"Managed identity login failed: {ex}") from ex
    log.info("managed identity login ok, subscription=%s", target.subscription_id)
    return cred


def resolve_blob_endpoint(target: StorageTarget, credential) -> str:
    """
    Look the account up in the configured subscription and resource group;
    returns its primary blob endpoint without a trailing slash.
    """
    client = StorageManagementClient(credential, target.subscription_id)
    try:
        props = client.storage_accounts.get_properties(target.resource_group, target.account)
    except ResourceNotFoundError as ex:
        raise StorageTargetError(f"Storage account not found: {target.resource_id}") from ex
    endpoint = props.primary_endpoints.blob if props.primary_endpoints else None
    if not endpoint:
        raise StorageTargetError(f"Storage account {target.account} has no blob endpoint")
    log.info("storage account %s selected in subscription %s", target.account, target.subscription_id)
    return endpoint.rstrip("/")


def publish(
    file_path: pathlib.Path | str,
    target: StorageTarget,
    *,
    credential=None,
    blob_name: str = BLOB_NAME,
) -> str:
    file_path = pathlib.Path(file_path)
    cred = platform_login(target, credential)
    account_url = resolve_blob_endpoint(target, cred)

    log.info("uploading %s to %s container=%s blob=%s",
             file_path.name, account_url, target.container, blob_name)
    service = BlobServiceClient(account_url=account_url, credential=cred)
    container = service.get_container_client(target.container)
    with open(file_path, "rb") as fh:
        container.upload_blob(name=blob_name, data=fh, overwrite=True)

    url = f"{account_url}/{target.container}/{blob_name}"
    log.info("uploaded %s", url)
    return url
