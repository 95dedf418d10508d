from __future__ import annotations
from urllib.parse import urlencode, quote

from appinv.core.auth import (
    AuthenticationError, InvalidTenantId, InvalidClientId, InvalidClientSecret,
)

LOGIN = "https://login.microsoftonline.com"
GRAPH_RESOURCE = "https://graph.microsoft.com"

def build_token_url(tenant_id: str) -> str:
    return f"{LOGIN}/{quote(tenant_id, safe='')}/oauth2/token"

def build_token_body(client_id: str, client_secret: str, resource: str = GRAPH_RESOURCE) -> str:
    # quote_via=quote so '+' in a secret goes out as %2B, never as a space
    return urlencode(
        {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "resource": resource,
        },
        quote_via=quote,
        safe="",
    )

def map_token_error(desc: str) -> AuthenticationError:
    d = desc or ""
    if "AADSTS7000215" in d:  # invalid client secret
        return InvalidClientSecret("Invalid client secret.")
    if "AADSTS700016" in d:  # invalid client id
        return InvalidClientId("Invalid client ID or app not found.")
    if "invalid_tenant" in d or "AADSTS90002" in d:
        return InvalidTenantId("Invalid tenant ID or tenant not found.")
    return AuthenticationError(d or "No access token returned.")
