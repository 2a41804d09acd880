"""Pydantic models for Instance Metadata Service responses."""

from pydantic import BaseModel, ConfigDict, SecretStr


class ManagedIdentityToken(BaseModel):
    """Token issued by the metadata service for the managed identity.

    Only the access token is used; the expiry fields are kept as returned.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    access_token: SecretStr = SecretStr("")
    expires_in: str | None = None
    expires_on: str | None = None
    not_before: str | None = None
    resource: str | None = None
    token_type: str | None = None
