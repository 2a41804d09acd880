"""Configuration for the managed identity credential."""

from pydantic import BaseModel


class ManagedIdentityConfig(BaseModel):
    """Configuration for the Instance Metadata Service credential."""

    base_url: str = "http://169.254.169.254"
    resource: str = "https://app.vssps.visualstudio.com/"
    token_api_version: str = "2018-02-01"
    instance_api_version: str = "2021-02-01"
    max_attempts: int = 3
    retry_delay: float = 1.0
    timeout: float = 10.0
    availability_timeout: float = 5.0
