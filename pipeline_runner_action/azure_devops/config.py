"""Configuration for the Azure DevOps client."""

from pydantic import BaseModel


class AzureDevOpsConfig(BaseModel):
    """Configuration for the Azure DevOps Pipelines REST client."""

    organization: str
    api_base_url: str = "https://dev.azure.com"
    api_version: str = "7.2-preview.1"
    timeout: float = 60.0
