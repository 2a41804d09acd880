"""Azure DevOps Pipelines client module."""

from pipeline_runner_action.azure_devops.client import (
    AzureDevOpsClient,
    PipelineRunError,
)
from pipeline_runner_action.azure_devops.config import AzureDevOpsConfig
from pipeline_runner_action.azure_devops.models import PipelineRun

__all__ = ["AzureDevOpsClient", "AzureDevOpsConfig", "PipelineRun", "PipelineRunError"]
