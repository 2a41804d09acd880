"""Pipeline runner coordinating authentication and the pipeline run."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import SecretStr

from pipeline_runner_action.azure_devops import (
    AzureDevOpsClient,
    AzureDevOpsConfig,
    PipelineRun,
)
from pipeline_runner_action.identity import ManagedIdentityCredential
from pipeline_runner_action.models.inputs import ActionInputs
from pipeline_runner_action.models.result import RunOutputs

log = logging.getLogger(__name__)

type ClientFactory = Callable[
    [AzureDevOpsConfig, SecretStr], AbstractAsyncContextManager[AzureDevOpsClient]
]


@dataclass(frozen=True, kw_only=True)
class PipelineRunner:
    """Runs one pipeline using the runner host's managed identity."""

    credential: ManagedIdentityCredential
    api_base_url: str = "https://dev.azure.com"
    api_timeout: float = 60
    client_factory: ClientFactory = AzureDevOpsClient.from_config

    async def run(self, inputs: ActionInputs) -> RunOutputs:
        """Authenticate, validate access and start (or preview) the run.

        Args:
            inputs: Validated action inputs

        Returns:
            Outputs describing the created run

        Raises:
            RuntimeError: If managed identity or the pipeline is unavailable
            TokenAcquisitionError: If no token could be acquired
            PipelineRunError: If the run could not be created

        """
        if not await self.credential.check_availability():
            raise RuntimeError(
                "Managed Identity is not available. This action must run on a "
                "self-hosted runner with Managed Identity enabled."
            )
        log.info("Managed Identity is available")

        log.info("Acquiring access token...")
        token = await self.credential.acquire_token()
        log.info("Successfully acquired access token")

        config = AzureDevOpsConfig(
            organization=inputs.organization,
            api_base_url=self.api_base_url,
            timeout=self.api_timeout,
        )
        async with self.client_factory(config, token.access_token) as client:
            log.info("Validating pipeline access...")
            if not await client.validate_pipeline_access(
                inputs.project, inputs.pipeline_id
            ):
                raise RuntimeError(
                    f"Cannot access pipeline {inputs.pipeline_id} in project "
                    f"{inputs.project}. Please check that the pipeline exists and "
                    "the Managed Identity has the required permissions."
                )
            log.info("Pipeline access validated successfully")

            log.info(
                "%s pipeline run...", "Previewing" if inputs.preview_run else "Starting"
            )
            run = await client.run_pipeline(inputs)

        return to_run_outputs(run)


def to_run_outputs(run: PipelineRun) -> RunOutputs:
    """Project a pipeline run onto the action outputs."""
    return RunOutputs(
        run_id=str(run.id),
        run_name=run.name,
        status=run.state,
        run_url=run.web_url,
    )
