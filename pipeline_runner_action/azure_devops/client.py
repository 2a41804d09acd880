"""Azure DevOps Pipelines REST client."""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp
from pydantic import SecretStr, ValidationError

from pipeline_runner_action.azure_devops.config import AzureDevOpsConfig
from pipeline_runner_action.azure_devops.models import (
    AzureDevOpsError,
    PipelineRun,
    RepositoryResourceParameters,
    RunPipelineParameters,
    RunResourcesParameters,
)
from pipeline_runner_action.models.inputs import ActionInputs

log = logging.getLogger(__name__)


class PipelineRunError(RuntimeError):
    """Raised when a pipeline run cannot be created or fetched."""


def build_run_parameters(inputs: ActionInputs) -> RunPipelineParameters:
    """Build the run request body, overriding the self repository ref if set."""
    overrides: dict[str, RunResourcesParameters] = {}
    if inputs.branch:
        overrides["resources"] = RunResourcesParameters(
            repositories={"self": RepositoryResourceParameters(ref_name=inputs.branch)}
        )

    return RunPipelineParameters(
        preview_run=inputs.preview_run,
        template_parameters=inputs.parameters,
        variables=inputs.variables,
        **overrides,
    )


def extract_error_message(body: str) -> str:
    """Return the message of an Azure DevOps error body, or the body itself."""
    try:
        return AzureDevOpsError.model_validate_json(body).message
    except ValidationError:
        return body


@dataclass(frozen=True, kw_only=True)
class AzureDevOpsClient:
    """Client for the pipelines of one Azure DevOps organization.

    Every request carries the bearer token the client was created with.
    """

    config: AzureDevOpsConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: AzureDevOpsConfig, token: SecretStr
    ) -> AsyncGenerator["AzureDevOpsClient", None]:
        """Create client with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {token.get_secret_value()}",
            "Accept": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def run_pipeline(self, inputs: ActionInputs) -> PipelineRun:
        """Start a pipeline run, or preview it when ``inputs.preview_run`` is set.

        The request is sent exactly once; it is not retried on failure.
        """
        log.debug(
            "Starting pipeline run for pipeline %s in project %s",
            inputs.pipeline_id,
            inputs.project,
        )
        url = self._pipeline_path(inputs.project, inputs.pipeline_id, "/runs")
        payload = build_run_parameters(inputs).to_payload()

        log.debug("Request URL: %s", url)
        log.debug("Request body: %s", json.dumps(payload, indent=2))

        try:
            async with self.session.post(url, json=payload) as response:
                text = await response.text()
                if not response.ok:
                    raise PipelineRunError(
                        "Failed to run pipeline: Azure DevOps API request failed "
                        f"with status {response.status}: {extract_error_message(text)}"
                    )
        except (aiohttp.ClientError, TimeoutError) as e:
            reason = str(e) or type(e).__name__
            raise PipelineRunError(f"Failed to run pipeline: {reason}") from e

        try:
            run = PipelineRun.model_validate_json(text)
        except ValidationError as e:
            raise PipelineRunError(f"Failed to run pipeline: {e}") from e

        log.info(
            "Successfully %s pipeline run with ID: %s",
            "previewed" if inputs.preview_run else "started",
            run.id,
        )
        return run

    async def get_run(self, project: str, pipeline_id: str, run_id: int) -> PipelineRun:
        """Get pipeline run by ID."""
        url = self._pipeline_path(project, pipeline_id, f"/runs/{run_id}")

        try:
            async with self.session.get(url) as response:
                if not response.ok:
                    raise PipelineRunError(
                        "Failed to get pipeline run: "
                        f"{response.status} {response.reason}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            reason = str(e) or type(e).__name__
            raise PipelineRunError(f"Failed to get pipeline run: {reason}") from e

        try:
            return PipelineRun.model_validate(data)
        except ValidationError as e:
            raise PipelineRunError(f"Failed to get pipeline run: {e}") from e

    async def validate_pipeline_access(self, project: str, pipeline_id: str) -> bool:
        """Check that the pipeline exists and the token may read it.

        Never raises; transport failures report no access.
        """
        url = self._pipeline_path(project, pipeline_id)

        try:
            async with self.session.get(url) as response:
                return response.ok
        except (aiohttp.ClientError, TimeoutError) as e:
            reason = str(e) or type(e).__name__
            log.debug("Pipeline validation failed: %s", reason)
            return False

    def _pipeline_path(self, project: str, pipeline_id: str, suffix: str = "") -> str:
        return (
            f"/{self.config.organization}/{project}"
            f"/_apis/pipelines/{pipeline_id}{suffix}"
            f"?api-version={self.config.api_version}"
        )
