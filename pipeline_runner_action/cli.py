"""CLI entry point for the Azure DevOps pipeline runner action."""

import argparse
import asyncio
import json
import logging
import os
import sys
import uuid
from collections.abc import Mapping
from pathlib import Path

from pipeline_runner_action.identity import (
    ManagedIdentityConfig,
    ManagedIdentityCredential,
)
from pipeline_runner_action.inputs import (
    BRANCH_INPUT,
    ORGANIZATION_INPUT,
    PARAMETERS_INPUT,
    PIPELINE_ID_INPUT,
    PREVIEW_RUN_INPUT,
    PROJECT_INPUT,
    VARIABLES_INPUT,
    resolve_configuration,
)
from pipeline_runner_action.models.result import RunOutputs
from pipeline_runner_action.orchestrator import PipelineRunner

log = logging.getLogger("pipeline_runner_action")


def log_run_summary(outputs: RunOutputs, *, preview_run: bool) -> None:
    """Log the outcome of a started or previewed run."""
    if outputs.run_url:
        log.info("Pipeline run URL: %s", outputs.run_url)
    log.info(
        "✅ Pipeline run %s completed successfully!",
        "preview" if preview_run else "execution",
    )
    log.info("Run ID: %s", outputs.run_id)
    log.info("Run Name: %s", outputs.run_name)
    log.info("Status: %s", outputs.status)


def write_outputs(outputs: Mapping[str, str], output_file: Path | None) -> None:
    """Append outputs to the GitHub Actions output file, if there is one.

    Multiline values use the heredoc form with a random delimiter.
    """
    if output_file is None:
        return
    with output_file.open("a", encoding="utf-8") as f:
        for name, value in outputs.items():
            if "\n" in value or "\r" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")


async def run(
    raw_inputs: Mapping[str, str],
    api_base_url: str = "https://dev.azure.com",
    imds_base_url: str = "http://169.254.169.254",
    api_timeout: float = 60,
    output_file: Path | None = None,
) -> int:
    """Run the pipeline described by the raw inputs and return exit code."""
    try:
        inputs = resolve_configuration(raw_inputs)
        log.info("Organization: %s", inputs.organization)
        log.info("Project: %s", inputs.project)
        log.info("Pipeline ID: %s", inputs.pipeline_id)
        log.info("Preview Run: %s", inputs.preview_run)
        if inputs.branch:
            log.info("Branch: %s", inputs.branch)

        identity_config = ManagedIdentityConfig(base_url=imds_base_url)
        async with ManagedIdentityCredential.from_config(identity_config) as credential:
            runner = PipelineRunner(
                credential=credential,
                api_base_url=api_base_url,
                api_timeout=api_timeout,
            )
            outputs = await runner.run(inputs)
    except Exception as e:
        log.error("Action failed: %s", e)
        return 1

    write_outputs(outputs.as_outputs(), output_file)
    log_run_summary(outputs, preview_run=inputs.preview_run)
    print(json.dumps(outputs.as_outputs(), indent=2))
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run an Azure DevOps pipeline using Managed Identity"
    )
    parser.add_argument(
        "--organization",
        default="",
        help="Azure DevOps organization name",
    )
    parser.add_argument(
        "--project",
        default="",
        help="Azure DevOps project name or ID",
    )
    parser.add_argument(
        "--pipeline-id",
        default="",
        help="Numeric ID of the pipeline to run",
    )
    parser.add_argument(
        "--pipeline-parameters",
        default="{}",
        help="JSON object of template parameters",
    )
    parser.add_argument(
        "--pipeline-variables",
        default="{}",
        help="JSON object of variables (plain values or {value, isSecret})",
    )
    parser.add_argument(
        "--branch",
        default="",
        help="Repository ref to run against (e.g., refs/heads/main)",
    )
    parser.add_argument(
        "--preview-run",
        default="false",
        help="Validate the run without executing it (true/false)",
    )
    parser.add_argument(
        "--api-base-url",
        default="https://dev.azure.com",
        help="Azure DevOps REST API base URL",
    )
    parser.add_argument(
        "--imds-base-url",
        default="http://169.254.169.254",
        help="Instance Metadata Service base URL",
    )
    parser.add_argument(
        "--api-timeout",
        type=float,
        default=60,
        help="Timeout in seconds for Azure DevOps API requests",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    raw_inputs = {
        ORGANIZATION_INPUT: args.organization,
        PROJECT_INPUT: args.project,
        PIPELINE_ID_INPUT: args.pipeline_id,
        PARAMETERS_INPUT: args.pipeline_parameters,
        VARIABLES_INPUT: args.pipeline_variables,
        BRANCH_INPUT: args.branch,
        PREVIEW_RUN_INPUT: args.preview_run,
    }
    github_output = os.environ.get("GITHUB_OUTPUT")

    exit_code = asyncio.run(
        run(
            raw_inputs,
            api_base_url=args.api_base_url,
            imds_base_url=args.imds_base_url,
            api_timeout=args.api_timeout,
            output_file=Path(github_output) if github_output else None,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
