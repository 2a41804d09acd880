"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory

from pipeline_runner_action.models.inputs import ActionInputs


class ActionInputsFactory(ModelFactory[ActionInputs]):
    """Factory for ActionInputs."""

    organization = "test-org"
    project = "test-project"
    pipeline_id = "42"
    parameters = Use(dict)
    variables = Use(dict)
    branch = None
    preview_run = False
