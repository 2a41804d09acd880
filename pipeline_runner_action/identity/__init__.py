"""Managed identity credential module."""

from pipeline_runner_action.identity.config import ManagedIdentityConfig
from pipeline_runner_action.identity.credential import (
    ManagedIdentityCredential,
    TokenAcquisitionError,
)
from pipeline_runner_action.identity.models import ManagedIdentityToken

__all__ = [
    "ManagedIdentityConfig",
    "ManagedIdentityCredential",
    "ManagedIdentityToken",
    "TokenAcquisitionError",
]
