"""Managed identity credential backed by the Azure Instance Metadata Service."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from pipeline_runner_action.identity.config import ManagedIdentityConfig
from pipeline_runner_action.identity.models import ManagedIdentityToken

log = logging.getLogger(__name__)

TOKEN_PATH = "/metadata/identity/oauth2/token"
INSTANCE_PATH = "/metadata/instance"
METADATA_HEADERS = {"Metadata": "true"}

type Sleep = Callable[[float], Awaitable[None]]


class TokenAcquisitionError(RuntimeError):
    """Raised when no token could be obtained from the metadata service."""


@dataclass(frozen=True, kw_only=True)
class ManagedIdentityCredential:
    """Credential for the managed identity assigned to the runner host.

    Tokens are requested fresh on every call and never cached.
    """

    config: ManagedIdentityConfig
    session: aiohttp.ClientSession = field(repr=False)
    sleep: Sleep = field(default=asyncio.sleep, repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ManagedIdentityConfig, *, sleep: Sleep = asyncio.sleep
    ) -> AsyncGenerator["ManagedIdentityCredential", None]:
        """Create credential with managed session lifecycle."""
        async with aiohttp.ClientSession(base_url=config.base_url) as session:
            yield cls(config=config, session=session, sleep=sleep)

    async def acquire_token(self) -> ManagedIdentityToken:
        """Acquire an access token for Azure DevOps.

        Returns:
            The token issued by the metadata service

        Raises:
            TokenAcquisitionError: If every attempt failed

        """
        log.debug("Attempting to acquire Managed Identity token...")

        last_error: Exception | None = None
        async with aclosing(self._attempts()) as attempts:
            async for outcome in attempts:
                if isinstance(outcome, ManagedIdentityToken):
                    log.debug("Successfully acquired Managed Identity token")
                    return outcome
                last_error = outcome

        message = (
            "Failed to acquire Managed Identity token after "
            f"{self.config.max_attempts} attempts. "
            f"Last error: {last_error or 'Unknown error'}"
        )
        log.error(message)
        raise TokenAcquisitionError(message) from last_error

    async def check_availability(self) -> bool:
        """Check whether the metadata service answers on this host.

        Never raises; any transport failure or timeout reports unavailable.
        """
        log.debug("Validating Managed Identity availability...")

        try:
            async with self.session.get(
                INSTANCE_PATH,
                params={"api-version": self.config.instance_api_version},
                headers=METADATA_HEADERS,
                timeout=aiohttp.ClientTimeout(total=self.config.availability_timeout),
            ) as response:
                available = response.ok
        except (aiohttp.ClientError, TimeoutError) as e:
            reason = str(e) or type(e).__name__
            log.debug("Managed Identity not available: %s", reason)
            return False

        log.debug("Managed Identity availability: %s", available)
        return available

    async def _attempts(
        self,
    ) -> AsyncGenerator[ManagedIdentityToken | Exception, None]:
        """Yield the token or the failure of each attempt, pausing in between."""
        for attempt in range(1, self.config.max_attempts + 1):
            if attempt > 1:
                log.debug("Retrying in %.1fs...", self.config.retry_delay)
                await self.sleep(self.config.retry_delay)

            log.debug(
                "Token acquisition attempt %d/%d", attempt, self.config.max_attempts
            )
            try:
                token = await self._request_token()
            except (aiohttp.ClientError, RuntimeError, ValueError) as e:
                log.warning("Token acquisition attempt %d failed: %s", attempt, e)
                yield e
            else:
                yield token

    async def _request_token(self) -> ManagedIdentityToken:
        params = {
            "api-version": self.config.token_api_version,
            "resource": self.config.resource,
        }
        try:
            async with self.session.get(
                TOKEN_PATH,
                params=params,
                headers=METADATA_HEADERS,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                if not response.ok:
                    text = await response.text()
                    raise RuntimeError(
                        f"IMDS request failed with status {response.status}: {text}"
                    )
                data = await response.json(content_type=None)
        except TimeoutError as e:
            raise RuntimeError(
                f"IMDS request timed out after {self.config.timeout}s"
            ) from e

        token = ManagedIdentityToken.model_validate(data)
        if not token.access_token.get_secret_value():
            raise RuntimeError("No access token received from IMDS")
        return token
