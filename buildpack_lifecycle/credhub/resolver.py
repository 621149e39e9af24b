"""
Service binding interpolation.

Resolves ``credhub-ref`` placeholders in VCAP_SERVICES through the secret
store, retrying transient failures with a fixed delay.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping

from buildpack_lifecycle.config import CredhubSettings
from buildpack_lifecycle.errors import InterpolationError
from buildpack_lifecycle.retry import ConstantBackoff, RetryPolicy, with_retry

from .client import CredhubClient

logger = logging.getLogger(__name__)

CREDHUB_REF_MARKER = '"credhub-ref"'

ClientFactory = Callable[[str, float], CredhubClient]


class SecretResolver:
    """
    Interpolates service bindings documents.

    Documents without a ``"credhub-ref"`` key are returned untouched and
    no client is built.

    Example:
        resolver = SecretResolver(CredhubSettings(connect_attempts=3, retry_delay=1.0))
        services = resolver.interpolate(os.environ["VCAP_SERVICES"], "https://credhub:8844")
    """

    def __init__(
        self,
        settings: CredhubSettings | None = None,
        *,
        client_factory: ClientFactory | None = None,
        environ: Mapping[str, str] | None = None,
        cancel: threading.Event | None = None,
    ):
        self.settings = settings or CredhubSettings()
        self._client_factory = client_factory
        self._environ = environ
        self._cancel = cancel

    def _build_client(self, base_uri: str) -> CredhubClient:
        timeout = self.settings.attempt_timeout
        if self._client_factory is not None:
            return self._client_factory(base_uri, timeout)
        return CredhubClient.from_environment(base_uri, timeout=timeout, environ=self._environ)

    def policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.connect_attempts,
            backoff=ConstantBackoff(delay=self.settings.retry_delay),
            retry_on=(InterpolationError,),
            retry_if=lambda e: getattr(e, "retryable", False),
        )

    def interpolate(self, bindings: str, base_uri: str) -> str:
        """
        Return ``bindings`` with every credhub-ref resolved.

        Raises:
            ClientConfigError: identity materials missing or unusable
            InterpolationError: the store refused, or every attempt failed
        """
        if CREDHUB_REF_MARKER not in bindings:
            return bindings

        client = self._build_client(base_uri)
        try:
            result = with_retry(
                lambda: client.interpolate(bindings),
                policy=self.policy(),
                operation_name="credhub interpolate",
                cancel=self._cancel,
            )
        finally:
            client.close()

        if result.success:
            logger.info(f"Interpolated service bindings after {result.attempts} attempt(s)")
            return result.result

        if result.cancelled:
            raise InterpolationError("Unable to interpolate credhub references: cancelled")

        error = result.final_error
        raise InterpolationError(
            "Unable to interpolate credhub references",
            status_code=getattr(error, "status_code", None),
            cause=error,
        ) from error
