"""
Secret store (CredHub) client.

A thin synchronous client for the interpolation endpoint. Requests are
authenticated with the container's instance identity certificate, and the
server is verified against the CA certificates shipped in the system cert
directory, so the client trusts nothing else.

Error mapping:
    - 200: body is the interpolated document
    - 401/403: not retryable
    - 429, 5xx, transport failures: retryable
    - anything else: not retryable
"""

from __future__ import annotations

import logging
import os
import ssl
from collections.abc import Mapping
from pathlib import Path

import httpx

from buildpack_lifecycle.errors import ClientConfigError, InterpolationError

logger = logging.getLogger(__name__)

INTERPOLATE_PATH = "/api/v1/interpolate"

INSTANCE_CERT_ENV = "CF_INSTANCE_CERT"
INSTANCE_KEY_ENV = "CF_INSTANCE_KEY"
SYSTEM_CERT_PATH_ENV = "CF_SYSTEM_CERT_PATH"
LEGACY_SYSTEM_CERT_PATH_ENV = "CF_SYSTEM_CERTS_PATH"


def load_trusted_cas(cert_dir: Path) -> str:
    """
    Concatenate every ``*.crt`` file in the system cert directory.

    Raises:
        ClientConfigError: the directory or one of its certificates is unreadable
    """
    try:
        names = sorted(entry.name for entry in cert_dir.iterdir() if entry.name.endswith(".crt"))
    except OSError as e:
        raise ClientConfigError("Can't read contents of system cert path", cause=e) from e

    pems = []
    for name in names:
        try:
            pems.append((cert_dir / name).read_text())
        except OSError as e:
            raise ClientConfigError("Can't read contents of cert in system cert path", cause=e) from e
    return "\n".join(pems)


def build_ssl_context(cert_file: str, key_file: str, cadata: str) -> ssl.SSLContext:
    """
    Mutual-TLS context trusting only ``cadata``.

    Raises:
        ClientConfigError: the certificate, key or CA bundle cannot be loaded
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    try:
        if cadata.strip():
            context.load_verify_locations(cadata=cadata)
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ssl.SSLError, ValueError) as e:
        raise ClientConfigError("Unable to load TLS materials", cause=e) from e
    return context


class CredhubClient:
    """
    Client for the CredHub interpolation API.

    Usage:
        client = CredhubClient.from_environment("https://credhub.service.internal:8844", timeout=5)
        try:
            services = client.interpolate(os.environ["VCAP_SERVICES"])
        finally:
            client.close()

    Args:
        base_uri: Server root URI
        timeout: Per-request timeout in seconds
        client: Pre-built httpx client (tests inject a MockTransport)
    """

    def __init__(
        self,
        base_uri: str,
        *,
        timeout: float = 5.0,
        verify: ssl.SSLContext | bool = True,
        client: httpx.Client | None = None,
    ):
        self.base_uri = base_uri.rstrip("/")
        self._timeout = timeout
        self._verify = verify
        self._client = client

    @classmethod
    def from_environment(
        cls,
        base_uri: str,
        *,
        timeout: float = 5.0,
        environ: Mapping[str, str] | None = None,
    ) -> CredhubClient:
        """
        Build a client from the container's identity materials.

        Raises:
            ClientConfigError: a required variable is unset or a file is unusable
        """
        environ = os.environ if environ is None else environ

        cert_file = environ.get(INSTANCE_CERT_ENV, "")
        key_file = environ.get(INSTANCE_KEY_ENV, "")
        if not cert_file or not key_file:
            raise ClientConfigError(f"Missing {INSTANCE_CERT_ENV} and/or {INSTANCE_KEY_ENV}")

        cert_dir = environ.get(SYSTEM_CERT_PATH_ENV) or environ.get(LEGACY_SYSTEM_CERT_PATH_ENV) or ""
        if not cert_dir:
            raise ClientConfigError(f"Missing {SYSTEM_CERT_PATH_ENV}")

        context = build_ssl_context(cert_file, key_file, load_trusted_cas(Path(cert_dir)))
        return cls(base_uri, timeout=timeout, verify=context)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_uri,
                verify=self._verify,
                timeout=self._timeout,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def interpolate(self, document: str) -> str:
        """
        Resolve every credhub-ref in a service bindings document (one attempt).

        Raises:
            InterpolationError: ``retryable`` tells whether another attempt may succeed
        """
        try:
            response = self._get_client().post(INTERPOLATE_PATH, content=document.encode())
        except httpx.TransportError as e:
            raise InterpolationError("Unable to reach credhub", retryable=True, cause=e) from e

        self._check_response(response)
        return response.text

    def _check_response(self, response: httpx.Response) -> None:
        status = response.status_code
        if status == 200:
            return

        body = response.text[:200] if response.text else ""
        logger.debug(f"credhub responded {status}: {body}")

        if status in (401, 403):
            raise InterpolationError("Not authorized to interpolate credhub references", status_code=status)
        if status == 429 or status >= 500:
            raise InterpolationError("credhub unavailable", status_code=status, retryable=True)
        raise InterpolationError("credhub rejected interpolation request", status_code=status)
