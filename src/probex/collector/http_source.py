"""
Source adapter for HTTP(S) JSON status pages.

One GET per fetch, bounded by the connection timeout. When a credential
provider is attached, the client presents an X.509 identity and is rebuilt
whenever the provider reloads it.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from probex.collector.base import SourceAdapter
from probex.collector.credentials import CredentialProvider
from probex.errors import BadStatus, ParseError, TransportError
from probex.mapping.value import Value

log = logging.getLogger(__name__)

JSON = "application/json"


class HTTPSource(SourceAdapter):

    def __init__(
        self,
        uri: str,
        timeout: Optional[float] = 3.0,
        content_type: str = JSON,
        user_agent: str = "",
        credentials: Optional[CredentialProvider] = None,
        status_only: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not uri:
            raise ValueError("HTTPSource needs a URI")
        self._uri = uri
        self._timeout = timeout
        self._content_type = content_type
        self._credentials = credentials
        self._status_only = status_only
        self._transport = transport

        self._headers: Dict[str, str] = {"Accept-Encoding": "identity"}
        if content_type:
            self._headers["Accept"] = content_type
        if user_agent:
            self._headers["User-Agent"] = user_agent

        self._client: Optional[httpx.Client] = None
        self._client_generation = -1

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def _tls_context(self):
        # Client certificates only mean something over TLS
        if self._credentials is None or not self._uri.startswith("https://"):
            return None
        return self._credentials.tls_context()

    def _get_client(self) -> httpx.Client:
        ctx = self._tls_context()
        generation = self._credentials.generation if ctx is not None else 0

        if self._client is not None and generation == self._client_generation:
            return self._client

        if self._client is not None:
            log.debug("Renewing HTTP client for %s", self._uri)
            self._client.close()

        kwargs = {"timeout": self._timeout}
        if ctx is not None:
            kwargs["verify"] = ctx
        if self._transport is not None:
            kwargs["transport"] = self._transport

        self._client = httpx.Client(**kwargs)
        self._client_generation = generation
        return self._client

    def fetch(self) -> Value:
        client = self._get_client()

        try:
            response = client.get(self._uri, headers=self._headers)
        except httpx.TimeoutException as exc:
            raise TransportError(f"timeout after {self._timeout}s fetching {self._uri}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to fetch {self._uri}: {exc}") from exc

        if not response.is_success:
            raise BadStatus(response.status_code, response.text)

        if self._status_only:
            # Only the code matters, but a JSON page that doesn't decode is
            # still a broken page
            if self._content_type == JSON:
                self._decode(response)
            return Value({"status": response.status_code})

        return Value.wrap(self._decode(response))

    def _decode(self, response: httpx.Response):
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"{self._uri} did not return valid JSON: {exc}") from exc

    def name(self) -> str:
        return f"HTTP ({self._uri})"

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None
