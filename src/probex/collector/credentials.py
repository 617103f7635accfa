"""
X.509 client identity for HTTPS status pages.

Looks for a grid proxy (X509_USER_PROXY, --proxyfile, or the usual
/tmp/x509up_u<uid>) and falls back to an X509_USER_CERT/X509_USER_KEY
pair. The loaded TLS context is cached and thrown away after
renew_interval seconds so a renewed proxy on disk gets picked up.

The provider is owned by whoever builds the HTTP source; it is only ever
touched from inside the exporter's scrape lock.
"""

from __future__ import annotations

import logging
import os
import ssl
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from probex.errors import MissingCredential

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    certfile: str
    keyfile: Optional[str] = None

    @property
    def is_proxy(self) -> bool:
        # A proxy file carries its own key
        return self.keyfile is None


def default_proxy_path() -> str:
    return f"/tmp/x509up_u{os.getuid()}"


def locate_identity(
    proxyfile: str = "",
    environ: Optional[Mapping[str, str]] = None,
    proxy_path: Optional[str] = None,
) -> Identity:
    """Work out which certificate files to use, without loading them."""
    env = os.environ if environ is None else environ

    uproxy = env.get("X509_USER_PROXY", "")
    ucert = env.get("X509_USER_CERT", "")
    ukey = env.get("X509_USER_KEY", "")

    if proxyfile:
        if os.path.exists(proxyfile):
            uproxy = proxyfile
    else:
        candidate = proxy_path or default_proxy_path()
        if os.path.exists(candidate):
            uproxy = candidate

    log.debug("user credentials: proxy=%s cert=%s key=%s", uproxy, ucert, ukey)

    if uproxy:
        return Identity(certfile=uproxy)
    if ucert and ukey:
        return Identity(certfile=ucert, keyfile=ukey)
    raise MissingCredential(
        "neither proxy nor user certificates found, set X509_USER_PROXY "
        "or X509_USER_CERT/X509_USER_KEY"
    )


def build_tls_context(identity: Identity) -> ssl.SSLContext:
    # Status pages sit behind self-signed front-ends; we only present our
    # identity, we don't verify theirs.
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    try:
        ctx.load_cert_chain(certfile=identity.certfile, keyfile=identity.keyfile)
    except (OSError, ssl.SSLError) as exc:
        kind = "proxy" if identity.is_proxy else "user certificate"
        raise MissingCredential(f"failed to load X509 {kind} {identity.certfile}: {exc}") from exc
    return ctx


class CredentialProvider:
    """Hands out a TLS context with a client certificate, reloading it periodically."""

    def __init__(
        self,
        renew_interval: int = 600,
        proxyfile: str = "",
        clock: Callable[[], float] = time.time,
        locate: Optional[Callable[[], Identity]] = None,
    ):
        self._renew_interval = renew_interval
        self._clock = clock
        self._locate = locate or (lambda: locate_identity(proxyfile=proxyfile))
        self._context: Optional[ssl.SSLContext] = None
        self._expires_at = 0.0
        self.generation = 0

    @property
    def enabled(self) -> bool:
        return self._renew_interval > 0

    @property
    def expires_at(self) -> float:
        return self._expires_at

    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def refresh(self) -> Optional[ssl.SSLContext]:
        """Drop the cached identity and load it again from disk.

        With no certificate files around at all the provider hands out None
        until the next renewal, and the caller talks TLS without a client
        certificate. Files that exist but can't be loaded still raise
        MissingCredential.
        """
        self._context = None
        try:
            identity = self._locate()
        except MissingCredential as exc:
            self._expires_at = self._clock() + self._renew_interval
            log.warning("Unable to get TLS certificate, using a client without one: %s", exc)
            return None
        self._context = build_tls_context(identity)
        self._expires_at = self._clock() + self._renew_interval
        self.generation += 1
        log.info("Loaded client certificate %s, next renewal at %s",
                 identity.certfile, time.strftime("%H:%M:%S", time.localtime(self._expires_at)))
        return self._context

    def tls_context(self) -> Optional[ssl.SSLContext]:
        """Current context, refreshed if it has expired. None when disabled."""
        if not self.enabled:
            return None
        if self.expired():
            return self.refresh()
        return self._context
