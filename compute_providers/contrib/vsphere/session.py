"""Session handling for the vSphere driver.

One session per driver call: ``open_session`` connects, hands the
caller the service content, and disconnects when the block exits. There
is no pooling and nothing is cached between calls.
"""
from __future__ import annotations

import logging
import ssl
from contextlib import contextmanager
from typing import Any, Iterator

from pyVim.connect import Disconnect, SmartConnect

from compute_providers.base import ProviderCredential
from compute_providers.errors import ConfigurationError

logger = logging.getLogger("compute_providers.contrib.vsphere.session")


def resolve_endpoint(credential: ProviderCredential, settings: Any) -> tuple[str, int]:
    """Pick the host and port for this call: the credential first, then settings."""
    host = credential.hostname or settings.get("VSPHERE_HOST", "")
    if not host:
        raise ConfigurationError(
            "No vSphere endpoint: set hostname on the credential or VSPHERE_HOST in settings"
        )
    port = credential.port or settings.get("VSPHERE_PORT", 443)
    return host, int(port)


def connect(credential: ProviderCredential, settings: Any):
    """Open a vSphere session and return the ServiceInstance."""
    host, port = resolve_endpoint(credential, settings)
    validate_certs = credential.extra.get(
        "validate_certs", settings.get("VSPHERE_VALIDATE_CERTS", False),
    )

    connect_kwargs = {
        "host": host,
        "port": port,
        "user": credential.username,
        "pwd": credential.password,
    }

    if not validate_certs:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        connect_kwargs["sslContext"] = ctx

    logger.info(
        "Connecting to vSphere: %s:%d as %s (validate_certs=%s)",
        host, port, credential.username, validate_certs,
    )
    return SmartConnect(**connect_kwargs)


def disconnect(service_instance) -> None:
    """Close a session. Never raises."""
    if service_instance is None:
        return
    try:
        Disconnect(service_instance)
    except Exception:
        logger.exception("Error disconnecting from vSphere")


@contextmanager
def open_session(credential: ProviderCredential, settings: Any) -> Iterator[Any]:
    """Yield the ServiceContent of a fresh session, disconnecting afterwards."""
    si = connect(credential, settings)
    try:
        yield si.RetrieveContent()
    finally:
        disconnect(si)
