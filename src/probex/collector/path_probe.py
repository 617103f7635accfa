"""
Source adapter that checks a storage mount is reachable and writable.

Reports one status code rather than raising, since "the mount is broken"
is the thing being measured, not a scrape failure.
"""

from __future__ import annotations

import logging
import os
import tempfile
from enum import IntEnum

from probex.collector.base import SourceAdapter
from probex.mapping.value import Value

log = logging.getLogger(__name__)


class PathStatus(IntEnum):
    OK = 0
    NO_ACCESS = 1
    WRITE_FAILED = 2
    CLOSE_FAILED = 3


def probe_path(path: str) -> PathStatus:
    if not path or not os.path.isdir(path):
        log.debug("%s is not accessible", path)
        return PathStatus.NO_ACCESS

    try:
        fd, tmp_name = tempfile.mkstemp(prefix="tmp-", dir=path)
    except OSError as exc:
        log.debug("cannot create a file in %s: %s", path, exc)
        return PathStatus.NO_ACCESS

    status = PathStatus.OK
    handle = os.fdopen(fd, "wb")
    try:
        handle.write(b"This is a test")
        handle.flush()
    except OSError as exc:
        log.debug("failed to write temporary file %s: %s", tmp_name, exc)
        status = PathStatus.WRITE_FAILED

    try:
        handle.close()
    except OSError as exc:
        log.debug("failed to close temporary file %s: %s", tmp_name, exc)
        if status is PathStatus.OK:
            status = PathStatus.CLOSE_FAILED

    try:
        os.remove(tmp_name)
    except OSError:
        log.debug("could not remove %s", tmp_name)

    return status


class PathProbeSource(SourceAdapter):

    def __init__(self, path: str):
        self._path = path

    def fetch(self) -> Value:
        return Value({"status": int(probe_path(self._path))})

    def name(self) -> str:
        return f"path ({self._path})"
