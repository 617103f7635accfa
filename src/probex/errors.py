"""
Everything a source adapter can fail with.

The exporter catches ScrapeError at its collect() boundary, so none of
these ever take the process down.
"""

from __future__ import annotations

from typing import Optional


class ScrapeError(Exception):
    """Base class for a failed fetch or parse."""


class TransportError(ScrapeError):
    """Network failure or timeout while reaching the source."""


class BadStatus(ScrapeError):

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body[:200]
        super().__init__(f"HTTP {status_code}: {self.body}")


class ParseError(ScrapeError):
    """The source answered, but not with valid JSON/YAML."""


class MissingCredential(ScrapeError):
    """No usable X.509 identity when one is needed."""


class CommandFailed(ScrapeError):

    def __init__(self, command: str, returncode: Optional[int], stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        if returncode is None:
            msg = f"{command}: did not complete"
        else:
            msg = f"{command}: exit status {returncode}"
        if self.stderr:
            msg += f" ({self.stderr[:200]})"
        super().__init__(msg)


class ProcessNotFound(ScrapeError):

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"no process with pid {pid}")
