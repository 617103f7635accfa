"""
Source adapter that runs an external script and parses its stdout.

The script prints YAML (or JSON, which YAML also accepts). Typical use is
the OpenStack quota script, invoked as `/bin/bash quota.sh keystone_env.sh`.

No timeout is applied unless one is configured. A hung script holds the
exporter's scrape lock and every later pull queues behind it.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from typing import List, Optional, Sequence

import yaml

from probex.collector.base import SourceAdapter
from probex.errors import CommandFailed, ParseError
from probex.mapping.value import Kind, Value

log = logging.getLogger(__name__)


class CommandSource(SourceAdapter):

    def __init__(
        self,
        script: str,
        args: Sequence[str] = (),
        interpreter: Optional[str] = "/bin/bash",
        timeout: Optional[float] = None,
        timestamp_key: Optional[str] = None,
    ):
        self._argv: List[str] = ([interpreter] if interpreter else []) + [script] + list(args)
        self._timeout = timeout
        self._timestamp_key = timestamp_key

    @property
    def argv(self) -> List[str]:
        return list(self._argv)

    def _command(self) -> str:
        return " ".join(shlex.quote(a) for a in self._argv)

    def fetch(self) -> Value:
        started = time.perf_counter()
        try:
            result = subprocess.run(
                self._argv,
                capture_output=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandFailed(self._command(), None, f"timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise CommandFailed(self._command(), None, str(exc)) from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")
            raise CommandFailed(self._command(), result.returncode, stderr)

        log.debug("%s took %.2fs", self._command(), time.perf_counter() - started)

        try:
            stdout = result.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"{self._command()} printed output that is not valid UTF-8: {exc}") from exc

        try:
            data = yaml.safe_load(stdout)
        except yaml.YAMLError as exc:
            raise ParseError(f"{self._command()} printed invalid YAML: {exc}") from exc

        snapshot = Value.wrap(data)
        if snapshot.kind is not Kind.OBJECT:
            raise ParseError(f"{self._command()} printed {snapshot.kind.value}, expected a mapping")

        if self._timestamp_key:
            snapshot.raw[self._timestamp_key] = time.time()
        return snapshot

    def name(self) -> str:
        return f"command ({self._command()})"
