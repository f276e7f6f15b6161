from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from apcupsd_nut_proxy.errors import ExecutionError, ParseError


LOGGER = logging.getLogger("apcupsd_nut_proxy.apcaccess")


@dataclass(frozen=True)
class ApcAccessConfig:
    apcaccess_bin: str = "apcaccess"
    target_address: str = "127.0.0.1"
    timeout_seconds: float | None = None
    debug_apcaccess: bool = False

    def command(self) -> list[str]:
        return [self.apcaccess_bin, "-h", self.target_address, "-u"]


@dataclass(frozen=True)
class RefreshResult:
    success: bool
    observed_at: float | None = None
    duration_seconds: float | None = None
    keys_total: int = 0
    error: str | None = None


def parse_apcaccess_output(output: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line_number, line in enumerate(output.splitlines(), start=1):
        if not line.strip():
            continue
        key, separator, value = line.partition(":")
        if not separator:
            raise ParseError(f"invalid line {line_number} in apcaccess output: {line.strip()!r}")
        values[key.strip()] = value.strip()
    return values


def _decode(output: bytes | None) -> str:
    # apcupsd passes strings reported by the UPS through untouched, they are not always UTF-8
    return (output or b"").decode("utf-8", errors="replace")


def _summarize(output: str, limit: int = 200) -> str:
    text = " / ".join(line.strip() for line in output.splitlines() if line.strip())
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text


class ApcValues:
    """Telemetry snapshot of a single apcaccess run, owned by one session.

    Every call to :meth:`refresh` runs apcaccess again; ``refreshed_at`` is
    only recorded, it never short-circuits a refresh.
    """

    def __init__(self, on_refresh: Callable[[RefreshResult], None] | None = None) -> None:
        self._values: dict[str, str] = {}
        self._refreshed_at = 0.0
        self._on_refresh = on_refresh

    @property
    def values(self) -> dict[str, str]:
        return dict(self._values)

    @property
    def refreshed_at(self) -> float:
        return self._refreshed_at

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def lookup(self, key: str) -> str | None:
        return self._values.get(key)

    def get(self, key: str) -> str:
        return self._values.get(key, "")

    def refresh(self, config: ApcAccessConfig) -> RefreshResult:
        started_at = time.time()
        monotonic_start = time.monotonic()
        try:
            values = self._collect(config)
        except (ExecutionError, ParseError) as error:
            self._notify(
                RefreshResult(
                    success=False,
                    duration_seconds=time.monotonic() - monotonic_start,
                    error=str(error),
                )
            )
            raise

        self._values = values
        self._refreshed_at = started_at
        result = RefreshResult(
            success=True,
            observed_at=started_at,
            duration_seconds=time.monotonic() - monotonic_start,
            keys_total=len(values),
        )
        self._notify(result)
        return result

    def _collect(self, config: ApcAccessConfig) -> dict[str, str]:
        command = config.command()
        started = time.monotonic()
        try:
            process = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=config.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as error:
            if config.debug_apcaccess:
                LOGGER.info("apcaccess timing: timeout after %.3fs", time.monotonic() - started)
            raise ExecutionError(f"apcaccess timed out after {error.timeout}s") from error
        except OSError as error:
            raise ExecutionError(f"error invoking {command[0]}: {error}") from error

        stdout = _decode(process.stdout)
        stderr = _decode(process.stderr)
        if config.debug_apcaccess:
            LOGGER.info("apcaccess timing: %.3fs rc=%s", time.monotonic() - started, process.returncode)
            LOGGER.info("apcaccess raw stdout:\n%s", stdout or "<empty>")
            LOGGER.info("apcaccess raw stderr:\n%s", stderr or "<empty>")
        if process.returncode != 0:
            details = _summarize(stderr) or _summarize(stdout) or "no output"
            raise ExecutionError(f"apcaccess command failed (rc={process.returncode}): {details}")
        return parse_apcaccess_output(stdout)

    def _notify(self, result: RefreshResult) -> None:
        if self._on_refresh is not None:
            self._on_refresh(result)
