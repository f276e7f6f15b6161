from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge

from apcupsd_nut_proxy.apcaccess import RefreshResult


_COMMAND_LABELS: tuple[str, ...] = (
    "LIST UPS",
    "LIST VAR",
    "GET VAR",
    "SET VAR",
    "LOGIN",
    "LOGOUT",
    "USERNAME",
    "PASSWORD",
    "STARTTLS",
)


def command_label(line: str) -> str:
    for label in _COMMAND_LABELS:
        if line == label or line.startswith(f"{label} "):
            return label
    return "other"


class ProxyMetricsPublisher:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        if registry is None:
            registry = CollectorRegistry()
        self.registry = registry

        self.sessions_active = Gauge(
            "apcupsd_nut_proxy_sessions_active",
            "Number of currently connected NUT clients",
            registry=self.registry,
        )
        self.commands_total = Counter(
            "apcupsd_nut_proxy_commands",
            "NUT commands received from clients",
            ["command"],
            registry=self.registry,
        )
        self.command_errors_total = Counter(
            "apcupsd_nut_proxy_command_errors",
            "NUT commands that failed with a telemetry error and got no response",
            ["command"],
            registry=self.registry,
        )
        self.refresh_success = Gauge(
            "apcupsd_nut_proxy_refresh_success",
            "Latest apcaccess refresh status (1=success, 0=failure)",
            ["target"],
            registry=self.registry,
        )
        self.refresh_duration_seconds = Gauge(
            "apcupsd_nut_proxy_refresh_duration_seconds",
            "Duration of the last apcaccess invocation in seconds",
            ["target"],
            registry=self.registry,
        )
        self.refresh_timestamp_seconds = Gauge(
            "apcupsd_nut_proxy_refresh_timestamp_seconds",
            "Unix timestamp of the last successful apcaccess refresh",
            ["target"],
            registry=self.registry,
        )
        self.telemetry_keys_total = Gauge(
            "apcupsd_nut_proxy_telemetry_keys_total",
            "Number of keys reported by the last successful apcaccess refresh",
            ["target"],
            registry=self.registry,
        )

    def session_started(self) -> None:
        self.sessions_active.inc()

    def session_finished(self) -> None:
        self.sessions_active.dec()

    def command_received(self, line: str) -> None:
        self.commands_total.labels(command=command_label(line)).inc()

    def command_failed(self, line: str) -> None:
        self.command_errors_total.labels(command=command_label(line)).inc()

    def apply_refresh_result(self, *, target: str, result: RefreshResult) -> None:
        self.refresh_success.labels(target=target).set(1.0 if result.success else 0.0)
        if result.duration_seconds is not None:
            self.refresh_duration_seconds.labels(target=target).set(result.duration_seconds)
        if result.success and result.observed_at is not None:
            self.refresh_timestamp_seconds.labels(target=target).set(result.observed_at)
        if result.success:
            self.telemetry_keys_total.labels(target=target).set(float(result.keys_total))
