import pytest
from prometheus_client import CollectorRegistry, generate_latest

from apcupsd_nut_proxy.apcaccess import RefreshResult
from apcupsd_nut_proxy.exporter import ProxyMetricsPublisher, command_label


def test_metrics_publisher_tracks_refresh_results() -> None:
    registry = CollectorRegistry()
    publisher = ProxyMetricsPublisher(registry=registry)

    publisher.apply_refresh_result(
        target="127.0.0.1",
        result=RefreshResult(
            success=True,
            observed_at=1700000000.0,
            duration_seconds=0.25,
            keys_total=42,
        ),
    )

    rendered = generate_latest(registry).decode("utf-8")
    assert 'apcupsd_nut_proxy_refresh_success{target="127.0.0.1"} 1.0' in rendered
    assert 'apcupsd_nut_proxy_refresh_duration_seconds{target="127.0.0.1"} 0.25' in rendered
    assert (
        registry.get_sample_value("apcupsd_nut_proxy_refresh_timestamp_seconds", {"target": "127.0.0.1"})
        == 1700000000.0
    )
    assert 'apcupsd_nut_proxy_telemetry_keys_total{target="127.0.0.1"} 42.0' in rendered


def test_metrics_publisher_keeps_last_values_on_failed_refresh() -> None:
    registry = CollectorRegistry()
    publisher = ProxyMetricsPublisher(registry=registry)

    publisher.apply_refresh_result(
        target="ups-host",
        result=RefreshResult(success=True, observed_at=1700000000.0, duration_seconds=0.2, keys_total=40),
    )
    publisher.apply_refresh_result(
        target="ups-host",
        result=RefreshResult(success=False, duration_seconds=0.9, error="apcaccess command failed"),
    )

    assert registry.get_sample_value("apcupsd_nut_proxy_refresh_success", {"target": "ups-host"}) == 0.0
    assert registry.get_sample_value("apcupsd_nut_proxy_refresh_duration_seconds", {"target": "ups-host"}) == 0.9
    assert (
        registry.get_sample_value("apcupsd_nut_proxy_refresh_timestamp_seconds", {"target": "ups-host"})
        == 1700000000.0
    )
    assert registry.get_sample_value("apcupsd_nut_proxy_telemetry_keys_total", {"target": "ups-host"}) == 40.0


def test_metrics_publisher_counts_sessions_and_commands() -> None:
    registry = CollectorRegistry()
    publisher = ProxyMetricsPublisher(registry=registry)

    publisher.session_started()
    publisher.session_started()
    publisher.session_finished()
    publisher.command_received("GET VAR ups ups.status")
    publisher.command_received("GET VAR ups battery.charge")
    publisher.command_received("QUIT NOW")
    publisher.command_failed("LIST VAR ups")

    assert registry.get_sample_value("apcupsd_nut_proxy_sessions_active") == 1.0
    assert registry.get_sample_value("apcupsd_nut_proxy_commands_total", {"command": "GET VAR"}) == 2.0
    assert registry.get_sample_value("apcupsd_nut_proxy_commands_total", {"command": "other"}) == 1.0
    assert registry.get_sample_value("apcupsd_nut_proxy_command_errors_total", {"command": "LIST VAR"}) == 1.0


@pytest.mark.parametrize(
    ("line", "label"),
    [
        ("LIST UPS", "LIST UPS"),
        ("LIST VAR ups", "LIST VAR"),
        ("LOGIN ups", "LOGIN"),
        ("LOGOUT", "LOGOUT"),
        ("SET VAR ups ups.delay.start 10", "SET VAR"),
        ("LISTEN", "other"),
        ("", "other"),
    ],
)
def test_command_label(line: str, label: str) -> None:
    assert command_label(line) == label
