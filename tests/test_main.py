from apcupsd_nut_proxy.main import load_config
from apcupsd_nut_proxy.registry import build_default_registry


def test_load_config_defaults(monkeypatch) -> None:
    for name in (
        "NUT_PROXY_ADDRESS",
        "NUT_PROXY_PORT",
        "NUT_PROXY_TARGET_ADDRESS",
        "NUT_PROXY_UPS_NAME",
        "NUT_PROXY_UPS_DESCRIPTION",
        "NUT_PROXY_TIMEOUT_SECONDS",
        "NUT_PROXY_APCACCESS_BIN",
        "NUT_PROXY_APCACCESS_TIMEOUT_SECONDS",
        "NUT_PROXY_DEBUG_APCACCESS",
        "NUT_PROXY_METRICS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = load_config([])

    assert config.proxy.address == "127.0.0.1"
    assert config.proxy.port == 3493
    assert config.proxy.ups_name == "ups"
    assert config.proxy.ups_description == "apcupsd NUT proxy"
    assert config.proxy.timeout_seconds == 30.0
    assert config.proxy.apcaccess.target_address == "127.0.0.1"
    assert config.proxy.apcaccess.apcaccess_bin == "apcaccess"
    assert config.proxy.apcaccess.timeout_seconds is None
    assert config.proxy.apcaccess.debug_apcaccess is False
    assert config.metrics_enabled is True
    assert dict(config.proxy.variables) == dict(build_default_registry())


def test_load_config_reads_environment_and_flags(monkeypatch) -> None:
    monkeypatch.setenv("NUT_PROXY_UPS_NAME", "rack-ups")
    monkeypatch.setenv("NUT_PROXY_PORT", "13493")
    monkeypatch.setenv("NUT_PROXY_DEBUG_APCACCESS", "yes")

    config = load_config(
        [
            "--ups-description",
            "Smart-UPS 1500",
            "--target-address",
            "10.0.0.7:3551",
            "--apcaccess-timeout-seconds",
            "5",
            "--no-metrics",
        ]
    )

    assert config.proxy.ups_name == "rack-ups"
    assert config.proxy.port == 13493
    assert config.proxy.ups_description == "Smart-UPS 1500"
    assert config.proxy.apcaccess.target_address == "10.0.0.7:3551"
    assert config.proxy.apcaccess.timeout_seconds == 5.0
    assert config.proxy.apcaccess.debug_apcaccess is True
    assert config.proxy.apcaccess.command() == ["apcaccess", "-h", "10.0.0.7:3551", "-u"]
    assert config.metrics_enabled is False


def test_proxy_config_str_summarises_settings() -> None:
    config = load_config(["--ups-name", "upsName", "--apcaccess-bin", "/usr/sbin/apcaccess", "--port", "1000"])

    rendered = str(config.proxy)

    assert "upsName" in rendered
    assert "1000" in rendered
    assert "/usr/sbin/apcaccess" in rendered
    assert "device.model" not in rendered
