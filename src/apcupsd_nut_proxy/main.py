from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass

from prometheus_client import start_http_server

from apcupsd_nut_proxy.apcaccess import ApcAccessConfig
from apcupsd_nut_proxy.config import ProxyConfig
from apcupsd_nut_proxy.errors import AcceptError
from apcupsd_nut_proxy.exporter import ProxyMetricsPublisher
from apcupsd_nut_proxy.registry import build_default_registry
from apcupsd_nut_proxy.server import NutProxyServer


LOGGER = logging.getLogger("apcupsd_nut_proxy")


@dataclass(frozen=True)
class AppConfig:
    proxy: ProxyConfig
    metrics_enabled: bool
    metrics_listen_address: str
    metrics_listen_port: int
    log_level: str


def _float_env(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None:
        return default
    return float(value)


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    return int(value)


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NUT server answering from apcupsd's apcaccess output")
    parser.add_argument(
        "--address",
        default=os.getenv("NUT_PROXY_ADDRESS", "127.0.0.1"),
        help='address on which the server should listen (use "0.0.0.0" to listen on all interfaces)',
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_int_env("NUT_PROXY_PORT", 3493),
        help="port on which the server should listen",
    )
    parser.add_argument(
        "--target-address",
        default=os.getenv("NUT_PROXY_TARGET_ADDRESS", "127.0.0.1"),
        help="address on which apcupsd is running, passed to apcaccess -h",
    )
    parser.add_argument(
        "--ups-name",
        default=os.getenv("NUT_PROXY_UPS_NAME", "ups"),
        help="name of the UPS as seen by NUT clients",
    )
    parser.add_argument(
        "--ups-description",
        default=os.getenv("NUT_PROXY_UPS_DESCRIPTION", "apcupsd NUT proxy"),
        help="short description of the UPS",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        default=_float_env("NUT_PROXY_TIMEOUT_SECONDS", 30.0),
        help="timeout waiting for a client command or sending the response",
    )
    parser.add_argument(
        "--apcaccess-bin",
        default=os.getenv("NUT_PROXY_APCACCESS_BIN", "apcaccess"),
        help="apcaccess binary path",
    )
    parser.add_argument(
        "--apcaccess-timeout-seconds",
        type=float,
        default=_float_env("NUT_PROXY_APCACCESS_TIMEOUT_SECONDS", None),
        help="optional timeout for each apcaccess invocation (default: wait for completion)",
    )
    parser.add_argument(
        "--debug-apcaccess",
        action=argparse.BooleanOptionalAction,
        default=_bool_env("NUT_PROXY_DEBUG_APCACCESS", False),
        help="log raw apcaccess stdout/stderr and per-invocation timings",
    )
    parser.add_argument(
        "--metrics",
        action=argparse.BooleanOptionalAction,
        default=_bool_env("NUT_PROXY_METRICS", True),
        help="serve prometheus metrics over http",
    )
    parser.add_argument(
        "--metrics-listen-address",
        default=os.getenv("NUT_PROXY_METRICS_LISTEN_ADDRESS", "127.0.0.1"),
        help="http bind address for /metrics endpoint",
    )
    parser.add_argument(
        "--metrics-listen-port",
        type=int,
        default=_int_env("NUT_PROXY_METRICS_LISTEN_PORT", 9199),
        help="http bind port for /metrics endpoint",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("NUT_PROXY_LOG_LEVEL", "INFO"),
        help="python logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def load_config(argv: list[str] | None = None) -> AppConfig:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    proxy_config = ProxyConfig(
        address=args.address,
        port=args.port,
        ups_name=args.ups_name,
        ups_description=args.ups_description,
        timeout_seconds=args.timeout_seconds,
        apcaccess=ApcAccessConfig(
            apcaccess_bin=args.apcaccess_bin,
            target_address=args.target_address,
            timeout_seconds=args.apcaccess_timeout_seconds,
            debug_apcaccess=bool(args.debug_apcaccess),
        ),
        variables=build_default_registry(),
    )
    return AppConfig(
        proxy=proxy_config,
        metrics_enabled=bool(args.metrics),
        metrics_listen_address=args.metrics_listen_address,
        metrics_listen_port=args.metrics_listen_port,
        log_level=args.log_level,
    )


def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    LOGGER.info("loaded configuration: %s", config.proxy)

    metrics: ProxyMetricsPublisher | None = None
    if config.metrics_enabled:
        metrics = ProxyMetricsPublisher()
        start_http_server(
            port=config.metrics_listen_port,
            addr=config.metrics_listen_address,
            registry=metrics.registry,
        )
        LOGGER.info(
            "metrics server listening on http://%s:%d/metrics",
            config.metrics_listen_address,
            config.metrics_listen_port,
        )

    server = NutProxyServer(config.proxy, metrics=metrics)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        LOGGER.info("shutdown requested, exiting")
    except AcceptError as error:
        LOGGER.error("stopping proxy: %s", error)
        sys.exit(1)
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
