"""Resolvers computing NUT variable values from configuration and apcaccess telemetry.

Every resolver is an immutable value exposing ``resolve(name, config, values)``.
Composite resolvers hold their children as fields, so the variable catalog is
plain data that can be compared and inspected in tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from apcupsd_nut_proxy.errors import FormatError, ProxyError

if TYPE_CHECKING:
    from apcupsd_nut_proxy.config import ProxyConfig


# Evaluated top to bottom, first substring match wins.
STATUS_PREFIXES: tuple[tuple[str, str], ...] = (
    ("ONLINE", "OL"),
    ("ONBATT", "OB DISCHRG"),
    ("LOWBATT", "LB"),
    ("CAL", "CAL"),
    ("OVERLOAD", "OVER"),
    ("TRIM", "TRIM"),
    ("BOOST", "BOOST"),
    ("REPLACEBATT", "RB"),
    ("SHUTTING DOWN", "SD"),
    ("COMMLOST", "OFF"),
)

SELFTEST_RESULTS: tuple[tuple[str, str], ...] = (
    ("OK", "OK - Battery GOOD"),
    ("BT", "FAILED - Battery Capacity LOW"),
    ("NG", "FAILED - Overload"),
    ("NO", "No Test in the last 5mins"),
)


class TelemetryLookup(Protocol):
    def lookup(self, key: str) -> str | None: ...


class Resolver:
    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Fixed(Resolver):
    value: str

    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        return self.value


IGNORE_VALUE = Fixed("")


@dataclass(frozen=True)
class ApcValue(Resolver):
    key: str
    fallback: Resolver = IGNORE_VALUE

    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        value = values.lookup(self.key)
        if value is None:
            return self.fallback.resolve(name, config, values)
        return value


@dataclass(frozen=True)
class Formatted(Resolver):
    template: str
    resolvers: tuple[Resolver, ...] = ()

    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        resolved = [resolver.resolve(name, config, values) for resolver in self.resolvers]
        return self.template.format(*resolved)


@dataclass(frozen=True)
class ApcMinutesToSeconds(Resolver):
    """apcaccess reports minutes, NUT expects whole seconds."""

    key: str
    fallback: Resolver = IGNORE_VALUE

    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        raw_value = ApcValue(self.key, self.fallback).resolve(name, config, values)
        if raw_value == "":
            return ""
        try:
            return str(int(_parse_number(raw_value) * 60))
        except (ValueError, OverflowError) as error:
            raise FormatError(self.key, raw_value) from error


@dataclass(frozen=True)
class UpsName(Resolver):
    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        return config.ups_name


@dataclass(frozen=True)
class UpsDescription(Resolver):
    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        return config.ups_description


@dataclass(frozen=True)
class UpsModel(Resolver):
    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        model = ApcValue("MODEL").resolve(name, config, values)
        if model == "":
            return ""
        try:
            nominal_power = ApcValue("NOMPOWER").resolve(name, config, values)
        except ProxyError:
            return model
        if nominal_power:
            return f"{model} ({nominal_power} W)"
        return model


def _parse_number(raw_value: str) -> float:
    # float() also takes Python literal spellings such as "1_0"
    if "_" in raw_value:
        raise ValueError(f"invalid number: {raw_value!r}")
    return float(raw_value)


def _parse_charge(raw_value: str) -> float | None:
    try:
        return _parse_number(raw_value)
    except ValueError:
        return None


@dataclass(frozen=True)
class UpsStatus(Resolver):
    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        status = ApcValue("STATUS").resolve(name, config, values)
        if status == "":
            return ""

        if "ONLINE" in status:
            charge = _parse_charge(ApcValue("BCHARGE").resolve(name, config, values))
            if charge is not None and charge < 100.0:
                return f"CHRG {status}"
            return f"OL {status}"

        for needle, prefix in STATUS_PREFIXES:
            if needle in status:
                return f"{prefix} {status}"
        return ""


@dataclass(frozen=True)
class UpsSelfTest(Resolver):
    def resolve(self, name: str, config: ProxyConfig, values: TelemetryLookup) -> str:
        selftest = ApcValue("SELFTEST").resolve(name, config, values)
        if selftest == "":
            return ""

        for needle, result in SELFTEST_RESULTS:
            if needle in selftest:
                return result
        return ""


UPS_NAME = UpsName()
UPS_DESCRIPTION = UpsDescription()
UPS_MODEL = UpsModel()
UPS_STATUS = UpsStatus()
UPS_SELF_TEST = UpsSelfTest()
UPS_BATTERY_RUNTIME = ApcMinutesToSeconds("TIMELEFT")
UPS_BATTERY_RUNTIME_LOW = ApcMinutesToSeconds("DLOWBATT")
