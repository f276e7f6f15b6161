from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from apcupsd_nut_proxy.resolvers import (
    UPS_BATTERY_RUNTIME,
    UPS_BATTERY_RUNTIME_LOW,
    UPS_DESCRIPTION,
    UPS_MODEL,
    UPS_SELF_TEST,
    UPS_STATUS,
    ApcValue,
    Fixed,
    Formatted,
    Resolver,
)


SERVER_INFO = "apcupsd-nut-proxy"


def build_default_registry() -> Mapping[str, Resolver]:
    return MappingProxyType(
        {
            "device.mfr": UPS_DESCRIPTION,
            "device.model": UPS_MODEL,
            "device.serial": ApcValue("SERIALNO"),
            "device.type": Fixed("ups"),
            "ups.mfr": UPS_DESCRIPTION,
            "ups.mfr.date": ApcValue("MANDATE"),
            "ups.id": Fixed("APC"),
            "ups.vendorid": Fixed("051d"),
            "ups.model": UPS_MODEL,
            "ups.status": UPS_STATUS,
            "ups.load": ApcValue("LOADPCT"),
            "ups.serial": ApcValue("SERIALNO"),
            "ups.firmware": ApcValue("FIRMWARE"),
            "ups.firmware.aux": ApcValue("FIRMWARE"),
            "ups.productid": ApcValue("APC"),
            "ups.temperature": ApcValue("ITEMP"),
            "ups.realpower.nominal": ApcValue("NOMPOWER"),
            "ups.test.result": UPS_SELF_TEST,
            "ups.delay.start": Fixed("0"),
            "ups.delay.shutdown": ApcValue("DSHUTD"),
            "ups.timer.reboot": Fixed("-1"),
            "ups.timer.start": Fixed("-1"),
            "ups.timer.shutdown": Fixed("-1"),
            "ups.beeper.status": Fixed("enabled"),
            "battery.runtime": UPS_BATTERY_RUNTIME,
            "battery.runtime.low": UPS_BATTERY_RUNTIME_LOW,
            "battery.charge": ApcValue("BCHARGE"),
            "battery.charge.low": ApcValue("MBATTCHG"),
            "battery.charge.warning": Fixed("50"),
            "battery.voltage": ApcValue("BATTV"),
            "battery.voltage.nominal": ApcValue("NOMBATTV"),
            "battery.date": ApcValue("BATTDATE"),
            "battery.mfr.date": ApcValue("BATTDATE"),
            "battery.temperature": ApcValue("ITEMP"),
            "battery.type": Fixed("PbAc"),
            "driver.name": Fixed("usbhid-ups"),
            "driver.version.internal": Formatted("apcupsd {}", (ApcValue("VERSION"),)),
            "driver.version.date": ApcValue("DRIVER"),
            "driver.parameter.pollfreq": Fixed("60"),
            "driver.parameter.pollinterval": Fixed("10"),
            "input.voltage": ApcValue("LINEV"),
            "input.voltage.nominal": ApcValue("NOMINV"),
            "input.sensitivity": ApcValue("SENSE"),
            "input.transfer.high": ApcValue("HITRANS"),
            "input.transfer.low": ApcValue("LOTRANS"),
            "input.frequency": ApcValue("LINEFREQ"),
            "input.transfer.reason": ApcValue("LASTXFER"),
            "output.voltage": ApcValue("OUTPUTV"),
            "output.voltage.nominal": ApcValue("NOMOUTV"),
            "server.info": Fixed(SERVER_INFO),
        }
    )
