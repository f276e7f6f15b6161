from __future__ import annotations

from dataclasses import dataclass

from apcupsd_nut_proxy.apcaccess import ApcValues
from apcupsd_nut_proxy.config import ProxyConfig
from apcupsd_nut_proxy.errors import (
    FeatureNotConfiguredError,
    InvalidArgumentError,
    ProtocolError,
    ProxyError,
    ReadOnlyError,
    UnknownUpsError,
    UnsupportedVariableError,
    VariableResolutionError,
)


@dataclass(frozen=True)
class CommandResult:
    response: str
    close: bool = False


def dispatch(line: str, config: ProxyConfig, values: ApcValues) -> CommandResult:
    """Answer a single NUT request line.

    Protocol errors become ``ERR <CODE>`` responses. Telemetry errors raised
    while refreshing or resolving variables propagate to the caller, which
    must not send a response for them.
    """
    try:
        return _dispatch(line, config, values)
    except ProtocolError as error:
        return CommandResult(error.response())


def _dispatch(line: str, config: ProxyConfig, values: ApcValues) -> CommandResult:
    if line.startswith("LOGIN "):
        _require_ups(line[len("LOGIN ") :], config)
        return CommandResult("OK")
    if line.startswith("USERNAME ") or line.startswith("PASSWORD "):
        # credentials are never checked
        return CommandResult("OK")
    if line == "LOGOUT":
        return CommandResult("OK Goodbye", close=True)
    if line == "STARTTLS":
        raise FeatureNotConfiguredError()
    if line == "LIST UPS":
        return _list_ups(config)
    if line.startswith("LIST VAR "):
        return _list_var(line[len("LIST VAR ") :], config, values)
    if line.startswith("GET VAR "):
        return _get_var(line[len("GET VAR ") :], config, values)
    if line.startswith("SET VAR "):
        return _set_var(line[len("SET VAR ") :], config)
    raise ProtocolError()


def _require_ups(ups_name: str, config: ProxyConfig) -> None:
    if ups_name != config.ups_name:
        raise UnknownUpsError()


def _resolve(variable: str, config: ProxyConfig, values: ApcValues) -> str:
    resolver = config.variables[variable]
    try:
        return resolver.resolve(variable, config, values)
    except ProxyError as error:
        raise VariableResolutionError(variable, error) from error


def _list_ups(config: ProxyConfig) -> CommandResult:
    return CommandResult(
        "BEGIN LIST UPS\n"
        f'UPS {config.ups_name} "{config.ups_description}"\n'
        "END LIST UPS\n"
    )


def _list_var(arguments: str, config: ProxyConfig, values: ApcValues) -> CommandResult:
    _require_ups(arguments, config)
    values.refresh(config.apcaccess)

    lines = [f"BEGIN LIST VAR {config.ups_name}"]
    for variable in config.variables:
        value = _resolve(variable, config, values)
        if value == "":
            continue
        lines.append(f'VAR {config.ups_name} {variable} "{value}"')
    lines.append(f"END LIST VAR {config.ups_name}")
    return CommandResult("\n".join(lines) + "\n")


def _get_var(arguments: str, config: ProxyConfig, values: ApcValues) -> CommandResult:
    tokens = arguments.split(" ")
    if len(tokens) != 2:
        raise InvalidArgumentError()
    ups_name, variable = tokens
    _require_ups(ups_name, config)
    values.refresh(config.apcaccess)

    if variable not in config.variables:
        raise UnsupportedVariableError()
    value = _resolve(variable, config, values)
    return CommandResult(f'VAR {config.ups_name} {variable} "{value}"\n')


def _set_var(arguments: str, config: ProxyConfig) -> CommandResult:
    # only "<ups> <var>" is inspected, the value is never written
    tokens = arguments.split(" ", 2)
    if len(tokens) < 2:
        raise InvalidArgumentError()
    _require_ups(tokens[0], config)
    raise ReadOnlyError()
