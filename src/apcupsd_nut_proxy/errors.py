from __future__ import annotations


class ProxyError(Exception):
    pass


class ProtocolError(ProxyError):
    code = "UNKNOWN-COMMAND"

    def response(self) -> str:
        return f"ERR {self.code}"


class InvalidArgumentError(ProtocolError):
    code = "INVALID-ARGUMENT"


class UnknownUpsError(ProtocolError):
    code = "UNKNOWN-UPS"


class UnsupportedVariableError(ProtocolError):
    code = "VAR-NOT-SUPPORTED"


class ReadOnlyError(ProtocolError):
    code = "READONLY"


class FeatureNotConfiguredError(ProtocolError):
    code = "FEATURE-NOT-CONFIGURED"


class TelemetryError(ProxyError):
    pass


class ExecutionError(TelemetryError):
    pass


class ParseError(TelemetryError):
    pass


class FormatError(TelemetryError):
    def __init__(self, key: str, raw_value: str) -> None:
        super().__init__(f"couldn't format {key} value {raw_value!r} as float")
        self.key = key
        self.raw_value = raw_value


class VariableResolutionError(TelemetryError):
    def __init__(self, variable: str, error: ProxyError) -> None:
        super().__init__(f"couldn't load variable {variable}: {error}")
        self.variable = variable


class AcceptError(ProxyError):
    pass
