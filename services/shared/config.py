"""
LogRelay Configuration
======================
Two kinds of configuration reach the macro:

1. The provider's API logging block (`provider.logs` in serverless.yml),
   e.g.

       restApi: true
       httpApi: false
       websocket:
         accessLogging: true
         executionLogging: false

   Each category is either absent, a bool, or an object of sub-flags. It is
   validated strictly and resolved ONCE into `LoggingFlags`; nothing
   downstream looks at the raw shape again.

2. The forwarder options (`forwarderArn`, `addExtension`, ...), parsed into
   `ForwarderSettings` and reduced to the four switches the subscription
   engine needs (`ForwarderConfig`).
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from shared.resources import Destination

# Options that older plugin versions accepted; now folded into
# subscribeToAccessLogs / subscribeToExecutionLogs.
REMOVED_OPTIONS = (
    "subscribeToApiGatewayLogs",
    "subscribeToHttpApiLogs",
    "subscribeToWebsocketLogs",
)


class InvalidConfigurationError(Exception):
    """Raised when a configuration value has the wrong shape or type."""

    def __init__(self, message: str, errors: list | None = None):
        self.errors = errors or []
        super().__init__(message)


class ForwarderConflictError(InvalidConfigurationError):
    """Both `forwarderArn` and `forwarder` are set."""


class ApiCategory(str, Enum):
    REST_API = "restApi"
    HTTP_API = "httpApi"
    WEBSOCKET = "websocket"


# ---------------------------------------------------------------------------
# API logging block
# ---------------------------------------------------------------------------

class ApiLogging(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_logging: StrictBool | None = Field(default=None, alias="accessLogging")
    execution_logging: StrictBool | None = Field(default=None, alias="executionLogging")


# A category is off, on, or split into sub-flags
ApiLoggingSetting = Union[StrictBool, ApiLogging, None]


class LoggingFlags(BaseModel):
    """Fully resolved enablement flags. Plain booleans only."""
    model_config = ConfigDict(frozen=True)

    rest_access: bool = False
    rest_execution: bool = False
    http_access: bool = False
    websocket_access: bool = False
    websocket_execution: bool = False

    def access_enabled_for(self, category: ApiCategory) -> bool:
        return {
            ApiCategory.REST_API: self.rest_access,
            ApiCategory.HTTP_API: self.http_access,
            ApiCategory.WEBSOCKET: self.websocket_access,
        }[category]


class LoggingConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rest_api: ApiLoggingSetting = Field(default=None, alias="restApi")
    http_api: ApiLoggingSetting = Field(default=None, alias="httpApi")
    websocket: ApiLoggingSetting = Field(default=None, alias="websocket")

    @classmethod
    def parse(cls, raw: Any) -> "LoggingConfig":
        """Validate the raw block. Absent means every category is unset."""
        if raw is None:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid API logging configuration: {e.error_count()} error(s)",
                errors=e.errors(),
            ) from e

    @classmethod
    def resolve(cls, raw: Any) -> LoggingFlags:
        return cls.parse(raw).flags()

    def flags(self) -> LoggingFlags:
        return LoggingFlags(
            rest_access=_enabled(self.rest_api, "access_logging"),
            rest_execution=_enabled(self.rest_api, "execution_logging"),
            http_access=_enabled(self.http_api, "access_logging"),
            websocket_access=_enabled(self.websocket, "access_logging"),
            websocket_execution=_enabled(self.websocket, "execution_logging"),
        )


def _enabled(setting: ApiLoggingSetting, flag: str) -> bool:
    # False beats any sub-flag; True beats all of them
    if setting is False:
        return False
    if setting is True:
        return True
    if isinstance(setting, ApiLogging):
        return getattr(setting, flag) is True
    return False


# ---------------------------------------------------------------------------
# Forwarder options
# ---------------------------------------------------------------------------

class ForwarderConfig(BaseModel):
    """The switches the subscription engine acts on."""
    model_config = ConfigDict(frozen=True)

    extension_active: bool = False
    integration_testing: bool | None = None
    subscribe_access_logs: bool = True
    subscribe_execution_logs: bool = False


class ForwarderSettings(BaseModel):
    """
    User-facing forwarder options, keyed the way serverless.yml spells them.
    Booleans are coerced leniently because macro parameters arrive as strings.
    """
    model_config = ConfigDict(populate_by_name=True)

    forwarder_arn: Destination | None = Field(default=None, alias="forwarderArn")
    forwarder: Destination | None = None
    add_extension: bool = Field(default=True, alias="addExtension")
    integration_testing: bool = Field(default=False, alias="integrationTesting")
    subscribe_to_access_logs: bool = Field(default=True, alias="subscribeToAccessLogs")
    subscribe_to_execution_logs: bool = Field(default=False, alias="subscribeToExecutionLogs")
    exclude: list[str] = Field(default_factory=list)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "ForwarderSettings":
        removed = [name for name in REMOVED_OPTIONS if params.get(name)]
        if removed:
            raise InvalidConfigurationError(
                "The following configuration options have been removed: "
                f"{' '.join(removed)}. Please use the subscribeToAccessLogs or "
                "subscribeToExecutionLogs options instead."
            )
        try:
            return cls.model_validate(params)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid forwarder configuration: {e.error_count()} error(s)",
                errors=e.errors(),
            ) from e

    def destination(self) -> Destination | None:
        """The forwarder to subscribe, or None when no forwarder is configured."""
        if self.forwarder_arn is not None and self.forwarder is not None:
            raise ForwarderConflictError(
                "Both 'forwarderArn' and 'forwarder' parameters are set. "
                "Please only use the 'forwarderArn' parameter."
            )
        if self.forwarder_arn is not None:
            return self.forwarder_arn
        return self.forwarder

    def forwarder_config(self) -> ForwarderConfig:
        return ForwarderConfig(
            extension_active=self.add_extension,
            integration_testing=self.integration_testing,
            subscribe_access_logs=self.subscribe_to_access_logs,
            subscribe_execution_logs=self.subscribe_to_execution_logs,
        )
