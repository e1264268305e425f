"""
LogRelay CloudFormation Macro
=============================
Entry point for `Transform: LogRelay`. CloudFormation hands us the template
fragment plus the transform parameters; we return the fragment with the
forwarder subscriptions (and, if asked, API execution log groups) added.

Parameters (all optional except a forwarder, without which nothing is added):

    forwarderArn / forwarder      forwarder function ARN or intrinsic
    addExtension                  extension ships lambda logs (default true)
    integrationTesting            skip forwarder validation
    subscribeToAccessLogs         default true
    subscribeToExecutionLogs      default false
    logs                          provider API logging block
    functions                     [{name, runtime}], else read from the template
    exclude                       function keys to leave alone
    service, stage, stackName     naming of the deployed stack

Response:
    {"requestId": ..., "status": "success" | "failure", "fragment": {...},
     "errorMessage": ...}
"""
from __future__ import annotations

import os
from typing import Any

import boto3
from aws_xray_sdk.core import patch_all
from pydantic import ValidationError

from shared.config import (
    ForwarderSettings, InvalidConfigurationError, LoggingConfig,
)
from shared.naming import StackNaming, log_group_logical_id
from shared.resources import Handler
from .engine import add_forwarder_subscriptions
from .execution_logs import add_execution_log_groups_and_subscriptions
from .quota import SubscriptionQuota
from .validator import ForwarderNotFoundError

# Patch boto3 clients for X-Ray distributed tracing
patch_all()

from shared.logger import get_logger
logger = get_logger(__name__)

LAMBDA_FUNCTION_TYPE = "AWS::Lambda::Function"
LAMBDA_FUNCTION_SUFFIX = "LambdaFunction"

EXTENSION_AND_FORWARDER_WARNING = (
    "Warning: Lambda Extension and forwarder are both enabled. "
    "Only APIGateway log groups will be subscribed to the forwarder."
)


# ---------------------------------------------------------------------------
# Main handler
# ---------------------------------------------------------------------------

def handler(event: dict, context) -> dict:
    request_id = event.get("requestId", "")
    fragment = event.get("fragment") or {}

    try:
        warnings = transform(fragment, event.get("params") or {})
    except (ForwarderNotFoundError, InvalidConfigurationError) as e:
        logger.error("Transform rejected", extra={"request_id": request_id, "error": str(e)})
        return _response(request_id, fragment, error=str(e))
    except Exception as e:
        logger.exception("Unhandled exception in LogRelay macro", extra={"request_id": request_id})
        return _response(request_id, fragment, error=f"Internal error: {e}")

    logger.info(
        "Transform complete",
        extra={"request_id": request_id, "warning_count": len(warnings)},
    )
    return _response(request_id, fragment)


def transform(fragment: dict, params: dict[str, Any]) -> list[str]:
    """Add forwarder subscriptions to `fragment` in place. Returns the warnings."""
    params = {**_env_defaults(), **params}
    settings = ForwarderSettings.from_params(params)
    flags = LoggingConfig.resolve(params.get("logs"))
    config = settings.forwarder_config()

    destination = settings.destination()
    if destination is None:
        logger.info("No forwarder configured, leaving log groups unsubscribed")
        return []
    logger.info("Setting forwarder", extra={"forwarder": destination})

    resources = fragment.get("Resources")
    naming = StackNaming(
        service=params.get("service") or "service",
        stage=params.get("stage") or "dev",
        stack_name=params.get("stackName"),
    )
    handlers = _handlers(params, resources or {}, settings.exclude)

    warnings = add_forwarder_subscriptions(
        resources,
        destination,
        config,
        handlers,
        flags,
        naming,
        quota=SubscriptionQuota(boto3.client("logs")),
        lambda_client=boto3.client("lambda"),
    )
    if config.subscribe_execution_logs and resources is not None:
        add_execution_log_groups_and_subscriptions(resources, destination, flags, naming.stage)

    if config.extension_active:
        logger.warning(EXTENSION_AND_FORWARDER_WARNING)
        warnings.append(EXTENSION_AND_FORWARDER_WARNING)
    return warnings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _env_defaults() -> dict[str, Any]:
    # Read env each call so monkeypatch overrides work correctly in tests
    defaults = {
        "forwarderArn": os.environ.get("FORWARDER_ARN"),
        "service": os.environ.get("SERVICE_NAME"),
        "stage": os.environ.get("STAGE"),
    }
    return {k: v for k, v in defaults.items() if v}


def _handlers(params: dict[str, Any], resources: dict, exclude: list[str]) -> list[Handler]:
    """Functions whose log groups may be subscribed, minus the excluded ones."""
    if params.get("functions") is not None:
        try:
            handlers = [Handler.model_validate(f) for f in params["functions"]]
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid functions parameter: {e.error_count()} error(s)", errors=e.errors(),
            ) from e
    else:
        handlers = []
        for logical_id, record in resources.items():
            if not isinstance(record, dict) or record.get("Type") != LAMBDA_FUNCTION_TYPE:
                continue
            # FunctionName is the physical <service>-<stage>-<key> name; the
            # log group's logical id is derived from the key, which the
            # function's own logical id carries
            if not logical_id.endswith(LAMBDA_FUNCTION_SUFFIX) or logical_id == LAMBDA_FUNCTION_SUFFIX:
                continue
            properties = record.get("Properties") or {}
            handlers.append(Handler(
                name=logical_id[: -len(LAMBDA_FUNCTION_SUFFIX)],
                runtime=properties.get("Runtime"),
            ))
    excluded = {log_group_logical_id(name) for name in exclude}
    return [h for h in handlers if log_group_logical_id(h.name) not in excluded]


def _response(request_id: str, fragment: dict, error: str | None = None) -> dict:
    if error is not None:
        return {
            "requestId": request_id,
            "status": "failure",
            "fragment": fragment,
            "errorMessage": error,
        }
    return {"requestId": request_id, "status": "success", "fragment": fragment}
