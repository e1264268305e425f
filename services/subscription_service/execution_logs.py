"""
API Gateway Execution Log Groups
================================
Execution log groups are created by API Gateway itself when a stage first
logs, so the compiled template never declares them and the engine cannot
discover them by scanning. They are declared here explicitly, together with
their subscriptions, under fixed logical ids:

    REST       API-Gateway-Execution-Logs_<rest api id>/<stage>
    WebSocket  /aws/apigateway/<websocket api id>/<stage>

The ids are fixed and the output is deterministic, so re-running simply
overwrites the same four entries.
"""
from __future__ import annotations

import logging
from typing import Any

from shared.config import LoggingFlags
from shared.resources import (
    Destination, LogGroup, ResourcePatch, SubscriptionFilter, join, ref,
)

logger = logging.getLogger(__name__)

REST_EXECUTION_LOG_GROUP_KEY = "RestExecutionLogGroup"
REST_EXECUTION_SUBSCRIPTION_KEY = "RestExecutionLogGroupSubscription"
WEBSOCKETS_EXECUTION_LOG_GROUP_KEY = "WebsocketsExecutionLogGroup"
WEBSOCKETS_EXECUTION_SUBSCRIPTION_KEY = "WebsocketsExecutionLogGroupSubscription"

# Logical ids the Serverless Framework gives the API resources
REST_API_LOGICAL_ID = "ApiGatewayRestApi"
WEBSOCKETS_API_LOGICAL_ID = "WebsocketsApi"

REST_EXECUTION_PREFIX = "API-Gateway-Execution-Logs_"
WEBSOCKETS_EXECUTION_PREFIX = "/aws/apigateway/"


def rest_execution_log_group_name(stage: str) -> dict:
    return join(REST_EXECUTION_PREFIX, ref(REST_API_LOGICAL_ID), "/", stage)


def websocket_execution_log_group_name(stage: str) -> dict:
    return join(WEBSOCKETS_EXECUTION_PREFIX, ref(WEBSOCKETS_API_LOGICAL_ID), "/", stage)


def plan_execution_log_groups(
    destination: Destination,
    flags: LoggingFlags,
    stage: str,
) -> ResourcePatch:
    patch = ResourcePatch()

    if flags.rest_execution:
        patch.put(
            REST_EXECUTION_LOG_GROUP_KEY,
            LogGroup(log_group_name=rest_execution_log_group_name(stage)),
        )
        patch.put(
            REST_EXECUTION_SUBSCRIPTION_KEY,
            SubscriptionFilter(destination_arn=destination, log_group_id=REST_EXECUTION_LOG_GROUP_KEY),
        )

    if flags.websocket_execution:
        patch.put(
            WEBSOCKETS_EXECUTION_LOG_GROUP_KEY,
            LogGroup(log_group_name=websocket_execution_log_group_name(stage)),
        )
        patch.put(
            WEBSOCKETS_EXECUTION_SUBSCRIPTION_KEY,
            SubscriptionFilter(destination_arn=destination, log_group_id=WEBSOCKETS_EXECUTION_LOG_GROUP_KEY),
        )

    return patch


def add_execution_log_groups_and_subscriptions(
    resources: dict[str, Any],
    destination: Destination,
    flags: LoggingFlags,
    stage: str,
) -> ResourcePatch:
    """Declare execution log groups + subscriptions in `resources` (in place)."""
    patch = plan_execution_log_groups(destination, flags, stage)
    patch.apply(resources)
    if len(patch):
        logger.info(
            "Added execution log groups and subscriptions",
            extra={"logical_ids": list(patch.insertions)},
        )
    return patch
