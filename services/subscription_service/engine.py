"""
Subscription Decision Engine
============================
Walks the compiled template and decides, log group by log group, whether to
attach a subscription filter pointing at the forwarder.

    template resources ──▶ LogGroup with a literal name?
                               │ no  ──▶ skip (execution log groups land here;
                               │         execution_logs.py owns them)
                               ▼ yes
                           eligible?  (extension mode, API access flags,
                               │       handler membership)
                               ▼ yes
                           quota check (DescribeSubscriptionFilters)
                               │ reject ──▶ warning, next candidate
                               ▼ allow
                           <LogicalId>Subscription → forwarder

The engine only plans: `plan_forwarder_subscriptions` returns a patch and
the warnings, and never touches the template it reads. Remote calls are
made one at a time, in template order, so warnings come out in that order.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import BaseModel, Field

from shared.config import ApiCategory, ForwarderConfig, LoggingFlags
from shared.naming import StackNaming, log_group_logical_id, subscription_logical_id
from shared.resources import (
    Destination, Handler, LogGroup, ResourcePatch, SubscriptionFilter, iter_resources,
)

from .quota import SubscriptionQuota
from .validator import validate_forwarder

logger = logging.getLogger(__name__)

NO_RESOURCES_WARNING = "No cloudformation stack available. Skipping subscribing forwarder."

LAMBDA_LOG_GROUP_PREFIX = "/aws/lambda/"

# Access log groups as named by the Serverless Framework. Disjoint prefixes.
API_LOG_GROUP_PREFIXES = {
    ApiCategory.REST_API: "/aws/api-gateway/",
    ApiCategory.HTTP_API: "/aws/http-api/",
    ApiCategory.WEBSOCKET: "/aws/websocket/",
}


class SubscriptionPlan(BaseModel):
    patch: ResourcePatch = Field(default_factory=ResourcePatch)
    warnings: list[str] = Field(default_factory=list)

    def apply(self, resources: dict[str, Any]) -> list[str]:
        self.patch.apply(resources)
        return self.warnings


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

def api_category(log_group_name: str) -> ApiCategory | None:
    for category, prefix in API_LOG_GROUP_PREFIXES.items():
        if log_group_name.startswith(prefix):
            return category
    return None


def is_subscribable_access_log_group(
    log_group_name: str,
    config: ForwarderConfig,
    flags: LoggingFlags,
) -> bool:
    if not config.subscribe_access_logs:
        return False
    category = api_category(log_group_name)
    return category is not None and flags.access_enabled_for(category)


def should_subscribe(
    logical_id: str,
    log_group: LogGroup,
    config: ForwarderConfig,
    flags: LoggingFlags,
    handler_log_group_ids: set[str],
) -> bool:
    name = log_group.literal_name
    if name is None:
        return False

    if is_subscribable_access_log_group(name, config, flags):
        return True

    # With the extension, lambda logs are shipped by the extension itself
    if config.extension_active:
        return False

    return name.startswith(LAMBDA_LOG_GROUP_PREFIX) and logical_id in handler_log_group_ids


def handler_log_group_ids(handlers: Iterable[Handler]) -> set[str]:
    ids = {log_group_logical_id(h.name) for h in handlers}
    ids.discard("")
    return ids


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def plan_forwarder_subscriptions(
    resources: dict[str, Any] | None,
    destination: Destination,
    config: ForwarderConfig,
    handlers: Iterable[Handler],
    flags: LoggingFlags,
    naming: StackNaming,
    quota: SubscriptionQuota | None = None,
    lambda_client=None,
) -> SubscriptionPlan:
    """
    Work out which subscription filters to add for `destination`.

    Raises ForwarderNotFoundError (before looking at any log group) when the
    forwarder cannot be found. Every other problem becomes a warning.
    """
    plan = SubscriptionPlan()
    if not resources:
        logger.warning(NO_RESOURCES_WARNING)
        plan.warnings.append(NO_RESOURCES_WARNING)
        return plan

    for warning in validate_forwarder(destination, config, lambda_client=lambda_client):
        logger.warning(warning)
        plan.warnings.append(warning)

    quota = quota or SubscriptionQuota()
    tracked = handler_log_group_ids(handlers)

    for logical_id, resource in iter_resources(resources):
        if not isinstance(resource, LogGroup):
            continue
        if not should_subscribe(logical_id, resource, config, flags, tracked):
            continue

        log_group_name = resource.literal_name
        scoped_id = subscription_logical_id(logical_id)
        decision = quota.check(log_group_name, naming.subscription_prefix(scoped_id))
        if not decision.allowed:
            warning = decision.warning()
            logger.warning(
                warning,
                extra={"log_group": log_group_name, "existing_filters": decision.existing_count},
            )
            plan.warnings.append(warning)
            continue

        plan.patch.put(
            scoped_id,
            SubscriptionFilter(destination_arn=destination, log_group_id=logical_id),
        )
        logger.debug("Subscribing %s to forwarder", log_group_name, extra={"logical_id": scoped_id})

    return plan


def add_forwarder_subscriptions(
    resources: dict[str, Any] | None,
    destination: Destination,
    config: ForwarderConfig,
    handlers: Iterable[Handler],
    flags: LoggingFlags,
    naming: StackNaming,
    quota: SubscriptionQuota | None = None,
    lambda_client=None,
) -> list[str]:
    """Plan and merge subscriptions into `resources` in place. Returns warnings."""
    plan = plan_forwarder_subscriptions(
        resources, destination, config, handlers, flags, naming,
        quota=quota, lambda_client=lambda_client,
    )
    if resources:
        plan.apply(resources)
    return plan.warnings
