"""
Naming conventions shared with the upstream template generator.

The Serverless Framework derives a function's log group logical id from the
function key; subscription filter names are derived by CloudFormation from
the stack name and the subscription's logical id.
"""
from __future__ import annotations

from pydantic import BaseModel

LOG_GROUP_SUFFIX = "LogGroup"
SUBSCRIPTION_SUFFIX = "Subscription"


def log_group_logical_id(function_name: str) -> str:
    """
    Map a function name to the logical id of its log group.

    >>> log_group_logical_id("my-function_test")
    'MyDashfunctionUnderscoretestLogGroup'

    An empty name yields an empty string, which never matches a resource.
    """
    if not function_name:
        return ""
    normalized = function_name[0].upper() + function_name[1:]
    normalized = normalized.replace("-", "Dash").replace("_", "Underscore")
    return f"{normalized}{LOG_GROUP_SUFFIX}"


def subscription_logical_id(log_group_id: str) -> str:
    return f"{log_group_id}{SUBSCRIPTION_SUFFIX}"


class StackNaming(BaseModel):
    """
    Where CloudFormation will put the subscription filters.

    stack_name wins when known; otherwise Serverless' default of
    "<service>-<stage>" is assumed.
    """
    service: str
    stage: str
    stack_name: str | None = None

    def subscription_prefix(self, scoped_id: str) -> str:
        """Prefix CloudFormation gives the physical name of `scoped_id`."""
        if self.stack_name:
            return f"{self.stack_name}-{scoped_id}-"
        return f"{self.service}-{self.stage}-{scoped_id}-"
