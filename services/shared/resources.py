"""
Resource Graph Model
====================
The compiled CloudFormation template's `Resources` section is a mapping of
logical id -> {"Type": ..., "Properties": ...}. LogRelay only understands
two resource kinds; everything else is carried through untouched.

    AWS::Logs::LogGroup           -> LogGroup
    AWS::Logs::SubscriptionFilter -> SubscriptionFilter
    anything else                 -> OpaqueResource

A subscription filter always points at its log group with {"Ref": <id>},
never with the physical name: the name may be an intrinsic that only
resolves at deploy time.

Changes are expressed as a ResourcePatch (logical id -> new resource) so
callers can inspect what would change before merging it into the template.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Literal, Union

from pydantic import BaseModel, Field

LOG_GROUP_TYPE = "AWS::Logs::LogGroup"
SUBSCRIPTION_FILTER_TYPE = "AWS::Logs::SubscriptionFilter"

# Intrinsic functions are JSON objects such as {"Ref": "X"} or {"Fn::Join": [...]}
Intrinsic = dict[str, Any]
Destination = Union[str, Intrinsic]


def is_intrinsic(value: Any) -> bool:
    return isinstance(value, dict)


def ref(logical_id: str) -> Intrinsic:
    return {"Ref": logical_id}


def join(*parts: Any) -> Intrinsic:
    return {"Fn::Join": ["", list(parts)]}


# ---------------------------------------------------------------------------
# Resource kinds
# ---------------------------------------------------------------------------

class LogGroup(BaseModel):
    kind: Literal["LogGroup"] = "LogGroup"
    log_group_name: Any = None

    @property
    def literal_name(self) -> str | None:
        """The log group name if it is known before deployment."""
        return self.log_group_name if isinstance(self.log_group_name, str) else None

    def to_cfn(self) -> dict:
        return {
            "Type": LOG_GROUP_TYPE,
            "Properties": {"LogGroupName": self.log_group_name},
        }


class SubscriptionFilter(BaseModel):
    kind: Literal["SubscriptionFilter"] = "SubscriptionFilter"
    destination_arn: Destination
    log_group_id: str
    filter_pattern: str = ""  # empty pattern matches every event

    def to_cfn(self) -> dict:
        return {
            "Type": SUBSCRIPTION_FILTER_TYPE,
            "Properties": {
                "DestinationArn": self.destination_arn,
                "FilterPattern": self.filter_pattern,
                "LogGroupName": ref(self.log_group_id),
            },
        }


class OpaqueResource(BaseModel):
    """A resource LogRelay does not interpret."""
    kind: Literal["Opaque"] = "Opaque"
    raw: Any = None

    def to_cfn(self) -> Any:
        return self.raw


Resource = Union[LogGroup, SubscriptionFilter, OpaqueResource]


def parse_resource(record: Any) -> Resource:
    """Classify one template resource. Never raises."""
    if not isinstance(record, dict):
        return OpaqueResource(raw=record)

    properties = record.get("Properties")
    if not isinstance(properties, dict):
        properties = {}

    resource_type = record.get("Type")
    if resource_type == LOG_GROUP_TYPE:
        return LogGroup(log_group_name=properties.get("LogGroupName"))

    if resource_type == SUBSCRIPTION_FILTER_TYPE:
        group = properties.get("LogGroupName")
        destination = properties.get("DestinationArn")
        if (
            isinstance(group, dict) and isinstance(group.get("Ref"), str)
            and isinstance(destination, (str, dict))
        ):
            return SubscriptionFilter(
                destination_arn=destination,
                log_group_id=group["Ref"],
                filter_pattern=properties.get("FilterPattern") or "",
            )

    return OpaqueResource(raw=record)


def iter_resources(resources: dict[str, Any]) -> Iterator[tuple[str, Resource]]:
    """Yield (logical id, parsed resource) in template order."""
    for logical_id, record in resources.items():
        yield logical_id, parse_resource(record)


# ---------------------------------------------------------------------------
# Patch sets
# ---------------------------------------------------------------------------

class ResourcePatch(BaseModel):
    """
    Insertions keyed by logical id. Applying a patch overwrites whatever is
    stored under the same id, so applying it twice leaves one copy.
    """
    insertions: dict[str, Union[LogGroup, SubscriptionFilter]] = Field(default_factory=dict)

    def put(self, logical_id: str, resource: Union[LogGroup, SubscriptionFilter]) -> None:
        self.insertions[logical_id] = resource

    def merge(self, other: "ResourcePatch") -> "ResourcePatch":
        return ResourcePatch(insertions={**self.insertions, **other.insertions})

    def to_cfn(self) -> dict[str, dict]:
        return {logical_id: r.to_cfn() for logical_id, r in self.insertions.items()}

    def apply(self, resources: dict[str, Any]) -> dict[str, Any]:
        """Merge into `resources` in place and return it."""
        resources.update(self.to_cfn())
        return resources

    def __len__(self) -> int:
        return len(self.insertions)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

class RuntimeType(str, Enum):
    NODE = "node"
    PYTHON = "python"
    DOTNET = "dotnet"
    JAVA = "java"
    CUSTOM = "custom"
    UNSUPPORTED = "unsupported"


_RUNTIME_PREFIXES = (
    ("nodejs", RuntimeType.NODE),
    ("python", RuntimeType.PYTHON),
    ("dotnet", RuntimeType.DOTNET),
    ("java", RuntimeType.JAVA),
    ("provided", RuntimeType.CUSTOM),
)


def classify_runtime(runtime: str | None) -> RuntimeType:
    if not runtime:
        return RuntimeType.UNSUPPORTED
    for prefix, runtime_type in _RUNTIME_PREFIXES:
        if runtime.startswith(prefix):
            return runtime_type
    return RuntimeType.UNSUPPORTED


class Handler(BaseModel):
    """A function whose log group may be subscribed."""
    name: str
    runtime: str | None = None

    @property
    def type(self) -> RuntimeType:
        return classify_runtime(self.runtime)
