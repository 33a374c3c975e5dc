"""Domain models for the crashrelay adapters.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain. Every model is
transient: built fresh for one inbound event and discarded afterwards.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Literal, TypeAlias

# Result of a verification probe: (ok, human-readable message)
VerificationResult: TypeAlias = tuple[bool, str]

# Returned by adapters that have no remote resource identifier to save
NO_RESOURCE = "no_resource"


@dataclass(frozen=True)
class ParsedProjectUrl:
    """The routing pieces of an operator-supplied project URL."""

    base_address: str  # scheme://host[:port]
    path_prefix: str  # "" or "/context/path"
    project_or_issue_key: str

    def __post_init__(self) -> None:
        """Validate the path prefix invariant."""
        _check_path_prefix(self.path_prefix)
        if not self.project_or_issue_key:
            raise ValueError("project_or_issue_key must be a non-empty string")

    @property
    def scheme(self) -> str:
        return self.base_address.split("://", 1)[0].lower()


@dataclass(frozen=True)
class ProjectReference:
    """A resolved project URL plus the transport settings derived from it.

    Recomputed on every operation; never persisted.
    """

    base_address: str
    path_prefix: str
    project_or_issue_key: str
    use_encryption: bool
    verify_peer: bool

    def __post_init__(self) -> None:
        """Validate the path prefix invariant."""
        _check_path_prefix(self.path_prefix)

    @property
    def site(self) -> str:
        """Base address with the context path appended."""
        return f"{self.base_address}{self.path_prefix}"


def _check_path_prefix(path_prefix: str) -> None:
    if path_prefix and not path_prefix.startswith("/"):
        raise ValueError(f"path_prefix must be empty or start with '/', got {path_prefix!r}")
    if path_prefix.endswith("/"):
        raise ValueError(f"path_prefix must not end with '/', got {path_prefix!r}")
    for marker in ("/browse/", "/projects/"):
        if marker in f"{path_prefix}/":
            raise ValueError(f"path_prefix must not contain {marker!r}, got {path_prefix!r}")


@dataclass(frozen=True)
class CrashPayload:
    """Read-only view of a crash/issue event from the monitoring system.

    ``resolved_at`` present means the crash is locally marked resolved;
    absent or null means it is open.
    """

    title: str = ""
    method: str = ""
    impacted_devices_count: int = 0
    crashes_count: int = 0
    url: str = ""
    resolved_at: datetime | str | None = None
    impact_level: int | None = None
    app: Mapping[str, Any] = field(default_factory=dict)
    service_hook: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Convert nested dicts to read-only proxies."""
        if isinstance(self.app, dict):
            object.__setattr__(self, "app", MappingProxyType(self.app))
        if isinstance(self.service_hook, dict):
            object.__setattr__(self, "service_hook", MappingProxyType(self.service_hook))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "CrashPayload":
        """Build a payload from the upstream event body.

        Unknown keys are ignored; missing counts default to zero.
        """
        payload = payload or {}
        return cls(
            title=payload.get("title") or "",
            method=payload.get("method") or "",
            impacted_devices_count=int(payload.get("impacted_devices_count") or 0),
            crashes_count=int(payload.get("crashes_count") or 0),
            url=payload.get("url") or "",
            resolved_at=payload.get("resolved_at"),
            impact_level=payload.get("impact_level"),
            app=dict(payload.get("app") or {}),
            service_hook=dict(payload.get("service_hook") or {}),
        )

    @property
    def locally_resolved(self) -> bool:
        return self.resolved_at not in (None, "")

    def hook_value(self, event: str, key: str) -> Any | None:
        """Look up an identifier saved by an earlier event's result.

        For example ``hook_value("issue_impact_change", "jira_story_id")``.
        """
        saved = self.service_hook.get(event)
        if not isinstance(saved, Mapping):
            return None
        return saved.get(key)


@dataclass(frozen=True)
class RemoteIssue:
    """A tracker issue as currently stored by the remote tracker.

    Only read here; changes go through the transition endpoint.
    """

    id: str
    key: str
    resolution: Mapping[str, Any] | None
    resolution_date: str | None
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Convert fields dict to read-only proxy."""
        if isinstance(self.fields, dict):
            object.__setattr__(self, "fields", MappingProxyType(self.fields))

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "RemoteIssue":
        """Build from a tracker REST response body."""
        fields = data.get("fields")
        fields = dict(fields) if isinstance(fields, Mapping) else {}
        return cls(
            id=str(data.get("id", "")),
            key=str(data.get("key", "")),
            resolution=fields.get("resolution"),
            resolution_date=fields.get("resolutiondate"),
            fields=fields,
        )

    @property
    def remotely_resolved(self) -> bool:
        return bool(self.resolution)

    def as_dict(self) -> dict[str, Any]:
        """Flatten to the pass-through map handed back to the caller.

        Tracker fields are lifted to the top level next to ``id`` and ``key``;
        the embedded comment page becomes a plain ``comments`` list.
        """
        flat: dict[str, Any] = {"id": self.id, "key": self.key}
        for name, value in self.fields.items():
            if name != "comment":
                flat[name] = value
        comment = self.fields.get("comment") or {}
        flat["comments"] = list(comment.get("comments") or [])
        return flat


@dataclass(frozen=True)
class CreatedIssue:
    """Identifiers of a newly created tracker issue."""

    story_id: str
    story_key: str

    def as_result(self) -> dict[str, str]:
        """Identifier map saved by the upstream system as the service hook."""
        return {"jira_story_id": self.story_id, "jira_story_key": self.story_key}


@dataclass(frozen=True)
class Resolve:
    """Move the remote issue to a resolved workflow state."""

    transition_id: str
    comment: str


@dataclass(frozen=True)
class Reopen:
    """Move the remote issue back to an open workflow state."""

    transition_id: str
    comment: str


@dataclass(frozen=True)
class NoOp:
    """Local and remote resolution already agree."""


TransitionDecision: TypeAlias = Resolve | Reopen | NoOp


@dataclass(frozen=True)
class ConfigField:
    """A configurable field an adapter declares to the hosting system."""

    name: str
    kind: Literal["string", "password"]
    label: str = ""
    placeholder: str = ""

    def as_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "kind": self.kind,
            "label": self.label,
            "placeholder": self.placeholder,
        }
