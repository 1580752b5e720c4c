"""Pydantic domain and response models.

Coordinates, managed entries and requested dependencies are immutable value
objects. Resolution outcomes form a discriminated union on ``kind`` so they
survive a ``model_dump()``/``model_validate()`` trip through the transport.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Same documented limit the coordinate validators have always used.
_COORD_PART_MAX_LEN = 200

DEFAULT_TYPE = "jar"

KeyMode = Literal["coordinate", "maven"]


def _strip_required(v: str) -> str:
    v_stripped = v.strip()
    if not v_stripped:
        raise ValueError("must not be empty")
    return v_stripped


class Coordinate(BaseModel):
    """A groupId:artifactId pair. Also used for exclusion keys."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    group_id: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)
    artifact_id: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)

    @field_validator("group_id", "artifact_id")
    @classmethod
    def _strip_and_validate(cls, v: str) -> str:
        return _strip_required(v)

    @property
    def key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """Build a coordinate from ``groupId:artifactId`` text."""
        group_id, sep, artifact_id = (text or "").partition(":")
        if not sep or ":" in artifact_id:
            raise ValueError(f"expected groupId:artifactId, got {text!r}")
        return cls(group_id=group_id, artifact_id=artifact_id)


class DependencyDeclaration(BaseModel):
    """Shared shape of managed entries and requested dependencies.

    Blank ``version``/``scope``/``classifier`` values are stored as ``None`` so
    "empty" and "absent" are the same thing everywhere downstream.
    ``exclusions`` accepts ``Coordinate`` objects, mappings, or
    ``"groupId:artifactId"`` strings.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    group_id: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)
    artifact_id: str = Field(..., min_length=1, max_length=_COORD_PART_MAX_LEN)
    version: Optional[str] = None
    scope: Optional[str] = None
    classifier: Optional[str] = None
    type: str = DEFAULT_TYPE
    exclusions: tuple[Coordinate, ...] = ()

    @field_validator("group_id", "artifact_id")
    @classmethod
    def _strip_and_validate(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("version", "scope", "classifier")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_TYPE
        return v.strip() if isinstance(v, str) else v

    @field_validator("exclusions", mode="before")
    @classmethod
    def _coerce_exclusions(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple(Coordinate.parse(e) if isinstance(e, str) else e for e in v)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(group_id=self.group_id, artifact_id=self.artifact_id)


class ManagedEntry(DependencyDeclaration):
    """One line of a dependency-management catalog."""


class RequestedDependency(DependencyDeclaration):
    """A dependency the caller wants resolved; version is optional."""


class ManagedCatalog(Mapping[str, ManagedEntry]):
    """Read-only mapping of management key -> ManagedEntry.

    ``key_mode`` records which key builder produced the keys, so lookups go
    through the same one. Use ``resolver.build_catalog`` to create one from a
    sequence of entries.
    """

    def __init__(self, entries: Mapping[str, ManagedEntry], key_mode: KeyMode = "coordinate") -> None:
        self._entries: Mapping[str, ManagedEntry] = MappingProxyType(dict(entries))
        self.key_mode: KeyMode = key_mode

    def __getitem__(self, key: str) -> ManagedEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ManagedCatalog({len(self)} entries, key_mode={self.key_mode!r})"


# Resolution outcomes


class Resolved(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["resolved"] = "resolved"
    key: str
    resolved_version: str
    description: str
    dependency: RequestedDependency

    @property
    def property_name(self) -> str:
        """Name of the derived build property, ``groupId:artifactId.version``."""
        return f"{self.dependency.coordinate.key}.version"


class UnmanagedNoVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unmanaged_no_version"] = "unmanaged_no_version"
    key: str
    dependency: RequestedDependency


class UnmanagedHasVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unmanaged_has_version"] = "unmanaged_has_version"
    key: str
    dependency: RequestedDependency


ResolutionOutcome = Annotated[
    Union[Resolved, UnmanagedNoVersion, UnmanagedHasVersion],
    Field(discriminator="kind"),
]


# Integration-layer models


class ParsedPom(BaseModel):
    """What a POM contributes to one resolution pass."""

    model_config = ConfigDict(extra="ignore")

    managed: list[ManagedEntry] = Field(default_factory=list)
    bom_imports: list[ManagedEntry] = Field(default_factory=list)
    requested: list[RequestedDependency] = Field(default_factory=list)


class SniffReport(BaseModel):
    """Result of applying a batch of outcomes.

    ``properties`` holds only the properties published by this pass.
    """

    model_config = ConfigDict(extra="ignore")

    outcomes: list[ResolutionOutcome] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    unmanaged_keys: list[str] = Field(default_factory=list)
    caveats: list[str] = Field(default_factory=list)


__all__ = [
    "Coordinate",
    "DependencyDeclaration",
    "KeyMode",
    "ManagedCatalog",
    "ManagedEntry",
    "ParsedPom",
    "RequestedDependency",
    "Resolved",
    "ResolutionOutcome",
    "SniffReport",
    "UnmanagedHasVersion",
    "UnmanagedNoVersion",
]
