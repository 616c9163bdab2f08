"""Extension data models."""

from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class ExtensionState(str, Enum):
    """Lifecycle state of a registered extension.

    NEW and DISABLED are both "not loadable"; NEW means nobody decided yet,
    DISABLED means somebody explicitly turned it off.
    """
    NEW = "new"
    ENABLED = "enabled"
    DISABLED = "disabled"
    LOADED = "loaded"
    ERROR = "error"


class DependencyType(str, Enum):
    """What a dependency entry points at."""
    EXTENSION = "extension"
    UTILITY = "utility"
    FRAMEWORK = "framework"
    APPLICATION = "application"


class Dependency(BaseModel):
    """A dependency declared in an extension's info file."""
    name: str = Field(..., min_length=1, description="Extension id, utility path, 'framework' or 'application'")
    type: DependencyType = Field(default=DependencyType.EXTENSION)
    version: str = Field(default="", description="Minimal version string")

    model_config = ConfigDict(extra="forbid")


class ExtensionDescriptor(BaseModel):
    """In-memory record for one discovered extension."""
    id: str = Field(..., min_length=1, frozen=True, description="Unique extension id, e.g. 'sqlite.driver'")
    path: str = Field(..., description="Extension directory")
    type: str = Field(..., description="Directory suffix used to find handlers")
    handler: str = Field(..., description="Name of the handler that accepted the extension")
    state: ExtensionState = Field(default=ExtensionState.NEW)
    priority: int = Field(default=10, ge=0, le=100, description="Higher loads first")
    dependencies: list[Dependency] = Field(default_factory=list)
    info: dict[str, Any] = Field(default_factory=dict, description="Validated info file contents")

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @property
    def title(self) -> str:
        return self.info.get("title") or self.id

    @property
    def description(self) -> str:
        return self.info.get("description") or ""

    @property
    def version(self) -> str:
        return self.info.get("version") or ""

    @property
    def extension_dependencies(self) -> list[str]:
        """Ids of the other extensions this one depends on."""
        return [d.name for d in self.dependencies if d.type is DependencyType.EXTENSION]

    def to_cache_record(self) -> dict[str, Any]:
        """Serializable form stored by caching suppliers.

        LOADED only holds for the current process, so it is stored as ENABLED.
        """
        state = ExtensionState.ENABLED if self.state is ExtensionState.LOADED else self.state
        data = self.model_dump(mode="json", exclude={"id"})
        data["state"] = state.value
        return data

    def to_display_string(self) -> str:
        """One-line summary for console listings."""
        version = f" @ {self.version}" if self.version else ""
        return f"{self.title} ({self.id}){version} [{self.state.value}]"
