"""
Pydantic models for tagtree configuration.

Hierarchy views are the persisted shape consumed by the tree builder.
Field names are snake_case; camelCase aliases are accepted so view
definitions exported from the plugin settings load unchanged.
"""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..indexer.labels import normalize_label

SortMode = Literal["alpha-asc", "alpha-desc", "count-desc", "count-asc", "none"]

FileSortMode = Literal[
    "alpha-asc",
    "alpha-desc",
    "created-asc",
    "created-desc",
    "modified-asc",
    "modified-desc",
    "size-asc",
    "size-desc",
    "none",
]

LevelColorMode = Literal["none", "background", "border"]

UNLIMITED_DEPTH = -1

_MODEL_CONFIG = {
    "extra": "forbid",
    "populate_by_name": True,
    "alias_generator": to_camel,
}


class TagLevel(BaseModel):
    """Group by hierarchical label segments.

    ``key`` is the label family to descend into; an empty key matches any
    label (or, inside an enclosing tag group, that group's children).
    ``depth`` is how many segments this level spans; -1 means unlimited.
    """

    type: Literal["tag"] = "tag"
    key: str = ""
    label: str | None = None
    sort_by: SortMode | None = None
    depth: int = 1
    virtual: bool = Field(
        default=False,
        description="Interleave the next level between the sub-depths of this one",
    )
    show_full_path: bool = False

    model_config = _MODEL_CONFIG

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, v: str) -> str:
        return normalize_label(v)

    @field_validator("depth")
    @classmethod
    def _check_depth(cls, v: int) -> int:
        if v != UNLIMITED_DEPTH and v < 1:
            raise ValueError("depth must be >= 1, or -1 for unlimited")
        return v

    @property
    def is_unlimited(self) -> bool:
        return self.depth == UNLIMITED_DEPTH


class PropertyLevel(BaseModel):
    """Group by the value of a frontmatter property."""

    type: Literal["property"] = "property"
    key: str
    label: str | None = None
    sort_by: SortMode | None = None
    separate_list_values: bool = True
    show_property_name: bool = False

    model_config = _MODEL_CONFIG

    @field_validator("key")
    @classmethod
    def _check_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("property level key cannot be empty")
        return v


HierarchyLevel = Annotated[TagLevel | PropertyLevel, Field(discriminator="type")]


class HierarchyConfig(BaseModel):
    """A named tree view: ordered grouping levels plus display policy."""

    name: str
    root_tag: str | None = None
    levels: list[HierarchyLevel] = Field(min_length=1)
    show_partial_matches: bool = False
    default_expanded: int = Field(
        default=1,
        ge=-1,
        description="Expansion depth for renderers (0 = collapsed, -1 = fully expanded)",
    )
    default_node_sort_mode: SortMode = "alpha-asc"
    default_file_sort_mode: FileSortMode = "alpha-asc"
    level_color_mode: LevelColorMode = "none"
    file_color: str | None = None

    model_config = _MODEL_CONFIG

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("view name cannot be empty")
        return v

    @field_validator("root_tag")
    @classmethod
    def _normalize_root_tag(cls, v: str | None) -> str | None:
        if v is None:
            return None
        normalized = normalize_label(v)
        if not normalized:
            raise ValueError("root_tag cannot be empty")
        return normalized

    @model_validator(mode="after")
    def _check_overlapping_tag_keys(self) -> "HierarchyConfig":
        seen: set[str] = set()
        for level in self.levels:
            if isinstance(level, TagLevel) and level.key:
                if level.key in seen:
                    raise ValueError(f"tag level key '{level.key}' is used by more than one level")
                seen.add(level.key)
        return self

    def node_sort_mode(self, level_index: int | None) -> SortMode:
        """Sort mode for nodes produced by a level (level override, then default)."""
        if level_index is not None and 0 <= level_index < len(self.levels):
            sort_by = self.levels[level_index].sort_by
            if sort_by is not None:
                return sort_by
        return self.default_node_sort_mode


class ViewState(BaseModel):
    """Runtime state of a rendered view, persisted per view name."""

    expanded_nodes: list[str] = Field(default_factory=list)
    file_sort_mode: FileSortMode | None = None
    show_files: bool = True

    model_config = _MODEL_CONFIG


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "warn", "error"] = "warn"
    file: Path | None = None
    verbose: int = 0

    model_config = _MODEL_CONFIG


class VaultConfig(BaseModel):
    """Location of the markdown vault."""

    root: Path = Path(".")
    exclude_dirs: list[str] = Field(
        default_factory=list,
        description="Additional directories to skip (besides .git, .obsidian, .trash, ...)",
    )

    model_config = _MODEL_CONFIG


def _example_views() -> list[HierarchyConfig]:
    return [
        HierarchyConfig(
            name="All Tags",
            levels=[TagLevel(key="", depth=UNLIMITED_DEPTH)],
            default_expanded=2,
        ),
        HierarchyConfig(
            name="Projects by Status",
            root_tag="project",
            levels=[
                PropertyLevel(key="status", label="Status"),
                PropertyLevel(key="priority", label="Priority"),
                TagLevel(key="project", label="Project"),
            ],
            default_expanded=2,
        ),
        HierarchyConfig(
            name="Research by Topic and Year",
            root_tag="research",
            levels=[
                PropertyLevel(key="topic", label="Topic"),
                PropertyLevel(key="year", label="Year", sort_by="alpha-desc"),
                TagLevel(key="research", label="Subtopic"),
            ],
        ),
        HierarchyConfig(
            name="Tasks by Status and Project",
            root_tag="task",
            levels=[
                PropertyLevel(key="status", label="Status", sort_by="count-desc"),
                PropertyLevel(key="project", label="Project"),
            ],
            default_node_sort_mode="count-desc",
        ),
    ]


class AppConfig(BaseModel):
    """Root configuration."""

    vault: VaultConfig = Field(default_factory=VaultConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    views: list[HierarchyConfig] = Field(default_factory=_example_views)
    default_view: str = "All Tags"
    view_states: dict[str, ViewState] = Field(default_factory=dict)

    model_config = _MODEL_CONFIG

    @model_validator(mode="after")
    def _check_views(self) -> "AppConfig":
        names = [view.name for view in self.views]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate view names: {', '.join(duplicates)}")
        if self.views and self.default_view not in names:
            raise ValueError(f"default_view '{self.default_view}' is not a configured view")
        return self

    def get_view(self, name: str | None = None) -> HierarchyConfig:
        """Look up a view by name (the default view when name is None).

        Raises:
            KeyError: If no view has that name.
        """
        wanted = name or self.default_view
        for view in self.views:
            if view.name == wanted:
                return view
        raise KeyError(wanted)

    def get_view_state(self, name: str) -> ViewState:
        return self.view_states.get(name) or ViewState()
