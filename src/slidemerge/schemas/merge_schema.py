"""Pydantic models for merge configuration, slide references and results."""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from slidemerge.opc.constants import DEFAULT_SLIDE_SIZE
from slidemerge.utils.file_utils import load_yaml


# ---------------------------------------------------------------------------
# Slide references and selections
# ---------------------------------------------------------------------------

class SlideRef(BaseModel):
    """One entry of a presentation's slide reference list."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1, description="1-based position in the slide list")
    slide_id: int = Field(description="Numeric p:sldId/@id")
    r_id: str = Field(description="Relationship ID from the presentation part to the slide")


class Selection(BaseModel):
    """Resolved slide selection, partitioned against the source slide count."""

    valid: list[int] = Field(default_factory=list, description="In-range numbers, ascending")
    invalid: list[int] = Field(default_factory=list, description="Out-of-range numbers, ascending")
    total: int = Field(default=0, ge=0, description="Slide count the selection was checked against")
    select_all: bool = Field(default=False, description="True when the expression was empty")

    def __len__(self) -> int:
        return len(self.valid)

    def __iter__(self):
        return iter(self.valid)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class SlideSize(BaseModel):
    """Page size in EMU."""

    cx: int = Field(default=DEFAULT_SLIDE_SIZE[0], gt=0)
    cy: int = Field(default=DEFAULT_SLIDE_SIZE[1], gt=0)


class MergeConfig(BaseModel):
    """Merge behaviour, loadable from YAML.

    The defaults reproduce the plain ``--source/--target/--slides`` behaviour:
    malformed slides are repaired, every copied slide is bound to the
    target's first layout, and a missing page size becomes 4:3.
    """

    model_config = ConfigDict(extra="forbid")

    default_slide_size: SlideSize = Field(
        default_factory=SlideSize,
        description="Page size written when the target presentation has none",
    )
    malformed_slide_policy: Literal["repair", "reject"] = Field(
        default="repair",
        description="'repair' replaces a slide without content with an empty one; 'reject' aborts the merge",
    )
    layout_policy: Literal["first", "by_name"] = Field(
        default="first",
        description="'first' binds to the target's first layout; 'by_name' matches the source layout name first",
    )
    output_suffix: str = Field(
        default="_merged",
        description="Appended to the target file stem when no output path is given",
    )
    import_dependent_parts: bool = Field(
        default=True,
        description="Copy images, media, charts and hyperlinks referenced by copied slides",
    )
    update_app_properties: bool = Field(
        default=True,
        description="Update the slide count in docProps/app.xml",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "MergeConfig":
        """Load merge settings from a YAML configuration file."""
        return cls.model_validate(load_yaml(path))

    def to_yaml(self, path: str | Path) -> None:
        """Save merge settings to a YAML configuration file."""
        path = Path(path)
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class TransplantedSlide(BaseModel):
    """A source slide as it landed in the target."""

    source_number: int
    target_number: int
    slide_id: int
    r_id: str
    partname: str
    layout: str | None = Field(default=None, description="Partname of the bound layout, if any")
    repaired: bool = False


class MergeReport(BaseModel):
    """Summary of one merge run."""

    source: str
    target: str
    output: str
    source_slide_count: int = 0
    target_slide_count: int = 0
    requested: list[int] = Field(default_factory=list)
    copied: list[int] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list, description="Out-of-range slide numbers")
    repaired: list[int] = Field(default_factory=list, description="Source slides replaced by an empty slide")
    new_slide_ids: list[int] = Field(default_factory=list)
    slides: list[TransplantedSlide] = Field(default_factory=list)
    slide_size_added: bool = False
    warnings: list[str] = Field(default_factory=list)

    @property
    def output_slide_count(self) -> int:
        return self.target_slide_count + len(self.copied)
