from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ORDER = 99999


class Metadata(BaseModel):
    license: Optional[str] = None
    compatibility_version: Optional[str] = None


class Asset(BaseModel):
    """One entry of the catalog, read from a `.toml` descriptor."""

    model_config = ConfigDict(extra="forbid")

    name: str
    link: str
    description: str
    order: Optional[int] = None
    image: Optional[str] = None
    licenses: Optional[List[str]] = None
    bevy_versions: Optional[List[str]] = None

    # set by the walker, never read from the descriptor
    original_path: Optional[Path] = Field(default=None, exclude=True)

    def set_license(self, license: Optional[str]) -> None:
        """Store a license expression such as "MIT OR Apache-2.0" as a list."""
        if self.licenses is not None or license is None:
            return
        self.licenses = [part.strip() for part in license.split(" OR ")]

    def set_bevy_version(self, version: Optional[str]) -> None:
        if self.bevy_versions is not None or version is None:
            return
        self.bevy_versions = [version]

    def apply_metadata(self, metadata: Optional[Metadata]) -> None:
        """Fill in missing fields from resolved metadata. Declared values always win."""
        if metadata is None:
            return
        self.set_license(metadata.license)
        self.set_bevy_version(metadata.compatibility_version)


class Section(BaseModel):
    name: str
    content: List[Union["Section", Asset]] = []
    template: Optional[str] = None
    header: Optional[str] = None
    order: Optional[int] = None
    sort_order_reversed: bool = False


Section.model_rebuild()

AssetNode = Union[Section, Asset]


def node_order(node: AssetNode) -> int:
    return node.order if node.order is not None else DEFAULT_ORDER


class MetadataRequest(BaseModel):
    link: str


class CatalogRequest(BaseModel):
    asset_dir: str
    use_crates_db: bool = True
