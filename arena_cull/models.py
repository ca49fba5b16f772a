from dataclasses import dataclass, field
from typing import List, Optional
from pathlib import Path
from enum import Enum
import uuid

from PIL import Image


class StatusLabel(Enum):
    UNSET = "unset"
    CHAMPION = "champion"  # Green
    DISPLACED = "displaced"  # Yellow
    REJECTED = "rejected"  # Red

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "StatusLabel":
        """Map an external color label to a status. Matching is exact: "Green", "Yellow", "Red"; anything else is UNSET"""
        if not tag:
            return cls.UNSET
        return _TAG_TO_STATUS.get(tag, cls.UNSET)

    def to_tag(self) -> Optional[str]:
        """Color label to write back, None clears the label"""
        return _STATUS_TO_TAG.get(self)


_STATUS_TO_TAG = {
    StatusLabel.CHAMPION: "Green",
    StatusLabel.DISPLACED: "Yellow",
    StatusLabel.REJECTED: "Red",
}
_TAG_TO_STATUS = {tag: status for status, tag in _STATUS_TO_TAG.items()}


class PreviewSlot(Enum):
    CURRENT = "current"  # photo under the cursor
    CHAMPION = "champion"  # active champion, compare view only


@dataclass(eq=False)
class PhotoRecord:
    path: Path
    filename: str
    status: StatusLabel = StatusLabel.UNSET
    thumbnail: Optional[Image.Image] = None
    full_preview: Optional[Image.Image] = None
    processed: bool = False  # entered an arena or got rejected
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_path(cls, path: Path, status: StatusLabel = StatusLabel.UNSET) -> "PhotoRecord":
        return cls(path=path, filename=path.name, status=status)


@dataclass
class Arena:
    """One elimination round. Holds photo ids, never records."""
    index: int
    champion: Optional[str] = None
    displaced: List[str] = field(default_factory=list)  # most recent first
    archived: bool = False


@dataclass(frozen=True)
class RefetchEvent:
    """Emitted by the engine whenever a preview slot needs new pixels"""
    slot: PreviewSlot
    photo_id: str
