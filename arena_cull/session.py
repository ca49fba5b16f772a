"""
Command surface for a front end: key handlers call the commands, the view
reads the observation properties and calls pump() on every tick.
"""
from pathlib import Path
from typing import Callable, List, Optional
import logging

from PIL import Image

from .engine import TournamentEngine
from .pipeline import AcquisitionPipeline
from .models import Arena, PhotoRecord, PreviewSlot, RefetchEvent
from .tags import TagStore


class CullSession:

    def __init__(self, pipeline: AcquisitionPipeline, tag_store: Optional[TagStore] = None):
        self.pipeline = pipeline
        self.engine = TournamentEngine(tag_store or pipeline.tag_store)
        self.compare_mode = False
        self.folder: Optional[Path] = None
        self.logger = logging.getLogger(__name__)
        self.engine.subscribe(self._on_refetch)

    def load_folder(self, folder: Path, progress: Optional[Callable[[float], None]] = None) -> bool:
        """Replace the collection with the folder's photos. False if unreadable."""
        records = self.pipeline.acquire(Path(folder), progress)
        if records is None:
            return False

        self.pipeline.reset()
        self.folder = Path(folder)
        self.engine.load(records)
        return True

    # --- commands ---

    def challenge(self):
        self.engine.challenge()

    def finalize(self):
        self.engine.finalize()

    def reject(self):
        self.engine.reject()

    def navigate(self, direction: int) -> bool:
        return self.engine.navigate(direction)

    def navigate_to(self, index: int) -> bool:
        return self.engine.navigate_to(index)

    def set_compare_mode(self, enabled: bool):
        self.compare_mode = enabled
        champion = self.engine.champion
        if enabled and champion is not None:
            self.pipeline.request_preview(PreviewSlot.CHAMPION, champion)
        elif not enabled:
            self.pipeline.invalidate(PreviewSlot.CHAMPION)

    def pump(self) -> int:
        return self.pipeline.pump()

    def close(self):
        self.pipeline.close()

    def _on_refetch(self, event: RefetchEvent):
        if event.slot is PreviewSlot.CHAMPION and not self.compare_mode:
            return
        photo = self.engine.record(event.photo_id)
        if photo is not None:
            self.pipeline.request_preview(event.slot, photo)

    # --- observation ---

    @property
    def photos(self) -> List[PhotoRecord]:
        return self.engine.photos

    @property
    def cursor(self) -> int:
        return self.engine.cursor

    @property
    def active_arena(self) -> Arena:
        return self.engine.active_arena

    @property
    def champion(self) -> Optional[PhotoRecord]:
        return self.engine.champion

    @property
    def displaced(self) -> List[PhotoRecord]:
        return self.engine.displaced_records()

    @property
    def current_preview(self) -> Optional[Image.Image]:
        return self.pipeline.previews[PreviewSlot.CURRENT]

    @property
    def compare_preview(self) -> Optional[Image.Image]:
        if not self.compare_mode:
            return None
        return self.pipeline.previews[PreviewSlot.CHAMPION]

    @property
    def progress(self) -> float:
        return self.pipeline.progress

    @property
    def stage(self) -> str:
        return self.pipeline.stage

    @property
    def last_error(self) -> Optional[Exception]:
        return self.pipeline.last_error or self.engine.last_error

    @property
    def position_label(self) -> str:
        if not self.photos:
            return "0/0"
        return f"{self.cursor + 1}/{len(self.photos)}"
