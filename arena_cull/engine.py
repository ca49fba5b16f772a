from typing import Callable, Dict, Iterable, List, Optional
import logging

from .models import Arena, PhotoRecord, PreviewSlot, RefetchEvent, StatusLabel
from .errors import TagWriteError
from .tags import TagStore


class TournamentEngine:
    """Elimination rounds over an ordered photo collection.

    The collection owns every PhotoRecord; arenas refer to photos by id and
    all lookups go through record(). History is append-only: no operation
    removes a photo, an arena, or a displaced entry. The last arena in the
    stack is the active one.

    All methods must be called from the coordinating thread.
    """

    def __init__(self, tag_store: Optional[TagStore] = None):
        self.tag_store = tag_store or TagStore()
        self.photos: List[PhotoRecord] = []
        self.cursor = 0
        self.arenas: List[Arena] = [Arena(index=0)]
        self.last_error: Optional[Exception] = None
        self.logger = logging.getLogger(__name__)
        self._by_id: Dict[str, PhotoRecord] = {}
        self._listeners: List[Callable[[RefetchEvent], None]] = []

    # --- collection ---

    def load(self, photos: Iterable[PhotoRecord]):
        """Replace the collection and reset all arenas (new folder)"""
        self.photos = list(photos)
        self._by_id = {photo.id: photo for photo in self.photos}
        self.cursor = 0
        self.arenas = [Arena(index=0)]
        self.logger.info(f"Loaded {len(self.photos)} photos")
        if self.photos:
            self._emit(PreviewSlot.CURRENT, self.photos[0])

    def record(self, photo_id: Optional[str]) -> Optional[PhotoRecord]:
        if photo_id is None:
            return None
        return self._by_id.get(photo_id)

    @property
    def current(self) -> Optional[PhotoRecord]:
        if not self.photos:
            return None
        return self.photos[self.cursor]

    @property
    def active_arena(self) -> Arena:
        return self.arenas[-1]

    @property
    def champion(self) -> Optional[PhotoRecord]:
        return self.record(self.active_arena.champion)

    def displaced_records(self, arena: Optional[Arena] = None) -> List[PhotoRecord]:
        arena = arena or self.active_arena
        return [self._by_id[photo_id] for photo_id in arena.displaced]

    def shortlist(self) -> List[PhotoRecord]:
        """Champions of every round, oldest round first"""
        return [self._by_id[arena.champion] for arena in self.arenas if arena.champion is not None]

    # --- events ---

    def subscribe(self, listener: Callable[[RefetchEvent], None]):
        self._listeners.append(listener)

    def _emit(self, slot: PreviewSlot, photo: PhotoRecord):
        event = RefetchEvent(slot=slot, photo_id=photo.id)
        for listener in self._listeners:
            listener(event)

    # --- transitions ---

    def challenge(self):
        """The photo under the cursor beats the active champion"""
        challenger = self.current
        if challenger is None:
            return

        arena = self.active_arena
        self._set_status(challenger, StatusLabel.CHAMPION)
        challenger.processed = True

        old_champion = self.record(arena.champion)
        if old_champion is not None and old_champion.id != challenger.id:
            self._set_status(old_champion, StatusLabel.DISPLACED)
            arena.displaced.insert(0, old_champion.id)
            self.logger.info(f"{challenger.filename} displaces {old_champion.filename} in round {arena.index + 1}")

        arena.champion = challenger.id
        self._emit(PreviewSlot.CHAMPION, challenger)

    def finalize(self):
        """Archive the active round and open a new one seeded with the cursor photo"""
        closing = self.active_arena
        closing.archived = True
        arena = Arena(index=len(self.arenas))
        self.arenas.append(arena)

        winner = self.record(closing.champion)
        self.logger.info(f"Round {closing.index + 1} closed, winner: {winner.filename if winner else 'none'}")

        seed = self.current
        if seed is None:
            return
        self._set_status(seed, StatusLabel.CHAMPION)
        seed.processed = True
        arena.champion = seed.id
        self._emit(PreviewSlot.CHAMPION, seed)

    def reject(self):
        """Take the cursor photo out of competition and move on"""
        photo = self.current
        if photo is None:
            return
        self._set_status(photo, StatusLabel.REJECTED)
        photo.processed = True
        self.navigate(+1)

    def navigate(self, direction: int) -> bool:
        """Move the cursor one step; False (and no refetch) at either end"""
        if direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or +1, got {direction}")
        return self.navigate_to(self.cursor + direction)

    def navigate_to(self, index: int) -> bool:
        if not self.photos:
            return False
        index = max(0, min(index, len(self.photos) - 1))
        if index == self.cursor:
            return False

        self.cursor = index
        self._emit(PreviewSlot.CURRENT, self.photos[index])
        champion = self.champion
        if champion is not None:
            self._emit(PreviewSlot.CHAMPION, champion)
        return True

    def _set_status(self, photo: PhotoRecord, status: StatusLabel):
        photo.status = status
        try:
            self.tag_store.write_tag(photo.path, status.to_tag())
        except TagWriteError as e:
            # in-memory status stays authoritative
            self.last_error = e
            self.logger.warning(f"Label for {photo.filename} not saved: {e}")
