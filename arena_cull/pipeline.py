from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional
from concurrent.futures import Future, ThreadPoolExecutor, as_completed, wait
from dataclasses import dataclass
import logging
import queue

from PIL import Image

from .extractor import ImageDecoder
from .errors import CullError, DecodeError, ScanError
from .models import PhotoRecord, PreviewSlot, StatusLabel
from .tags import TagStore

DEFAULT_EXTENSIONS = ['ARW', 'CR2', 'CR3', 'NEF', 'DNG', 'RAF', 'JPG', 'JPEG']


@dataclass
class _PreviewResult:
    slot: PreviewSlot
    photo: PhotoRecord
    generation: int
    image: Optional[Image.Image] = None
    error: Optional[DecodeError] = None


class AcquisitionPipeline:
    """Turns a folder into decoded PhotoRecords and keeps previews coming.

    Decoding happens on a thread pool. Preview results come back through a
    queue and are only applied by pump(), which the coordinating thread
    calls; a result whose generation no longer matches its slot is dropped.
    """

    def __init__(self, decoder: Optional[ImageDecoder] = None,
                 tag_store: Optional[TagStore] = None,
                 extensions: Iterable[str] = DEFAULT_EXTENSIONS,
                 thumbnail_edge: int = 256,
                 preview_edge: int = 1500,
                 max_workers: int = 4):

        self.decoder = decoder or ImageDecoder()
        self.tag_store = tag_store or TagStore()
        self.extensions = {'.' + ext.strip().lstrip('.').lower() for ext in extensions}
        self.thumbnail_edge = thumbnail_edge
        self.preview_edge = preview_edge
        self.logger = logging.getLogger(__name__)
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="decode")

        self.stage = "Idle"
        self.progress = 0.0
        self.last_error: Optional[CullError] = None

        self._results: "queue.Queue[_PreviewResult]" = queue.Queue()
        self._generations: Dict[PreviewSlot, int] = {slot: 0 for slot in PreviewSlot}
        self._targets: Dict[PreviewSlot, Optional[str]] = {slot: None for slot in PreviewSlot}
        self._pending: Dict[PreviewSlot, Optional[Future]] = {slot: None for slot in PreviewSlot}
        self._slot_records: Dict[PreviewSlot, Optional[PhotoRecord]] = {slot: None for slot in PreviewSlot}
        self.previews: Dict[PreviewSlot, Optional[Image.Image]] = {slot: None for slot in PreviewSlot}

    # --- folder acquisition ---

    def scan(self, folder: Path) -> List[Path]:
        """Supported files in folder, sorted by name. Empty on failure."""
        self.stage = f"Scanning {folder.name or folder}"
        try:
            entries = list(folder.iterdir())
        except OSError as e:
            self.last_error = ScanError(f"Cannot read folder {folder}: {e}", folder)
            self.stage = "Scan failed"
            self.logger.error(str(self.last_error))
            return []

        files = [
            entry for entry in entries
            if entry.suffix.lower() in self.extensions
            and not entry.name.startswith('.')
            and entry.is_file()
        ]
        files = sorted(files, key=lambda p: p.name)
        self.logger.info(f"Found {len(files)} photos in {folder}")
        return files

    def derive_initial_status(self, path: Path) -> StatusLabel:
        try:
            tag = self.tag_store.read_tag(path)
        except (CullError, OSError) as e:
            self.logger.warning(f"Could not read label for {path.name}: {e}")
            return StatusLabel.UNSET
        return StatusLabel.from_tag(tag)

    def prefetch_thumbnails(self, records: List[PhotoRecord],
                            progress: Optional[Callable[[float], None]] = None) -> int:
        """Decode a thumbnail for every record. Returns the number of failures."""
        self.stage = "Loading thumbnails"
        self._report(0.0, progress)
        if not records:
            self._report(1.0, progress)
            return 0

        failed = 0
        total = len(records)
        future_to_record = {
            self.executor.submit(self.decoder.decode, record.path, self.thumbnail_edge): record
            for record in records
        }

        for done, future in enumerate(as_completed(future_to_record), start=1):
            record = future_to_record[future]
            try:
                record.thumbnail = future.result()
            except DecodeError as e:
                failed += 1
                self.last_error = e
                self.logger.error(str(e))
            self._report(done / total, progress)

        if failed:
            self.logger.warning(f"{failed}/{total} thumbnails failed")
        return failed

    def acquire(self, folder: Path,
                progress: Optional[Callable[[float], None]] = None) -> Optional[List[PhotoRecord]]:
        """Scan, label and thumbnail a folder. None if the folder is unreadable."""
        self.last_error = None
        paths = self.scan(folder)
        if isinstance(self.last_error, ScanError):
            return None

        records = [PhotoRecord.from_path(path, self.derive_initial_status(path)) for path in paths]
        self.prefetch_thumbnails(records, progress)
        self.stage = "Ready"
        return records

    def _report(self, fraction: float, progress: Optional[Callable[[float], None]]):
        self.progress = fraction
        if progress:
            progress(fraction)

    # --- previews ---

    def reset(self):
        """Forget every slot; in-flight results from before become stale"""
        for slot in PreviewSlot:
            self.invalidate(slot)

    def invalidate(self, slot: PreviewSlot):
        self._generations[slot] += 1
        self._release(slot)
        self._targets[slot] = None
        self.previews[slot] = None
        self._cancel_pending(slot)

    def request_preview(self, slot: PreviewSlot, record: PhotoRecord):
        """Latest request per slot wins"""
        if self._targets[slot] == record.id and self._pending[slot] is not None:
            # same photo already decoding or decoded for this slot
            return

        self._generations[slot] += 1
        generation = self._generations[slot]
        if self._targets[slot] != record.id:
            self._release(slot)
        self._targets[slot] = record.id
        self._slot_records[slot] = record
        self._cancel_pending(slot)

        if record.full_preview is not None:
            self.previews[slot] = record.full_preview
            return

        self._pending[slot] = self.executor.submit(self._decode_preview, slot, record, generation)

    def _release(self, slot: PreviewSlot):
        """Drop the full preview of the photo leaving slot unless another slot shows it"""
        record = self._slot_records[slot]
        self._slot_records[slot] = None
        if record is None:
            return
        if any(other is not slot and self._targets[other] == record.id for other in PreviewSlot):
            return
        record.full_preview = None

    def _cancel_pending(self, slot: PreviewSlot):
        pending = self._pending[slot]
        if pending is not None:
            # only helps if the decode has not started yet
            pending.cancel()
        self._pending[slot] = None

    def _decode_preview(self, slot: PreviewSlot, record: PhotoRecord, generation: int):
        # worker thread: no record mutation here, only hand the result over
        try:
            image = self.decoder.decode(record.path, self.preview_edge)
            self._results.put(_PreviewResult(slot, record, generation, image=image))
        except DecodeError as e:
            self._results.put(_PreviewResult(slot, record, generation, error=e))

    def is_current(self, slot: PreviewSlot, photo_id: str, generation: int) -> bool:
        return self._generations[slot] == generation and self._targets[slot] == photo_id

    def pump(self) -> int:
        """Apply finished previews on the calling (coordinating) thread"""
        applied = 0
        while True:
            try:
                result = self._results.get_nowait()
            except queue.Empty:
                return applied

            if not self.is_current(result.slot, result.photo.id, result.generation):
                self.logger.debug(f"Dropping stale {result.slot.value} preview of {result.photo.filename}")
                continue

            if result.error is not None:
                self.last_error = result.error
                self.previews[result.slot] = None
                self.logger.error(str(result.error))
            else:
                if result.photo.full_preview is None:
                    result.photo.full_preview = result.image
                # both slots share one image when they show the same photo
                self.previews[result.slot] = result.photo.full_preview
                applied += 1

    def settle(self, timeout: Optional[float] = None) -> int:
        """Wait for outstanding preview decodes, then pump"""
        pending = [future for future in self._pending.values() if future is not None]
        if pending:
            wait(pending, timeout=timeout)
        return self.pump()

    def close(self):
        self.executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
