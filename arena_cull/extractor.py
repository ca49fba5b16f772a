from pathlib import Path
from PIL import Image, ImageOps, UnidentifiedImageError
import logging
import io

from .errors import DecodeError

# rawpy is optional; without it RAW files simply fail to decode
try:
    import rawpy
    RAWPY_AVAILABLE = True
except ImportError:
    RAWPY_AVAILABLE = False

RAW_EXTENSIONS = {'.nef', '.cr2', '.cr3', '.arw', '.dng', '.raf',
                  '.orf', '.rw2', '.pef', '.srw', '.x3f'}


class ImageDecoder:
    """Decode any supported file into an upright RGB image bounded by max_edge.

    Thumbnails and previews both go through decode() so that orientation and
    color handling are identical; only the target size differs.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def decode(self, filepath: Path, max_edge: int) -> Image.Image:
        if max_edge <= 0:
            raise ValueError(f"max_edge must be positive, got {max_edge}")

        if filepath.suffix.lower() in RAW_EXTENSIONS:
            if not RAWPY_AVAILABLE:
                raise DecodeError(f"rawpy not installed, cannot decode {filepath.name}", filepath)
            image = self._open_raw(filepath)
        else:
            image = self._open_standard(filepath, max_edge)

        if image.mode != 'RGB':
            image = image.convert('RGB')
        image.thumbnail((max_edge, max_edge), Image.LANCZOS)
        return image

    def _open_standard(self, filepath: Path, max_edge: int) -> Image.Image:
        try:
            with Image.open(filepath) as img:
                # JPEG can decode at a reduced scale directly
                img.draft('RGB', (max_edge, max_edge))
                img.load()
                return ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(f"Failed to decode {filepath.name}: {e}", filepath) from e

    def _open_raw(self, filepath: Path) -> Image.Image:
        try:
            with rawpy.imread(str(filepath)) as raw:
                # Embedded preview first (fastest)
                try:
                    thumb = raw.extract_thumb()
                    if thumb.format == rawpy.ThumbFormat.JPEG:
                        img = Image.open(io.BytesIO(thumb.data))
                        return ImageOps.exif_transpose(img)
                    if thumb.format == rawpy.ThumbFormat.BITMAP:
                        return Image.fromarray(thumb.data)
                except (rawpy.LibRawNoThumbnailError, rawpy.LibRawUnsupportedThumbnailError):
                    self.logger.debug(f"No embedded preview in {filepath.name}, demosaicing")

                rgb = raw.postprocess(
                    use_camera_wb=True,
                    half_size=True,
                    no_auto_bright=False,
                    output_bps=8
                )
                return Image.fromarray(rgb)

        except (rawpy.LibRawError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(f"Failed to process RAW file {filepath.name}: {e}", filepath) from e
