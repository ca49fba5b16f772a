"""
ArenaCull

Photo triage by elimination rounds: step through a folder, let each photo
challenge the current champion, bank winners round by round, and keep the
decisions as color labels that other photo apps can read.
"""

__version__ = "1.0.0"

from .models import StatusLabel, PhotoRecord, Arena, PreviewSlot, RefetchEvent
from .errors import CullError, ScanError, DecodeError, TagWriteError
from .tags import TagStore, MemoryTagStore, XmpTagStore
from .extractor import ImageDecoder
from .engine import TournamentEngine
from .pipeline import AcquisitionPipeline
from .session import CullSession

__all__ = [
    'StatusLabel',
    'PhotoRecord',
    'Arena',
    'PreviewSlot',
    'RefetchEvent',
    'CullError',
    'ScanError',
    'DecodeError',
    'TagWriteError',
    'TagStore',
    'MemoryTagStore',
    'XmpTagStore',
    'ImageDecoder',
    'TournamentEngine',
    'AcquisitionPipeline',
    'CullSession'
]
