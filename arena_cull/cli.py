#!/usr/bin/env python3
"""
ArenaCull - keyboard-driven elimination rounds for a folder of photos
"""
import click
from pathlib import Path
from tqdm import tqdm
import logging

from .config_loader import Config
from .models import StatusLabel
from .pipeline import DEFAULT_EXTENSIONS, AcquisitionPipeline
from .session import CullSession
from .tags import MemoryTagStore, TagStore, XmpTagStore

KEYMAP = {
    'k': 'prev', '\x1b[A': 'prev', '\xe0H': 'prev',
    'j': 'next', '\x1b[B': 'next', '\xe0P': 'next',
    'r': 'challenge',
    'f': 'finalize',
    'x': 'reject',
    'c': 'compare',
    'q': 'quit',
}

# seconds to wait for a preview before redrawing after a key
PREVIEW_WAIT = 0.5

STATUS_MARKS = {
    StatusLabel.UNSET: '  ',
    StatusLabel.CHAMPION: '🟢',
    StatusLabel.DISPLACED: '🟡',
    StatusLabel.REJECTED: '🔴',
}


def setup_logging(verbose=False):
    """Setup logging"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s - %(message)s'
    )
    return logging.getLogger(__name__)


def build_tag_store(backend: str) -> TagStore:
    if backend == 'xmp':
        return XmpTagStore()
    if backend == 'memory':
        return MemoryTagStore()
    return TagStore()


def apply_command(session: CullSession, command: str) -> bool:
    """Run one command, False when the user quits"""
    if command == 'prev':
        session.navigate(-1)
    elif command == 'next':
        session.navigate(+1)
    elif command == 'challenge':
        session.challenge()
    elif command == 'finalize':
        session.finalize()
    elif command == 'reject':
        session.reject()
    elif command == 'compare':
        session.set_compare_mode(not session.compare_mode)
    elif command == 'quit':
        return False
    return True


def print_state(session: CullSession):
    current = session.engine.current
    champion = session.champion
    arena = session.active_arena

    line = f"[{session.position_label}] {current.filename if current else '-'}"
    if current is not None:
        line += f" {STATUS_MARKS[current.status]}"
    click.echo(line)

    click.echo(f"   Round {arena.index + 1}: 👑 {champion.filename if champion else '(empty)'}")
    for photo in session.displaced:
        click.echo(f"      ⚠️  {photo.filename}")
    if session.compare_mode:
        preview = session.compare_preview
        size = f"{preview.width}x{preview.height}" if preview else "loading"
        click.echo(f"   Compare: {size}")


def print_summary(session: CullSession):
    click.echo("=" * 60)
    click.echo("🏁 SHORTLIST")
    click.echo("=" * 60)
    shortlist = session.engine.shortlist()
    if not shortlist:
        click.echo("(no winners yet)")
    for rank, photo in enumerate(shortlist, start=1):
        click.echo(f"{rank:>3}. {photo.filename}")

    counts = {status: 0 for status in StatusLabel}
    for photo in session.photos:
        counts[photo.status] += 1
    click.echo(f"Rounds: {len(session.engine.arenas)}  " +
               "  ".join(f"{status.value}: {count}" for status, count in counts.items()))


@click.command()
@click.argument('folder', type=click.Path(exists=True, file_okay=False))
@click.option('--config', 'config_path', type=click.Path(), default='arena_cull.yaml',
              help='YAML configuration file')
@click.option('--tags', type=click.Choice(['xmp', 'memory', 'none']), default=None,
              help='Where color labels are stored (default from config)')
@click.option('--keys', default=None,
              help='Run these keys non-interactively, e.g. "rjrf"')
@click.option('--workers', type=int, default=None, help='Decode threads')
@click.option('--verbose', is_flag=True, help='Show processing details')
def arena_cull(folder, config_path, tags, keys, workers, verbose):
    """
    Step through FOLDER and pick winners round by round.

    \b
    k / up      previous photo
    j / down    next photo
    r           challenge: current photo beats the champion
    f           finalize round, current photo seeds the next one
    x           reject current photo
    c           toggle compare view
    q           quit
    """
    logger = setup_logging(verbose)
    config = Config(Path(config_path))
    logger.debug(f"Config: {config.config}")

    tag_store = build_tag_store(tags or config.get('tags.backend', 'xmp'))
    pipeline = AcquisitionPipeline(
        tag_store=tag_store,
        extensions=config.get('extensions', DEFAULT_EXTENSIONS),
        thumbnail_edge=config.get('thumbnail.max_edge', 256),
        preview_edge=config.get('preview.max_edge', 1500),
        max_workers=workers or config.get('workers.max', 4)
    )
    session = CullSession(pipeline)

    try:
        with tqdm(total=100, desc="Loading thumbnails", unit="%") as pbar:
            def on_progress(fraction):
                pbar.n = round(fraction * 100)
                pbar.refresh()
            loaded = session.load_folder(Path(folder), progress=on_progress)

        if not loaded:
            raise click.ClickException(f"Cannot load {folder}: {session.last_error}")
        if not session.photos:
            click.echo("❌ No supported photos found")
            return

        click.echo(f"📁 {len(session.photos)} photos, stage: {session.stage}")
        print_state(session)

        commands = (KEYMAP.get(key.lower()) for key in keys) if keys is not None else _read_keys()
        for command in commands:
            if command is None:
                continue
            if not apply_command(session, command):
                break
            session.pipeline.settle(timeout=10 if keys is not None else PREVIEW_WAIT)
            print_state(session)

        print_summary(session)
    finally:
        session.close()


def _read_keys():
    while True:
        key = click.getchar()
        yield KEYMAP.get(key.lower() if len(key) == 1 else key)


if __name__ == '__main__':
    arena_cull()
