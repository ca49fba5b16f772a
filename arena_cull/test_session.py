"""End-to-end command surface over a real folder."""
from pathlib import Path

import pytest
from PIL import Image

from arena_cull.models import StatusLabel
from arena_cull.pipeline import AcquisitionPipeline
from arena_cull.session import CullSession
from arena_cull.tags import XmpTagStore


def _make_folder(folder: Path, names):
    for i, name in enumerate(names):
        Image.new("RGB", (400, 300), color=(40 * i, 100, 160)).save(folder / name, format="JPEG")


@pytest.fixture
def session(tmp_path):
    _make_folder(tmp_path, ["c.jpg", "a.jpg", "b.jpg"])
    pipeline = AcquisitionPipeline(tag_store=XmpTagStore(), thumbnail_edge=32,
                                   preview_edge=128, max_workers=2)
    s = CullSession(pipeline)
    assert s.load_folder(tmp_path)
    yield s
    s.close()


def test_load_orders_photos_and_shows_first_preview(session):
    assert [p.filename for p in session.photos] == ["a.jpg", "b.jpg", "c.jpg"]
    assert session.cursor == 0
    assert session.position_label == "1/3"
    assert session.stage == "Ready"
    assert session.progress == 1.0

    session.pipeline.settle(timeout=10)
    assert session.current_preview is session.photos[0].full_preview


def test_navigation_follows_latest_preview(session):
    session.navigate(+1)
    session.navigate(+1)
    session.pipeline.settle(timeout=10)

    assert session.position_label == "3/3"
    assert session.current_preview is session.photos[2].full_preview


def test_compare_mode_loads_champion(session):
    session.challenge()
    session.navigate(+1)
    session.pipeline.settle(timeout=10)
    assert session.compare_preview is None

    session.set_compare_mode(True)
    session.pipeline.settle(timeout=10)
    assert session.compare_preview is session.photos[0].full_preview

    session.set_compare_mode(False)
    assert session.compare_preview is None


def test_decisions_are_written_as_labels_and_reloaded(session, tmp_path):
    session.challenge()
    session.navigate(+1)
    session.challenge()
    session.reject()

    assert session.champion is session.photos[1]
    assert session.displaced == [session.photos[0]]

    pipeline = AcquisitionPipeline(tag_store=XmpTagStore(), max_workers=1)
    reloaded = CullSession(pipeline)
    assert reloaded.load_folder(tmp_path)
    assert [p.status for p in reloaded.photos] == [
        StatusLabel.DISPLACED, StatusLabel.REJECTED, StatusLabel.UNSET]
    # statuses come back, rounds do not
    assert reloaded.champion is None
    reloaded.close()


def test_failed_load_keeps_previous_state(session, tmp_path):
    session.challenge()
    photos = list(session.photos)

    assert session.load_folder(tmp_path / "gone") is False

    assert session.photos == photos
    assert session.champion is photos[0]
    assert session.last_error is not None


def test_empty_folder_loads_nothing(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    s = CullSession(AcquisitionPipeline(max_workers=1))

    assert s.load_folder(empty)
    assert s.photos == []
    assert s.position_label == "0/0"
    s.close()


def test_compare_view_follows_new_champion(session):
    session.set_compare_mode(True)
    session.challenge()
    session.pipeline.settle(timeout=10)
    assert session.compare_preview is session.photos[0].full_preview

    session.navigate(+1)
    session.challenge()
    session.pipeline.settle(timeout=10)

    assert session.champion is session.photos[1]
    assert session.compare_preview is not None
    assert session.compare_preview is session.photos[1].full_preview
    # the old champion left both slots
    assert session.photos[0].full_preview is None
