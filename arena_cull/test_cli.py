from PIL import Image
from click.testing import CliRunner

from arena_cull.cli import arena_cull
from arena_cull.tags import XmpTagStore


def _make_folder(folder, names):
    for name in names:
        Image.new("RGB", (300, 200), color=(90, 90, 200)).save(folder / name, format="JPEG")


def test_scripted_session_prints_shortlist(tmp_path):
    _make_folder(tmp_path, ["a.jpg", "b.jpg", "c.jpg", "d.jpg"])

    result = CliRunner().invoke(arena_cull, [str(tmp_path), "--keys", "rjrjfjxq",
                                             "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 0, result.output
    assert "SHORTLIST" in result.output
    assert "  1. b.jpg" in result.output
    assert "  2. c.jpg" in result.output
    store = XmpTagStore()
    assert store.read_tag(tmp_path / "a.jpg") == "Yellow"
    assert store.read_tag(tmp_path / "d.jpg") == "Red"


def test_memory_tags_leave_no_sidecars(tmp_path):
    _make_folder(tmp_path, ["a.jpg"])

    result = CliRunner().invoke(arena_cull, [str(tmp_path), "--keys", "rcq", "--tags", "memory",
                                             "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 0, result.output
    assert "Compare: 300x200" in result.output
    assert not list(tmp_path.glob("*.xmp"))


def test_empty_folder(tmp_path):
    result = CliRunner().invoke(arena_cull, [str(tmp_path), "--keys", "q",
                                             "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 0
    assert "No supported photos" in result.output


def test_interactive_compare_shows_champion_preview(tmp_path):
    _make_folder(tmp_path, ["a.jpg", "b.jpg"])

    result = CliRunner().invoke(arena_cull, [str(tmp_path), "--tags", "memory",
                                             "--config", str(tmp_path / "none.yaml")],
                                input="rjcq")

    assert result.exit_code == 0, result.output
    assert "Compare: 300x200" in result.output
