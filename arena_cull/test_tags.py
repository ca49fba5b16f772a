"""Color labels: vocabulary mapping and XMP sidecars."""
from pathlib import Path

import pytest

from arena_cull.errors import TagWriteError
from arena_cull.models import StatusLabel
from arena_cull.tags import XmpTagStore


@pytest.mark.parametrize("tag,status", [
    ("Green", StatusLabel.CHAMPION),
    ("Yellow", StatusLabel.DISPLACED),
    ("Red", StatusLabel.REJECTED),
    ("red", StatusLabel.UNSET),
    (" Green ", StatusLabel.UNSET),
    ("Purple", StatusLabel.UNSET),
    ("", StatusLabel.UNSET),
    (None, StatusLabel.UNSET),
])
def test_from_tag(tag, status):
    assert StatusLabel.from_tag(tag) is status


def test_to_tag():
    assert StatusLabel.CHAMPION.to_tag() == "Green"
    assert StatusLabel.DISPLACED.to_tag() == "Yellow"
    assert StatusLabel.REJECTED.to_tag() == "Red"
    assert StatusLabel.UNSET.to_tag() is None


def test_sidecar_name_keeps_extension():
    assert XmpTagStore.sidecar_path(Path("/x/DSC_0001.NEF")) == Path("/x/DSC_0001.NEF.xmp")


def test_write_then_read_creates_sidecar(tmp_path):
    store = XmpTagStore()
    photo = tmp_path / "a.jpg"

    store.write_tag(photo, "Green")

    assert (tmp_path / "a.jpg.xmp").exists()
    assert store.read_tag(photo) == "Green"


def test_relabel_existing_sidecar(tmp_path):
    store = XmpTagStore()
    photo = tmp_path / "a.jpg"
    store.write_tag(photo, "Green")
    store.write_tag(photo, "Yellow")
    assert store.read_tag(photo) == "Yellow"


def test_clearing_label_without_sidecar_writes_nothing(tmp_path):
    store = XmpTagStore()
    store.write_tag(tmp_path / "a.jpg", None)
    assert not (tmp_path / "a.jpg.xmp").exists()


FOREIGN_XMP = '''<?xml version="1.0" encoding="UTF-8"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
  <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
    <rdf:Description rdf:about=""
      xmlns:xmp="http://ns.adobe.com/xap/1.0/"
      xmp:Rating="4">
      <xmp:Label>Red</xmp:Label>
    </rdf:Description>
  </rdf:RDF>
</x:xmpmeta>'''


def test_reads_element_form_label(tmp_path):
    (tmp_path / "a.jpg.xmp").write_text(FOREIGN_XMP, encoding="utf-8")
    assert XmpTagStore().read_tag(tmp_path / "a.jpg") == "Red"


def test_write_preserves_other_metadata(tmp_path):
    sidecar = tmp_path / "a.jpg.xmp"
    sidecar.write_text(FOREIGN_XMP, encoding="utf-8")
    store = XmpTagStore()

    store.write_tag(tmp_path / "a.jpg", "Green")

    assert store.read_tag(tmp_path / "a.jpg") == "Green"
    content = sidecar.read_text(encoding="utf-8")
    assert 'xmp:Rating="4"' in content
    assert "<xmp:Label>" not in content


def test_clear_removes_label(tmp_path):
    store = XmpTagStore()
    photo = tmp_path / "a.jpg"
    store.write_tag(photo, "Red")
    store.write_tag(photo, None)
    assert store.read_tag(photo) is None


def test_unparseable_sidecar(tmp_path):
    (tmp_path / "a.jpg.xmp").write_text("<not xml", encoding="utf-8")
    store = XmpTagStore()

    assert store.read_tag(tmp_path / "a.jpg") is None
    with pytest.raises(TagWriteError):
        store.write_tag(tmp_path / "a.jpg", "Green")
