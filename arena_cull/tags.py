"""
Color label storage.

Labels live in standard XMP sidecar files (``photo.NEF.xmp``) as ``xmp:Label``,
which Lightroom, Capture One, ON1 and Bridge all read. Everything else in an
existing sidecar is preserved.
"""
from pathlib import Path
from typing import Dict, Optional
from datetime import datetime
import logging
import xml.etree.ElementTree as ET

from .errors import TagWriteError

NS_X = "adobe:ns:meta/"
NS_RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
NS_XMP = "http://ns.adobe.com/xap/1.0/"

LABEL_ATTR = f"{{{NS_XMP}}}Label"

for _prefix, _uri in (("x", NS_X), ("rdf", NS_RDF), ("xmp", NS_XMP)):
    ET.register_namespace(_prefix, _uri)


class TagStore:
    """Read/write a single color label per file"""

    def read_tag(self, path: Path) -> Optional[str]:
        return None

    def write_tag(self, path: Path, tag: Optional[str]) -> None:
        pass


class MemoryTagStore(TagStore):
    """Keeps labels in a dict, for dry runs and tests"""

    def __init__(self, tags: Optional[Dict[str, str]] = None):
        self.tags = dict(tags or {})

    def read_tag(self, path: Path) -> Optional[str]:
        return self.tags.get(str(path))

    def write_tag(self, path: Path, tag: Optional[str]) -> None:
        if tag is None:
            self.tags.pop(str(path), None)
        else:
            self.tags[str(path)] = tag


class XmpTagStore(TagStore):
    """Color labels in XMP sidecars"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def sidecar_path(path: Path) -> Path:
        return path.with_suffix(path.suffix + '.xmp')

    def read_tag(self, path: Path) -> Optional[str]:
        xmp_file = self.sidecar_path(path)
        if not xmp_file.exists():
            return None

        try:
            tree = ET.parse(xmp_file)
        except (ET.ParseError, OSError) as e:
            self.logger.warning(f"Could not read XMP {xmp_file}: {e}")
            return None

        description = self._find_description(tree.getroot())
        if description is None:
            return None

        if LABEL_ATTR in description.attrib:
            return description.attrib[LABEL_ATTR] or None

        # Some writers use element form: <xmp:Label>Red</xmp:Label>
        child = description.find(LABEL_ATTR)
        if child is not None and child.text:
            return child.text.strip()
        return None

    def write_tag(self, path: Path, tag: Optional[str]) -> None:
        xmp_file = self.sidecar_path(path)

        if not xmp_file.exists():
            if tag is None:
                return
            self._write_new(xmp_file, tag)
            return

        try:
            tree = ET.parse(xmp_file)
        except ET.ParseError as e:
            raise TagWriteError(f"Existing XMP is not valid XML: {e}", path) from e
        except OSError as e:
            raise TagWriteError(f"Cannot read {xmp_file}: {e}", path) from e

        description = self._find_description(tree.getroot())
        if description is None:
            raise TagWriteError(f"No rdf:Description in {xmp_file}", path)

        for child in description.findall(LABEL_ATTR):
            description.remove(child)

        if tag is None:
            description.attrib.pop(LABEL_ATTR, None)
        else:
            description.set(LABEL_ATTR, tag)

        try:
            tree.write(xmp_file, encoding='utf-8', xml_declaration=True)
        except OSError as e:
            raise TagWriteError(f"Cannot write {xmp_file}: {e}", path) from e

        self.logger.debug(f"Label {tag or '(none)'} -> {xmp_file.name}")

    def _write_new(self, xmp_file: Path, tag: str):
        xmp_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<x:xmpmeta xmlns:x="{NS_X}">
  <rdf:RDF xmlns:rdf="{NS_RDF}">
    <rdf:Description rdf:about=""
      xmlns:xmp="{NS_XMP}"
      xmp:ModifyDate="{datetime.now().strftime('%Y-%m-%dT%H:%M:%S')}"
      xmp:CreatorTool="ArenaCull"
      xmp:Label="{tag}"/>
  </rdf:RDF>
</x:xmpmeta>'''
        try:
            with open(xmp_file, 'w', encoding='utf-8') as f:
                f.write(xmp_content)
        except OSError as e:
            raise TagWriteError(f"Cannot write {xmp_file}: {e}", xmp_file) from e

        self.logger.debug(f"Label {tag} -> {xmp_file.name} (new sidecar)")

    @staticmethod
    def _find_description(root: ET.Element) -> Optional[ET.Element]:
        for elem in root.iter(f"{{{NS_RDF}}}Description"):
            return elem
        return None
