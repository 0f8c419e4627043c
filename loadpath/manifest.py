"""
Archive manifest - the index descriptor embedded in archive containers.

Archives may carry a JAR-style manifest at :data:`MANIFEST_NAME`. Its main
section can declare a ``Class-Path`` attribute: a whitespace-separated list
of paths, relative to the archive's own directory, naming further origins
that must be scanned together with the archive.

Format:
    - ``Name: value`` headers, one per line
    - a line starting with a single space continues the previous value
    - the main section ends at the first blank line
    - header names are case-insensitive
"""

import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlsplit
from urllib.request import url2pathname

logger = logging.getLogger("loadpath.manifest")

MANIFEST_NAME = "META-INF/MANIFEST.MF"
CLASS_PATH = "Class-Path"


class Manifest:
    """Parsed main section of an archive manifest."""

    def __init__(self, attributes: Optional[Dict[str, str]] = None):
        # Keyed by lower-cased header name
        self._attributes: Dict[str, str] = {
            key.lower(): value for key, value in (attributes or {}).items()
        }

    @classmethod
    def parse(cls, text: str) -> "Manifest":
        """
        Parse manifest text.

        Only the main section is kept; per-entry sections are ignored.
        Lines that are neither headers nor continuations are skipped.
        """
        attributes: Dict[str, str] = {}
        current: Optional[str] = None

        for line in text.splitlines():
            if not line.strip():
                if attributes or current is not None:
                    break
                continue

            if line.startswith(" ") and current is not None:
                attributes[current] += line[1:]
                continue

            key, sep, value = line.partition(":")
            if not sep or not key.strip():
                logger.debug(f"Ignoring malformed manifest line: {line!r}")
                current = None
                continue

            # Trailing spaces are significant before a continuation line
            current = key.strip()
            attributes[current] = value[1:] if value.startswith(" ") else value

        return cls(attributes)

    @classmethod
    def read(cls, archive: zipfile.ZipFile) -> Optional["Manifest"]:
        """Read the manifest of an open archive, or None if it has none."""
        try:
            data = archive.read(MANIFEST_NAME)
        except KeyError:
            return None
        return cls.parse(data.decode("utf-8", errors="replace"))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._attributes.get(name.lower(), default)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._attributes

    def class_path(self, archive_path: Path) -> List[Path]:
        """
        Resolve the ``Class-Path`` entries against the archive location.

        Entries that cannot be parsed, or that point to a non-``file``
        location, are skipped.

        Args:
            archive_path: Path of the archive carrying this manifest

        Returns:
            Ordered, de-duplicated list of local paths
        """
        value = self.get(CLASS_PATH)
        if not value:
            return []

        base = Path(archive_path).absolute().as_uri()
        entries: Dict[Path, None] = {}

        for reference in value.split():
            try:
                url = urlsplit(urljoin(base, reference))
            except ValueError as e:
                logger.debug(f"Skipping malformed class path entry {reference!r} in {archive_path}: {e}")
                continue

            if url.scheme != "file":
                logger.debug(f"Skipping non-local class path entry {reference!r} in {archive_path}")
                continue

            entries[Path(url2pathname(url.path))] = None

        return list(entries)
