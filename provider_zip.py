"""ZIP archive provider: embed the files of a .zip as flat resources."""

import os
import zipfile
from typing import BinaryIO

from keycodec import embed_key
from provider import ResourceProvider, ProviderError


class ZipProvider(ResourceProvider):
    """Expose the members of a ZIP archive under dotted storage keys.

    'docs/1.0/guide.txt' in an archive named 'manual.zip' becomes
    'manual.docs._1._0.guide.txt'.
    """

    def __init__(self, path: str, namespace: str | None = None):
        try:
            self._zf = zipfile.ZipFile(path, "r")
        except (zipfile.BadZipFile, FileNotFoundError, OSError) as e:
            raise ProviderError(f"Cannot open ZIP file: {e}") from e

        if namespace is None:
            namespace = os.path.basename(path)
            if namespace.lower().endswith(".zip"):
                namespace = namespace[:-4]
        self.namespace = namespace
        self.path = path

        # Storage key -> member name. Directory entries carry no data and
        # are implied by the keys of the files inside them.
        self._members: dict[str, str] = {}
        for zi in self._zf.infolist():
            if zi.is_dir():
                continue
            self._members[embed_key(namespace, zi.filename)] = zi.filename

    def keys(self) -> list[str]:
        return list(self._members)

    def open(self, key: str) -> BinaryIO:
        if key not in self._members:
            raise ProviderError(f"No member for {key} in {self.path}")
        try:
            return self._zf.open(self._members[key])
        except Exception as e:
            raise ProviderError(f"Error reading from ZIP: {e}") from e

    def close(self):
        self._zf.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"ZipProvider({self.path!r}, namespace={self.namespace!r})"
