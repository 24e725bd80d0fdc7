"""One provider's resources, addressed through mounted virtual folders."""

import logging
from typing import BinaryIO

from decoder import StreamDecoder, IdentityDecoder
from keycodec import to_key, folder_prefix
from provider import ResourceProvider

logger = logging.getLogger(__name__)


def _normalize_folder(folder: str) -> str:
    """Strip one leading separator and make non-empty folders end with one."""
    if folder.startswith("/") or folder.startswith("\\"):
        folder = folder[1:]
    if folder and not folder.endswith("/") and not folder.endswith("\\"):
        folder += "/"
    return folder


class ResourceBundle:
    """A provider's key snapshot plus the folders mounted on it.

    The provider's keys are captured once, sorted, when the bundle is built.
    Lookups walk the mounted folders in mount order and compare keys
    case-insensitively. With nothing mounted, paths resolve from the
    provider's root.
    """

    def __init__(self, provider: ResourceProvider, prefix: str | None = None,
                 decoder: StreamDecoder | None = None):
        self.provider = provider
        self.prefix = provider.default_prefix() if prefix is None else prefix
        self.decoder = decoder or IdentityDecoder()
        self._keys: tuple[str, ...] = tuple(sorted(provider.keys()))
        self._folded: tuple[str, ...] = tuple(k.casefold() for k in self._keys)
        self._folders: list[str] = []
        logger.debug("Captured %d keys from %r with prefix %r",
                     len(self._keys), provider, self.prefix)

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    @property
    def folders(self) -> tuple[str, ...]:
        return tuple(self._folders) if self._folders else ("",)

    def matches(self, provider: ResourceProvider, prefix: str) -> bool:
        return self.provider is provider and self.prefix == prefix

    def mount(self, folder: str) -> "ResourceBundle":
        """Add folder to the search path. Returns self so mounts can be chained."""
        folder = _normalize_folder(folder)
        if folder not in self._folders:
            self._folders.append(folder)
        return self

    def set_decoder(self, decoder: StreamDecoder):
        self.decoder = decoder

    def find_key(self, path: str) -> str | None:
        """Return the snapshot key path resolves to, or None."""
        for folder in self.folders:
            wanted = to_key(self.prefix, folder, path).casefold()
            for key, folded in zip(self._keys, self._folded):
                if folded == wanted:
                    return key
        return None

    def lookup(self, path: str) -> BinaryIO | None:
        """Open path through the decoder, or return None if it isn't here."""
        key = self.find_key(path)
        if key is None:
            return None
        # A key from our own snapshot that fails to open is a provider fault.
        return self.decoder.decode(self.provider.open(key))

    open_read = lookup

    def exists(self, path: str) -> bool:
        return self.find_key(path) is not None

    def _prefixes(self, base_name: str):
        for folder in self.folders:
            prefix, length = folder_prefix(self.prefix, folder, base_name)
            yield prefix.casefold(), length

    def folder_exists(self, path: str) -> bool:
        """True if any key lives under path, in any mounted folder."""
        for prefix, length in self._prefixes(path):
            for key in self._keys:
                if key[:length].casefold() == prefix:
                    return True
        return False

    def list_names(self, base_name: str = "/") -> list[str]:
        """Return the flat names under base_name, folder by folder.

        Names are what is left of each key after the folder's key prefix,
        e.g. 'sub.page.html' for 'App.docs.sub.page.html' under 'docs'.
        """
        names = []
        for prefix, length in self._prefixes(base_name):
            for key in self._keys:
                if key[:length].casefold() == prefix:
                    names.append(key[length:])
        return names

    def __repr__(self):
        return f"ResourceBundle({self.provider!r}, prefix={self.prefix!r}, folders={self._folders!r})"
