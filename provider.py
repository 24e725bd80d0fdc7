"""Resource provider interface and in-memory reference implementation."""

import io
from typing import BinaryIO


class ProviderError(Exception):
    """Base error for provider operations."""
    pass


class ProviderNotFoundError(ProviderError):
    """A provider could not be loaded by name."""
    pass


class ResourceProvider:
    """Abstract source of immutable, flat-named byte blobs.

    Keys are dot-separated storage names such as 'App.Templates.page.html'.
    A provider never has directories of its own; those are emulated by the
    bundle on top of it.
    """

    namespace: str | None = None

    def keys(self) -> list[str]:
        """Return every storage key this provider can open."""
        raise NotImplementedError

    def open(self, key: str) -> BinaryIO:
        """Return a raw stream for key. Raises ProviderError if it can't be opened."""
        raise NotImplementedError

    def close(self):
        """Release whatever the provider holds open. Nothing by default."""
        pass

    def default_prefix(self) -> str:
        """Return the declared namespace, or the root of the first key."""
        if self.namespace:
            return self.namespace
        keys = self.keys()
        if not keys:
            return ""
        first = keys[0]
        return first.split(".", 1)[0]


class MemoryProvider(ResourceProvider):
    """Provider backed by a dict of storage key -> content.

    String values are encoded to UTF-8 bytes on open.

    Example:
        MemoryProvider({
            "App.Templates.page.html": "<html></html>",
            "App.Templates._2024.notes.txt": b"raw bytes",
        }, namespace="App")
    """

    def __init__(self, resources: dict, namespace: str | None = None):
        self._resources = dict(resources)
        self.namespace = namespace

    def keys(self) -> list[str]:
        return list(self._resources)

    def open(self, key: str) -> BinaryIO:
        if key not in self._resources:
            raise ProviderError(f"No resource named {key}")
        data = self._resources[key]
        if isinstance(data, str):
            data = data.encode("utf-8")
        return io.BytesIO(data)

    def __repr__(self):
        return f"MemoryProvider(namespace={self.namespace!r}, size={len(self._resources)})"
