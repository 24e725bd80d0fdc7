"""Read-only overlay that searches several resource providers in order."""

import inspect
import logging
from typing import BinaryIO, Callable

from bundle import ResourceBundle
from decoder import StreamDecoder, IdentityDecoder
from provider import ResourceProvider, ProviderNotFoundError
from provider_package import load_provider

logger = logging.getLogger(__name__)


def _calling_package(depth: int) -> str:
    """Return the package (or module) name of the frame depth levels up."""
    frame = inspect.currentframe()
    for _ in range(depth + 1):
        frame = frame.f_back
    frame_globals = frame.f_globals
    return frame_globals.get("__package__") or frame_globals["__name__"]


class ResourceOverlay:
    """Hierarchical, read-only view over stacked resource providers.

    The first provider registered is the home provider: mount() adds folders
    to it. Lookups try each provider in registration order, and within a
    provider each mounted folder in mount order; the first hit wins.

    Example:
        fs = ResourceOverlay("templates", MemoryProvider(..., namespace="App"))
        fs.mount("more_templates")
        fs.add_provider_by_name("plugin_pkg", "files")
        text = fs.read("page.html")
    """

    def __init__(self, folder: str = "", provider: ResourceProvider | None = None,
                 prefix: str | None = None, *, decoder: StreamDecoder | None = None,
                 ignore_missing_providers: bool = False,
                 loader: Callable[[str], ResourceProvider] = load_provider):
        self.ignore_missing_providers = ignore_missing_providers
        self._loader = loader
        self._decoder = decoder or IdentityDecoder()
        self._bundles: list[ResourceBundle] = []
        if provider is None:
            provider = loader(_calling_package(1))
        self.add_provider(provider, prefix).mount(folder)

    @property
    def bundles(self) -> tuple[ResourceBundle, ...]:
        return tuple(self._bundles)

    @property
    def decoder(self) -> StreamDecoder:
        return self._decoder

    def set_decoder(self, decoder: StreamDecoder):
        """Make decoder the default and apply it to every registered bundle."""
        self._decoder = decoder
        for bundle in self._bundles:
            bundle.set_decoder(decoder)

    def mount(self, folder: str) -> ResourceBundle:
        """Mount folder on the home provider. Returns its bundle for chaining."""
        return self._bundles[0].mount(folder)

    def add_provider(self, provider: ResourceProvider, prefix: str | None = None) -> ResourceBundle:
        """Register provider, or return its bundle if it's already registered."""
        if prefix is None:
            prefix = provider.default_prefix()
        for bundle in self._bundles:
            if bundle.matches(provider, prefix):
                return bundle
        bundle = ResourceBundle(provider, prefix, self._decoder)
        self._bundles.append(bundle)
        return bundle

    def add_provider_by_name(self, name: str, folder: str = "",
                             prefix: str | None = None) -> ResourceBundle | None:
        """Load a provider by name, register it and mount folder on it.

        Returns None if the provider can't be loaded, unless
        ignore_missing_providers is set; then the home bundle is returned
        as is, without mounting folder, for deployments where the
        provider's resources were merged into the home provider.
        """
        try:
            provider = self._loader(name)
        except ProviderNotFoundError:
            if not self.ignore_missing_providers:
                logger.debug("Provider %s not found", name)
                return None
            logger.debug("Provider %s not found, using the home provider", name)
            return self._bundles[0]
        bundle = self.add_provider(provider, name if prefix is None else prefix)
        return bundle.mount(folder)

    def lookup(self, path: str) -> BinaryIO | None:
        """Open the first match for path, or return None."""
        for bundle in self._bundles:
            stream = bundle.lookup(path)
            if stream is not None:
                return stream
        return None

    open_read = lookup

    def exists(self, path: str) -> bool:
        return any(bundle.exists(path) for bundle in self._bundles)

    def folder_exists(self, path: str) -> bool:
        return any(bundle.folder_exists(path) for bundle in self._bundles)

    def list_names(self, base_name: str = "/") -> list[str]:
        """Concatenate every bundle's names under base_name. Duplicates are kept."""
        names = []
        for bundle in self._bundles:
            names.extend(bundle.list_names(base_name))
        return names

    def read_bytes(self, path: str) -> bytes | None:
        stream = self.lookup(path)
        if stream is None:
            return None
        with stream:
            return stream.read()

    def read(self, path: str, encoding: str = "utf-8-sig", errors: str = "replace") -> str | None:
        """Return the text of path, line endings untouched, or None.

        Undecodable bytes become U+FFFD unless errors says otherwise.
        """
        data = self.read_bytes(path)
        if data is None:
            return None
        return data.decode(encoding, errors)

    def read_normalized(self, path: str, encoding: str = "utf-8-sig",
                        errors: str = "replace") -> str | None:
        """Like read(), with CRLF line endings turned into LF."""
        text = self.read(path, encoding, errors)
        if text is None:
            return None
        return text.replace("\r\n", "\n")
