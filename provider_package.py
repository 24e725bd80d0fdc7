"""Package provider: the data files shipped inside an importable package."""

import functools
import importlib
import logging
from importlib.resources import files
from importlib.resources.abc import Traversable
from types import ModuleType
from typing import BinaryIO

from keycodec import embed_key
from provider import ResourceProvider, ProviderError, ProviderNotFoundError

logger = logging.getLogger(__name__)

# Source and bytecode are the package itself, not resources bundled with it.
_SKIP_SUFFIXES = (".py", ".pyc", ".pyo")
_SKIP_DIRS = ("__pycache__",)


def _walk(node: Traversable, rel: str = ""):
    """Yield (relative_path, traversable) for every data file below node."""
    for child in sorted(node.iterdir(), key=lambda c: c.name):
        child_rel = rel + child.name
        if child.is_dir():
            if child.name in _SKIP_DIRS:
                continue
            yield from _walk(child, child_rel + "/")
        elif child.is_file() and not child.name.endswith(_SKIP_SUFFIXES):
            yield child_rel, child


class PackageProvider(ResourceProvider):
    """Expose every data file under a package as a flat resource.

    The package name is the namespace, so 'templates/page.html' inside the
    package 'myapp' is stored as 'myapp.templates.page.html'.
    """

    def __init__(self, package: str | ModuleType):
        name = package if isinstance(package, str) else package.__name__
        try:
            root = files(package)
        except (ModuleNotFoundError, TypeError) as e:
            raise ProviderError(f"Cannot read resources of {name}: {e}") from e
        self.namespace = name
        self._files: dict[str, Traversable] = {}
        for rel, node in _walk(root):
            self._files[embed_key(name, rel)] = node

    def keys(self) -> list[str]:
        return list(self._files)

    def open(self, key: str) -> BinaryIO:
        if key not in self._files:
            raise ProviderError(f"No resource {key} in package {self.namespace}")
        try:
            return self._files[key].open("rb")
        except OSError as e:
            raise ProviderError(f"Cannot open {key}: {e}") from e

    def __repr__(self):
        return f"PackageProvider({self.namespace!r})"


@functools.lru_cache(maxsize=None)
def load_provider(name: str) -> ResourceProvider:
    """Import package name and return its provider.

    Loading the same name twice returns the same provider object. Raises
    ProviderNotFoundError when name can't be imported or isn't a package.
    """
    try:
        module = importlib.import_module(name)
    except (ImportError, ValueError) as e:
        raise ProviderNotFoundError(f"No package named {name!r}") from e
    if not hasattr(module, "__path__"):
        raise ProviderNotFoundError(f"{name!r} is a module, not a package")
    logger.debug("Loaded provider package %s", name)
    return PackageProvider(module)
