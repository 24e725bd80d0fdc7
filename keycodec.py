"""Translate hierarchical paths into flat, dotted resource keys."""

import re

# A namespace segment can't start with a digit, so it gets an underscore.
_DIGIT_SEGMENT = re.compile(r"(^|\.)(\d)")


def _strip_leading(path: str) -> str:
    """Drop one leading './' or '.\\', then one leading '/' or '\\'."""
    if path.startswith("./") or path.startswith(".\\"):
        path = path[2:]
    if path.startswith("/") or path.startswith("\\"):
        path = path[1:]
    return path


def _render_directory(directory: str) -> str:
    """Render 'a b/1-x/' as 'a_b._1_x.'."""
    rendered = directory.replace("/", ".").replace(" ", "_").replace("-", "_")
    return _DIGIT_SEGMENT.sub(r"\1_\2", rendered)


def to_key(prefix: str, folder: str, path: str) -> str:
    """Return the storage key for path looked up under a mount folder.

    The directory part is escaped the way resource namespaces are, the
    filename is kept verbatim (a leading digit in it is never escaped).
    """
    requested = (folder + _strip_leading(path)).replace("\\", "/")
    split_point = requested.rfind("/")
    if split_point < 0:
        directory, filename = "", requested
    else:
        directory = requested[:split_point + 1]
        filename = requested[split_point + 1:]
    return f"{prefix}.{_render_directory(directory)}{filename}"


def folder_prefix(prefix: str, folder: str, base_name: str) -> tuple[str, int]:
    """Return (key_prefix, length) shared by every key inside base_name."""
    if not base_name.endswith("/") and not base_name.endswith("\\"):
        base_name += "/"
    key = to_key(prefix, folder, base_name + "*")[:-1]
    return key, len(key)


def embed_key(namespace: str, relative_path: str) -> str:
    """Return the key a provider stores a file under, given its path in the source tree."""
    return to_key(namespace, "", relative_path)
