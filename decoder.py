"""Stream decoders applied to raw resource streams before they reach the caller."""

import gzip
import io
from typing import BinaryIO, Callable


class StreamDecoder:
    """Transform one opened stream into another."""

    def decode(self, stream: BinaryIO) -> BinaryIO:
        raise NotImplementedError


class IdentityDecoder(StreamDecoder):
    """Pass the raw stream through unchanged. This is the default."""

    def decode(self, stream: BinaryIO) -> BinaryIO:
        return stream


class TransformDecoder(StreamDecoder):
    """Apply a bytes -> bytes function to the whole stream.

    The raw stream is read to the end and closed; the caller gets an
    in-memory stream over the transformed data.
    """

    def __init__(self, func: Callable[[bytes], bytes]):
        self._func = func

    def decode(self, stream: BinaryIO) -> BinaryIO:
        with stream:
            data = stream.read()
        return io.BytesIO(self._func(data))


class GzipDecoder(TransformDecoder):
    """Decompress resources that were stored gzipped."""

    def __init__(self):
        super().__init__(gzip.decompress)
