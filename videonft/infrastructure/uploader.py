"""Sources of video content for upload.

A :class:`FileSource` decides where bytes come from (a path on disk, a file
picked interactively, or an already open stream) so the pipeline never has to
care about the runtime environment.
"""
import io
import mimetypes
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Tuple
from videonft.domain.errors import ValidationError

DEFAULT_MIME_TYPE = "application/octet-stream"


class FileSource:
    """Base class: ``open()`` yields ``(stream, size)`` and releases the stream afterwards."""

    name: str = ""
    mime_type: str = DEFAULT_MIME_TYPE

    def open(self):
        raise NotImplementedError


class PathOnDisk(FileSource):
    def __init__(self, path: Path, mime_type: Optional[str] = None):
        self.path = Path(path)
        if not self.path.is_file():
            raise ValidationError(f"File {self.path} does not exist")
        self.name = self.path.name
        self.mime_type = mime_type or mimetypes.guess_type(self.path.name)[0] or DEFAULT_MIME_TYPE

    @contextmanager
    def open(self) -> Iterator[Tuple[BinaryIO, Optional[int]]]:
        with open(self.path, "rb") as fh:
            yield fh, os.fstat(fh.fileno()).st_size


class PickedFile(FileSource):
    """Delegates the choice of file to ``picker`` (e.g. an interactive prompt)."""

    def __init__(self, picker: Callable[[], Path], mime_type: Optional[str] = None):
        self._picker = picker
        self._mime_type = mime_type
        self._resolved: Optional[PathOnDisk] = None

    def resolve(self) -> PathOnDisk:
        if self._resolved is None:
            picked = self._picker()
            if not picked:
                raise ValidationError("Failed to open file: no file was picked")
            self._resolved = PathOnDisk(picked, self._mime_type)
        return self._resolved

    @property
    def name(self) -> str:
        return self.resolve().name

    @property
    def mime_type(self) -> str:
        return self.resolve().mime_type

    @contextmanager
    def open(self) -> Iterator[Tuple[BinaryIO, Optional[int]]]:
        with self.resolve().open() as opened:
            yield opened


class StreamSource(FileSource):
    """An already open binary stream. The caller keeps ownership; it is not closed here."""

    def __init__(self, stream: BinaryIO, name: str = "", mime_type: str = DEFAULT_MIME_TYPE, size: Optional[int] = None):
        self.stream = stream
        self.name = name
        self.mime_type = mime_type
        self.size = size if size is not None else self._guess_size(stream)

    @staticmethod
    def _guess_size(stream: BinaryIO) -> Optional[int]:
        try:
            return os.fstat(stream.fileno()).st_size
        except (AttributeError, OSError, io.UnsupportedOperation):
            pass
        if isinstance(stream, io.BytesIO):
            return len(stream.getbuffer())
        return None

    @contextmanager
    def open(self) -> Iterator[Tuple[BinaryIO, Optional[int]]]:
        yield self.stream, self.size


def as_file_source(value) -> FileSource:
    if isinstance(value, FileSource):
        return value
    if isinstance(value, (str, os.PathLike)):
        return PathOnDisk(Path(value))
    if hasattr(value, "read"):
        return StreamSource(value, name=getattr(value, "name", "") or "")
    raise ValidationError(f"Unsupported file source: {value!r}")
