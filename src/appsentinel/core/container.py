"""Read-only access to the compressed container behind an APK or IPA."""

from __future__ import annotations

import codecs
import io
import logging
import zlib
from types import TracebackType
from zipfile import BadZipFile, ZipFile

from appsentinel.exceptions import ArchiveError, EntryNotFoundError

logger = logging.getLogger(__name__)

UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


class Container:
    """An opened package archive.

    Entries are decompressed only when :meth:`read_entry` is called for
    them. The entry order is the archive's central directory order.
    """

    def __init__(self, archive: ZipFile):
        self._archive = archive
        # Duplicate names keep their first position
        names = dict.fromkeys(
            info.filename for info in archive.infolist() if not info.is_dir()
        )
        self._entries = tuple(names)
        self._entry_set = frozenset(names)

    def __enter__(self) -> Container:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying archive."""
        self._archive.close()

    def list_entries(self) -> tuple[str, ...]:
        """Return all file entry paths in archive order."""
        return self._entries

    def __contains__(self, path: object) -> bool:
        return path in self._entry_set

    def read_entry(self, path: str) -> bytes:
        """Decompress and return the bytes of a single entry.

        Raises:
            EntryNotFoundError: If the path is not in the archive.
            ArchiveError: If the entry data is corrupt or unsupported.
        """
        if path not in self._entry_set:
            raise EntryNotFoundError(path)

        logger.debug("Reading entry %s", path)
        try:
            return self._archive.read(path)
        except (
            BadZipFile,
            zlib.error,
            NotImplementedError,
            EOFError,
            RuntimeError,
        ) as e:
            # RuntimeError: entry flagged as encrypted
            raise ArchiveError(f"Cannot read archive entry {path}: {e}") from e

    def read_text(self, path: str) -> str:
        """Read an entry and decode it as UTF-8 (or UTF-16 when a BOM says so).

        Raises:
            UnicodeDecodeError: If the entry is not valid text.
        """
        data = self.read_entry(path)
        if data.startswith(UTF16_BOMS):
            return data.decode("utf-16")
        return data.decode("utf-8-sig")


def open_container(data: bytes) -> Container:
    """Open package bytes as a ZIP container.

    Raises:
        ArchiveError: If the data is not a well-formed ZIP archive.
    """
    try:
        archive = ZipFile(io.BytesIO(data), "r")
    except BadZipFile as e:
        raise ArchiveError(f"Invalid package (not a valid ZIP file): {e}") from e
    except (OSError, ValueError, EOFError) as e:
        raise ArchiveError(f"Failed to read package: {e}") from e

    return Container(archive)
