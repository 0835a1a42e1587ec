"""Extraction of ZIP archives such as wheels, using raw deflate decompression."""

from __future__ import annotations

import logging
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

_EOCD_SIGNATURE = struct.pack("<I", 0x06054B50)
_CENTRAL_SIGNATURE = struct.pack("<I", 0x02014B50)
_LOCAL_SIGNATURE = struct.pack("<I", 0x04034B50)
_EOCD_SIZE = 22
_CENTRAL_HEADER_SIZE = 46
_LOCAL_HEADER_SIZE = 30
_UTF8_FLAG = 0x800

_STORED = 0
_DEFLATED = 8


class ZipExtractError(Exception):
    """Raised when an archive cannot be read or extracted."""


@dataclass(frozen=True)
class _Entry:
    name: str
    method: int
    compressed_size: int
    uncompressed_size: int
    local_header_offset: int


def _find_eocd(data: bytes) -> int:
    # Search backwards; offset 0 is never considered, as a record there
    # would leave no room for any file data.
    for offset in range(len(data) - _EOCD_SIZE, 0, -1):
        if data[offset:offset + 4] == _EOCD_SIGNATURE:
            return offset
    raise ZipExtractError("Could not find End of Central Directory record")


def _central_entries(data: bytes) -> Iterator[_Entry]:
    eocd = _find_eocd(data)
    count, cd_size, cd_offset = struct.unpack_from("<HII", data, eocd + 10)
    log.info("Found %d entries in ZIP file", count)

    if cd_offset + cd_size > len(data):
        raise ZipExtractError("Invalid central directory offset or size")

    offset = cd_offset
    for _ in range(count):
        if offset + _CENTRAL_HEADER_SIZE > len(data):
            raise ZipExtractError("Invalid central directory entry offset")
        if data[offset:offset + 4] != _CENTRAL_SIGNATURE:
            raise ZipExtractError("Invalid central directory header signature")

        flags, method = struct.unpack_from("<HH", data, offset + 8)
        compressed, uncompressed, name_len, extra_len, comment_len = struct.unpack_from(
            "<IIHHH", data, offset + 20
        )
        (local_offset,) = struct.unpack_from("<I", data, offset + 42)

        name_start = offset + _CENTRAL_HEADER_SIZE
        if name_start + name_len > len(data):
            raise ZipExtractError("Invalid filename length")
        raw_name = data[name_start:name_start + name_len]
        name = raw_name.decode("utf-8" if flags & _UTF8_FLAG else "cp437")

        yield _Entry(name, method, compressed, uncompressed, local_offset)
        offset = name_start + name_len + extra_len + comment_len


def _entry_data(data: bytes, entry: _Entry) -> bytes:
    local = entry.local_header_offset
    if local + _LOCAL_HEADER_SIZE > len(data):
        raise ZipExtractError("Invalid local header offset")
    if data[local:local + 4] != _LOCAL_SIGNATURE:
        raise ZipExtractError("Invalid local header signature")

    name_len, extra_len = struct.unpack_from("<HH", data, local + 26)
    start = local + _LOCAL_HEADER_SIZE + name_len + extra_len
    if start + entry.compressed_size > len(data):
        raise ZipExtractError("Invalid data offset or compressed size")
    return data[start:start + entry.compressed_size]


def _decompress(entry: _Entry, raw: bytes) -> bytes:
    if entry.method == _STORED:
        if entry.compressed_size != entry.uncompressed_size:
            raise ZipExtractError(f"Size mismatch for stored file: {entry.name}")
        return raw
    if entry.method == _DEFLATED:
        if entry.uncompressed_size == 0:
            return b""
        inflater = zlib.decompressobj(-zlib.MAX_WBITS)
        try:
            output = inflater.decompress(raw) + inflater.flush()
        except zlib.error as exc:
            raise ZipExtractError(f"Failed to decompress file: {entry.name} ({exc})") from exc
        if not inflater.eof or len(output) != entry.uncompressed_size:
            raise ZipExtractError(f"Failed to decompress file: {entry.name}")
        return output
    raise ZipExtractError(
        f"Unsupported compression method: {entry.method} for file: {entry.name}"
    )


def extract_zip(data: bytes, extract_path: PathLike) -> list[Path]:
    """Extract every file of the archive held in ``data`` below ``extract_path``.

    Directory entries are skipped. Returns the paths of the written files.
    """
    root = Path(extract_path)
    written: list[Path] = []
    for entry in _central_entries(data):
        if not entry.name:
            raise ZipExtractError("Empty file name in central directory")
        if entry.name.endswith(("/", "\\")):
            log.info("Skipping directory: %s", entry.name)
            continue

        contents = _decompress(entry, _entry_data(data, entry))
        target = root / entry.name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(contents)
        except OSError as exc:
            raise ZipExtractError(f"Failed to create output file: {target}") from exc
        log.info("Successfully extracted: %s", target)
        written.append(target)
    return written


def extract_zip_file(zip_path: PathLike, extract_path: PathLike) -> list[Path]:
    """Read the archive at ``zip_path`` and extract it below ``extract_path``."""
    try:
        data = Path(zip_path).read_bytes()
    except OSError as exc:
        raise ZipExtractError(f"Failed to open zip file: {zip_path}") from exc
    if not data:
        raise ZipExtractError("Invalid file size")

    Path(extract_path).mkdir(parents=True, exist_ok=True)

    if len(data) < _EOCD_SIZE:
        raise ZipExtractError("File too small to be a valid ZIP")
    if data[:2] != b"PK":
        raise ZipExtractError("Not a valid ZIP file")
    return extract_zip(data, extract_path)


def wheel_to_zip(wheel_path: PathLike) -> Path:
    """Rename a wheel so that its extension is ``.zip``; returns the new path."""
    source = Path(wheel_path)
    target = source.with_suffix(".zip")
    log.info("Renaming wheel file to zip: %s -> %s", source, target)
    try:
        source.rename(target)
    except OSError as exc:
        raise ZipExtractError(f"Failed to rename wheel file to zip: {source}") from exc
    return target