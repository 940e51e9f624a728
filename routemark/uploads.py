"""
Multipart upload handling for the Upload annotation.

Provides:
- UploadOptions: the options record of one upload field
- UploadedFile: a parsed file part
- read_form: parse a multipart body into ``rev.form`` / ``rev.files``
- multipart_upload: the default upload handler factory
- set_upload_factory / get_upload_factory: swap the factory
"""

from __future__ import annotations

import inspect
import logging
import mimetypes
import os
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from python_multipart import MultipartParser
from python_multipart.multipart import parse_options_header

from .context import RequestEvent
from .faults import UploadFault

logger = logging.getLogger("routemark.uploads")

_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmg]?b?)\s*$", re.IGNORECASE)
_UNITS = {"": 1, "b": 1, "k": 1024, "kb": 1024, "m": 1024 ** 2, "mb": 1024 ** 2, "g": 1024 ** 3, "gb": 1024 ** 3}


@dataclass(frozen=True)
class UploadOptions:
    """
    Options of one upload field.

    Attributes:
        name: Form field name
        max_count: Maximum number of files in the field
        max_size: Maximum size per file, in bytes or as "2mb", "512kb", ...
        accept: Comma separated MIME types, wildcards or extensions
                ("image/*,.pdf")
        callback: Called with every accepted UploadedFile
        dest: Directory accepted files are written to
        required: Reject the request when the field has no file
    """
    name: str
    max_count: Optional[int] = None
    max_size: Optional[Union[int, str]] = None
    accept: Optional[str] = None
    callback: Optional[Callable[["UploadedFile"], Any]] = None
    dest: Optional[str] = None
    required: bool = False


@dataclass
class UploadedFile:
    """A file part of a multipart body."""
    field_name: str
    filename: str
    content_type: str
    data: bytes
    path: Optional[Path] = None

    @property
    def size(self) -> int:
        return len(self.data)


def parse_size(value: Union[int, str, None]) -> Optional[int]:
    """Parse ``"2mb"``-style sizes into bytes."""
    if value is None or isinstance(value, int):
        return value
    match = _SIZE.match(value)
    if match is None:
        raise ValueError(f"Invalid upload size {value!r}")
    number, unit = match.groups()
    return int(float(number) * _UNITS[unit.lower()])


def accepts(accept: Optional[str], upload: UploadedFile) -> bool:
    """Check ``upload`` against an accept list such as ``"image/*,.pdf"``."""
    if not accept:
        return True
    content_type = upload.content_type.split(";")[0].strip().lower()
    suffix = Path(upload.filename).suffix.lower()
    for rule in (part.strip().lower() for part in accept.split(",")):
        if not rule:
            continue
        if rule.startswith("."):
            if suffix == rule:
                return True
        elif rule.endswith("/*"):
            if content_type.startswith(rule[:-1]):
                return True
        elif rule == content_type:
            return True
    return False


def sanitize_filename(filename: str) -> str:
    """Strip path components and unsafe characters from a client filename."""
    filename = os.path.basename(filename).replace("\x00", "")
    for char in '<>:"/\\|?*':
        filename = filename.replace(char, "_")
    name, ext = os.path.splitext(filename)
    filename = name[:200] + ext
    if not filename or filename == ".":
        filename = "unnamed"
    return filename


def read_form(rev: RequestEvent) -> Dict[str, List[UploadedFile]]:
    """
    Parse the multipart body of ``rev`` once.

    Each part keeps its own ``Content-Type`` header; the type is guessed
    from the filename only when a file part has none. Non-multipart
    requests yield no files.
    """
    if rev.files is not None:
        return rev.files

    rev.files = {}
    if not rev.content_type.lower().startswith("multipart/"):
        return rev.files

    _, params = parse_options_header(rev.content_type)
    boundary = params.get(b"boundary")
    if not boundary:
        raise UploadFault("*", "no boundary in multipart Content-Type")

    part = {"headers": {}, "field": bytearray(), "value": bytearray(), "data": bytearray()}

    def on_part_begin():
        part["headers"] = {}
        part["data"] = bytearray()

    def on_header_field(data: bytes, start: int, end: int):
        part["field"].extend(data[start:end])

    def on_header_value(data: bytes, start: int, end: int):
        part["value"].extend(data[start:end])

    def on_header_end():
        if part["field"]:
            name = part["field"].decode("latin-1").lower()
            part["headers"][name] = part["value"].decode("utf-8", errors="replace")
        part["field"] = bytearray()
        part["value"] = bytearray()

    def on_part_data(data: bytes, start: int, end: int):
        part["data"].extend(data[start:end])

    def on_part_end():
        _, options = parse_options_header(part["headers"].get("content-disposition", ""))
        name = options.get(b"name")
        if not name:
            return
        name = name.decode("utf-8")
        filename = options.get(b"filename")

        if filename is None:
            value = part["data"].decode("utf-8", errors="replace")
            rev.form.setdefault(name, []).append(value)
            return

        filename = filename.decode("utf-8")
        content_type = (
            part["headers"].get("content-type")
            or mimetypes.guess_type(filename)[0]
            or "application/octet-stream"
        )
        rev.files.setdefault(name, []).append(
            UploadedFile(name, filename, content_type, bytes(part["data"]))
        )

    parser = MultipartParser(boundary, {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
    })
    try:
        parser.write(rev.body)
        parser.finalize()
    except Exception as exc:
        raise UploadFault("*", f"malformed multipart body: {exc}") from exc
    return rev.files


def multipart_upload(options: UploadOptions) -> Callable[..., Any]:
    """
    Build the handler enforcing ``options`` on a request.

    Rejections raise UploadFault: 400 for missing or too many files,
    413 for oversized files, 415 for files outside ``accept``.
    """
    max_size = parse_size(options.max_size)

    async def upload(rev: RequestEvent, next):
        files = read_form(rev).get(options.name, [])

        if not files:
            if options.required:
                raise UploadFault(options.name, "a file is required")
            return await next()

        if options.max_count is not None and len(files) > options.max_count:
            raise UploadFault(
                options.name, f"at most {options.max_count} files allowed",
                count=len(files),
            )

        for file in files:
            if max_size is not None and file.size > max_size:
                raise UploadFault(
                    options.name, f"'{file.filename}' exceeds {max_size} bytes",
                    status=413, size=file.size,
                )
            if not accepts(options.accept, file):
                raise UploadFault(
                    options.name, f"'{file.filename}' is not one of {options.accept}",
                    status=415, content_type=file.content_type,
                )

        if options.dest:
            dest = Path(options.dest)
            dest.mkdir(parents=True, exist_ok=True)
            for file in files:
                file.path = dest / f"{uuid.uuid4().hex}_{sanitize_filename(file.filename)}"
                file.path.write_bytes(file.data)
                logger.debug("Stored upload %s -> %s", file.filename, file.path)

        if options.callback is not None:
            for file in files:
                result = options.callback(file)
                if inspect.isawaitable(result):
                    await result

        return await next()

    upload.__name__ = f"upload_{options.name}"
    return upload


UploadFactory = Callable[[UploadOptions], Callable[..., Any]]

_factory: UploadFactory = multipart_upload


def set_upload_factory(factory: UploadFactory) -> UploadFactory:
    """Install the factory used by Upload(); returns the previous one."""
    global _factory
    previous = _factory
    _factory = factory
    return previous


def get_upload_factory() -> UploadFactory:
    return _factory
