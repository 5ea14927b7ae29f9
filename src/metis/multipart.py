"""Multipart form encoding for file and multi-field uploads.

A multipart body is described as an ordered mapping of field name to one of
three field kinds:

* :class:`TextField` -- a plain form value.
* :class:`FilePart` -- file content with a name and a content type.
* :class:`JsonField` -- any JSON-serializable value (dicts, lists, pydantic
  models). The API expects nested objects as JSON text inside a plain form
  field, not as nested parts.

Field order is preserved on the wire. Index-suffixed names such as
``files[0]``, ``files[1]`` tell the server the parts form a list.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from metis.exceptions import EncodingError

OCTET_STREAM = "application/octet-stream"

_MEDIA_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "html": "text/html",
    "htm": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
}


def resolve_media_type(file_name: str) -> str:
    """Map a file name's extension to a content type."""
    _, dot, extension = file_name.rpartition(".")
    if not dot:
        return OCTET_STREAM
    return _MEDIA_TYPES.get(extension.lower(), OCTET_STREAM)


@dataclass(frozen=True)
class TextField:
    value: str


@dataclass(frozen=True)
class FilePart:
    """File content to upload. ``content_type`` defaults to a lookup on ``filename``."""

    filename: str
    content: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> FilePart:
        """Read *path* eagerly; an unreadable file raises :class:`EncodingError`."""
        file_path = Path(path)
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            raise EncodingError(f"Cannot read file {file_path}: {exc}") from exc
        return cls(filename=file_path.name, content=content)

    @property
    def media_type(self) -> str:
        return self.content_type or resolve_media_type(self.filename)


@dataclass(frozen=True)
class JsonField:
    value: Any


MultipartField = Union[TextField, FilePart, JsonField]

# httpx ``files=`` entry: (field name, (filename, content, content type)).
EncodedPart = tuple[str, tuple[Union[str, None], bytes, Union[str, None]]]


def coerce_field(value: Any) -> MultipartField:
    """Wrap a loose value into a field kind.

    ``str`` is text, ``os.PathLike`` is a file to read, anything else is JSON.
    """
    if isinstance(value, (TextField, FilePart, JsonField)):
        return value
    if isinstance(value, str):
        return TextField(value)
    if isinstance(value, os.PathLike):
        return FilePart.from_path(value)
    return JsonField(value)


def _to_json(value: Any) -> str:
    try:
        if isinstance(value, BaseModel):
            return value.model_dump_json(by_alias=True, exclude_none=True)
        return json.dumps(value, default=to_jsonable_python)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Cannot serialize multipart value to JSON: {exc}") from exc


def _encode_field(name: str, field: MultipartField) -> EncodedPart:
    if isinstance(field, TextField):
        return (name, (None, field.value.encode("utf-8"), None))
    if isinstance(field, FilePart):
        return (name, (field.filename, field.content, field.media_type))
    if isinstance(field, JsonField):
        return (name, (None, _to_json(field.value).encode("utf-8"), None))
    raise EncodingError(f"Unsupported multipart field for {name!r}: {type(field).__name__}")


def encode_multipart(parts: Mapping[str, Any]) -> list[EncodedPart]:
    """Encode *parts* into an ordered ``files=`` list for httpx.

    Either every part encodes or :class:`EncodingError` is raised.
    """
    if not parts:
        raise EncodingError("Multipart body must have at least one part")
    return [_encode_field(name, coerce_field(value)) for name, value in parts.items()]
