"""Tests for multipart field encoding and media-type lookup."""

from __future__ import annotations

from email.parser import BytesParser
from email.policy import default
from pathlib import Path

import httpx
import pytest

from metis.exceptions import EncodingError
from metis.multipart import (
    OCTET_STREAM,
    FilePart,
    JsonField,
    TextField,
    coerce_field,
    encode_multipart,
    resolve_media_type,
)
from metis.types import ChunkingMeta


def _decode_form(parts: list) -> list[tuple[str, str | None, str | None, bytes]]:
    """Parse an encoded body the way a form-data server would."""
    request = httpx.Request("POST", "https://metis.test/upload", files=parts)
    body = request.read()
    raw = b"Content-Type: " + request.headers["content-type"].encode() + b"\r\n\r\n" + body
    message = BytesParser(policy=default).parsebytes(raw)
    decoded = []
    for part in message.iter_parts():
        decoded.append(
            (
                part.get_param("name", header="content-disposition"),
                part.get_filename(),
                part.get("Content-Type"),
                part.get_payload(decode=True),
            )
        )
    return decoded


class TestResolveMediaType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("photo.jpg", "image/jpeg"),
            ("photo.JPEG", "image/jpeg"),
            ("icon.png", "image/png"),
            ("anim.gif", "image/gif"),
            ("report.pdf", "application/pdf"),
            ("notes.txt", "text/plain"),
            ("index.htm", "text/html"),
            ("page.html", "text/html"),
            ("data.json", "application/json"),
            ("feed.xml", "application/xml"),
            ("song.mp3", "audio/mpeg"),
            ("clip.mp4", "video/mp4"),
        ],
    )
    def test_known_extensions(self, name: str, expected: str) -> None:
        assert resolve_media_type(name) == expected

    @pytest.mark.parametrize("name", ["archive.tar.zst", "Makefile", "trailing.", ""])
    def test_unknown_or_missing_extension_falls_back(self, name: str) -> None:
        assert resolve_media_type(name) == OCTET_STREAM


class TestCoerceField:
    def test_str_is_text(self) -> None:
        assert coerce_field("hello") == TextField("hello")

    def test_path_is_read_as_file(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF-1.7")
        field = coerce_field(path)
        assert isinstance(field, FilePart)
        assert field.filename == "doc.pdf"
        assert field.content == b"%PDF-1.7"
        assert field.media_type == "application/pdf"

    def test_other_values_are_json(self) -> None:
        assert coerce_field({"a": 1}) == JsonField({"a": 1})

    def test_explicit_field_passes_through(self) -> None:
        field = FilePart("x.bin", b"\x00", "application/x-custom")
        assert coerce_field(field) is field


class TestEncodeMultipart:
    def test_text_and_file_round_trip(self) -> None:
        parts = encode_multipart(
            {
                "name": TextField("my corpus"),
                "files[0]": FilePart("notes.txt", b"line one, line two"),
            }
        )

        decoded = _decode_form(parts)

        assert decoded[0] == ("name", None, None, b"my corpus")
        assert decoded[1] == ("files[0]", "notes.txt", "text/plain", b"line one, line two")

    def test_preserves_insertion_order(self) -> None:
        parts = encode_multipart(
            {
                "files[0]": FilePart("a.png", b"a"),
                "ocr": TextField("true"),
                "files[1]": FilePart("b.png", b"b"),
            }
        )
        names = [name for name, _, _, _ in _decode_form(parts)]
        assert names == ["files[0]", "ocr", "files[1]"]

    def test_structured_values_are_json_text(self) -> None:
        parts = encode_multipart(
            {
                "chunking": JsonField(ChunkingMeta(provider="recursive", chunk_size=512)),
                "labels": JsonField(["a", "b"]),
            }
        )
        decoded = _decode_form(parts)
        assert decoded[0] == ("chunking", None, None, b'{"provider":"recursive","chunkSize":512}')
        assert decoded[1] == ("labels", None, None, b'["a", "b"]')

    def test_explicit_content_type_wins(self) -> None:
        parts = encode_multipart({"blob": FilePart("a.txt", b"x", "application/x-custom")})
        assert _decode_form(parts)[0][2] == "application/x-custom"

    def test_unreadable_file_raises_encoding_error(self, tmp_path: Path) -> None:
        with pytest.raises(EncodingError, match="Cannot read file"):
            encode_multipart({"files[0]": tmp_path / "missing.pdf"})

    def test_unserializable_value_raises_encoding_error(self) -> None:
        with pytest.raises(EncodingError, match="JSON"):
            encode_multipart({"meta": JsonField(object())})

    def test_empty_mapping_raises_encoding_error(self) -> None:
        with pytest.raises(EncodingError, match="at least one part"):
            encode_multipart({})
