"""Uploaded image and body measurement models."""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def sniff_mime_type(data: bytes, filename: str = "") -> str:
    """Detect an image MIME type from magic bytes, falling back to the extension."""
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    suffix = Path(filename).suffix.lower()
    return EXTENSION_MIME_TYPES.get(suffix, "application/octet-stream")


@dataclass
class UploadedImage:
    """An image picked by the user, owned by the caller until a request is built."""
    data: bytes
    name: str
    mime_type: str
    preview_path: Path | None = field(default=None, repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> "UploadedImage":
        """Load an image file, sniffing its MIME type unless one is given."""
        data = path.read_bytes()
        return cls(
            data=data,
            name=path.name,
            mime_type=mime_type or sniff_mime_type(data, path.name),
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        name: str,
        mime_type: str | None = None,
    ) -> "UploadedImage":
        return cls(data=data, name=name, mime_type=mime_type or sniff_mime_type(data, name))

    def open_preview(self) -> Path:
        """Write the image to a temporary file for local preview.

        The file lives until ``release()`` is called.
        """
        if self.preview_path is None or not self.preview_path.exists():
            suffix = Path(self.name).suffix or ".img"
            fd, tmp_name = tempfile.mkstemp(prefix="styles_preview_", suffix=suffix)
            with os.fdopen(fd, "wb") as handle:
                handle.write(self.data)
            self.preview_path = Path(tmp_name)
        return self.preview_path

    def release(self) -> None:
        """Revoke the preview handle."""
        if self.preview_path is not None:
            self.preview_path.unlink(missing_ok=True)
            self.preview_path = None


BodyType = Literal["slim", "average", "athletic", "plus-size"]
Gender = Literal["male", "female", "other"]


class BodyData(BaseModel):
    """Optional body measurements supplied alongside the person photo."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    height: str | None = None
    weight: str | None = None
    body_type: BodyType | None = Field(default=None, alias="bodyType")
    gender: Gender | None = None
    age: str | None = None

    def is_empty(self) -> bool:
        return not any(
            (self.height, self.weight, self.body_type, self.gender, self.age)
        )
