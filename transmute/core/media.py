"""
Media content (images and documents) passed to transformers, and its
transport-safe encoding for queued jobs.
"""

import base64 as b64
import binascii
import mimetypes
import os
from typing import Any, ClassVar, Dict, Optional

import requests  # type: ignore
from pydantic import BaseModel, ConfigDict

from transmute.core.exceptions import FetchError, InvalidInputError

MEDIA_DOWNLOAD_TIMEOUT_SECONDS = 30


class Media(BaseModel):
    """Media held either inline (base64), by URL, or by provider file id."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "media"

    base64_data: Optional[str] = None
    url: Optional[str] = None
    file_id: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_base64(cls, data: str, mime_type: Optional[str] = None, **kwargs):
        return cls(base64_data=data, mime_type=mime_type, **kwargs)

    @classmethod
    def from_raw_content(cls, raw: bytes, mime_type: Optional[str] = None, **kwargs):
        return cls(
            base64_data=b64.b64encode(raw).decode("ascii"), mime_type=mime_type, **kwargs
        )

    @classmethod
    def from_local_path(cls, path: str, **kwargs):
        if not os.path.isfile(path):
            raise InvalidInputError(f"File not found: {path}", context={"path": path})
        with open(path, "rb") as f:
            raw = f.read()
        mime_type = kwargs.pop("mime_type", None) or mimetypes.guess_type(path)[0]
        return cls.from_raw_content(raw, mime_type, **kwargs)

    @classmethod
    def from_url(cls, url: str, mime_type: Optional[str] = None, **kwargs):
        return cls(url=url, mime_type=mime_type, **kwargs)

    @classmethod
    def from_file_id(cls, file_id: str, **kwargs):
        return cls(file_id=file_id, **kwargs)

    def has_inline_data(self) -> bool:
        return self.base64_data is not None

    def base64(self) -> str:
        """Return the base64 payload, downloading URL media when needed."""
        if self.base64_data is not None:
            return self.base64_data
        if self.url is not None:
            try:
                response = requests.get(self.url, timeout=MEDIA_DOWNLOAD_TIMEOUT_SECONDS)
                response.raise_for_status()
            except requests.RequestException as e:
                raise FetchError(
                    f"Failed to download media from {self.url}: {e}",
                    context={"url": self.url},
                ) from e
            return b64.b64encode(response.content).decode("ascii")
        raise InvalidInputError(f"{self.kind} referenced by file id has no inline content")

    def raw_content(self) -> bytes:
        return b64.b64decode(self.base64())

    def data_url(self) -> str:
        mime_type = self.mime_type or "application/octet-stream"
        return f"data:{mime_type};base64,{self.base64()}"

    def to_message_part(self) -> Dict[str, Any]:
        raise NotImplementedError


class Image(Media):
    kind: ClassVar[str] = "image"

    def to_message_part(self) -> Dict[str, Any]:
        url = self.url if self.url is not None else self.data_url()
        return {"type": "image_url", "image_url": {"url": url}}


class Document(Media):
    kind: ClassVar[str] = "document"

    title: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, title: Optional[str] = None):
        return cls.from_raw_content(text.encode("utf-8"), "text/plain", title=title)

    def to_message_part(self) -> Dict[str, Any]:
        if self.mime_type and self.mime_type.startswith("text/") and self.has_inline_data():
            text = self.raw_content().decode("utf-8")
            if self.title:
                text = f"{self.title}\n\n{text}"
            return {"type": "text", "text": text}

        file_part: Dict[str, Any] = {}
        if self.file_id is not None:
            file_part["file_id"] = self.file_id
        else:
            file_part["file_data"] = self.data_url()
        if self.title:
            file_part["filename"] = self.title
        return {"type": "file", "file": file_part}


MEDIA_TYPES = {Image.kind: Image, Document.kind: Document}


def is_valid_base64(data: str) -> bool:
    try:
        b64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


class QueueableMedia(BaseModel):
    """
    Scalar encoding of a Media value for queue payloads.

    to_media(from_media(m)) reproduces the payload byte for byte and keeps the
    mime type and title.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    base64: str
    mime_type: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_media(cls, media: Media) -> "QueueableMedia":
        return cls(
            type=media.kind,
            base64=media.base64(),
            mime_type=media.mime_type,
            title=media.title if isinstance(media, Document) else None,
        )

    def to_media(self) -> Media:
        if self.type == Image.kind:
            return Image.from_base64(self.base64, self.mime_type)
        if self.type == Document.kind:
            return Document.from_base64(self.base64, self.mime_type, title=self.title)
        raise ValueError(f"Unknown media type: {self.type}")
