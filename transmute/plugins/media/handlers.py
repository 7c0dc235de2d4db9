"""
Resolution of media input (a path, URL, base64 string, ...) into Image and
Document values before a transformation is dispatched.
"""

import logging
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Type, Union

from pydantic import Field

from transmute.core.exceptions import InvalidInputError
from transmute.core.media import Document, Image, Media, is_valid_base64
from transmute.utils.pydantic_utils import TransmuteBaseConfig


class InputType(str, Enum):
    LOCAL_PATH = "local_path"
    BASE64 = "base64"
    URL = "url"
    FILE_ID = "file_id"
    RAW_CONTENT = "raw_content"
    TEXT = "text"


class MediaKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"


class MediaOptions(TransmuteBaseConfig):
    type: MediaKind = MediaKind.IMAGE
    input_type: InputType = InputType.LOCAL_PATH
    mime_type: Optional[str] = None
    title: Optional[str] = Field(default=None, description="Document title")


class MediaHandler:
    """Turns one media input into a Media value; errors raise InvalidInputError."""

    media_class: ClassVar[Type[Media]] = Media
    supported_input_types: ClassVar[FrozenSet[InputType]] = frozenset()

    def __init__(self, source: Union[str, bytes], options: Optional[MediaOptions] = None):
        self.source = source
        self.options = options or MediaOptions()

        if self.options.input_type not in self.supported_input_types:
            raise InvalidInputError(
                f"Unsupported input type for {self.media_class.kind}: {self.options.input_type.value}",
                context={"input_type": self.options.input_type.value},
            )
        if self.options.input_type == InputType.RAW_CONTENT and not self.options.mime_type:
            raise InvalidInputError("mime_type is required for raw_content input")

    def extra_fields(self) -> Dict[str, Any]:
        return {}

    def handle(self) -> Media:
        input_type = self.options.input_type
        try:
            return self._resolve(input_type)
        except InvalidInputError:
            raise
        except Exception as e:
            logging.warning(f"Failed to process {self.media_class.kind} input: {e}")
            raise InvalidInputError(
                f"Failed to process {self.media_class.kind}: {e}",
                context={"input_type": input_type.value},
            ) from e

    def _resolve(self, input_type: InputType) -> Media:
        cls = self.media_class
        mime_type = self.options.mime_type
        extra = self.extra_fields()

        if input_type == InputType.RAW_CONTENT:
            raw = self.source if isinstance(self.source, bytes) else self.source.encode("utf-8")
            return cls.from_raw_content(raw, mime_type, **extra)

        source = self.source.decode("utf-8") if isinstance(self.source, bytes) else self.source

        if input_type == InputType.LOCAL_PATH:
            if mime_type:
                extra["mime_type"] = mime_type
            return cls.from_local_path(source, **extra)
        if input_type == InputType.BASE64:
            if not is_valid_base64(source):
                raise InvalidInputError("Invalid base64 string provided")
            return cls.from_base64(source, mime_type, **extra)
        if input_type == InputType.URL:
            return cls.from_url(source, mime_type, **extra)
        if input_type == InputType.FILE_ID:
            return cls.from_file_id(source, mime_type=mime_type, **extra)
        if input_type == InputType.TEXT:
            return Document.from_text(source, title=self.options.title)

        raise InvalidInputError(f"Unsupported input type: {input_type.value}")


class ImageHandler(MediaHandler):
    media_class = Image
    supported_input_types = frozenset(
        {
            InputType.LOCAL_PATH,
            InputType.BASE64,
            InputType.URL,
            InputType.FILE_ID,
            InputType.RAW_CONTENT,
        }
    )


class DocumentHandler(MediaHandler):
    media_class = Document
    supported_input_types = frozenset(InputType)

    def extra_fields(self) -> Dict[str, Any]:
        return {"title": self.options.title}


HANDLERS: Dict[MediaKind, Type[MediaHandler]] = {
    MediaKind.IMAGE: ImageHandler,
    MediaKind.DOCUMENT: DocumentHandler,
}


def resolve_media(source: Union[str, bytes], options: Optional[MediaOptions] = None) -> Media:
    options = options or MediaOptions()
    return HANDLERS[options.type](source, options).handle()
