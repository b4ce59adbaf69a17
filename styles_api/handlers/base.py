"""
Format handler value type.

A FormatHandler describes one style serialization: which versions it
supports, the MIME type of each version, the file extension, and the
functions that encode, validate and (optionally) parse documents.

Handlers are plain values built once at startup and shared read-only.
A handler without a parser is output-only: styles can be served in it
but not stored in it.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import UnsupportedMediaTypeError

Encoder = Callable[[Dict[str, Any], str], bytes]
Validator = Callable[[str, str], List[str]]
Parser = Callable[[str, str], Dict[str, Any]]


@dataclass(frozen=True, eq=False)
class FormatHandler:
    """
    One style format.

    Attributes:
        format: Canonical format name (identity)
        versions: Supported versions, first is the default
        mime_types: version -> MIME type
        extension: File extension without the dot
        encoder: (canonical style, version) -> bytes
        validator: (document text, version) -> list of errors
        parser: (document text, version) -> canonical style, or None
        title: Display name
        specification: Link to the format specification
    """

    format: str
    versions: Tuple[str, ...]
    mime_types: Dict[str, str]
    extension: str
    encoder: Encoder = field(repr=False)
    validator: Validator = field(repr=False)
    parser: Optional[Parser] = field(default=None, repr=False)
    title: str = ""
    specification: Optional[str] = None

    def __post_init__(self):
        if not self.versions:
            raise ValueError(f"Format handler '{self.format}' declares no versions")
        missing = [v for v in self.versions if v not in self.mime_types]
        if missing:
            raise ValueError(
                f"Format handler '{self.format}' has no MIME type for versions {missing}"
            )

    @property
    def default_version(self) -> str:
        return self.versions[0]

    @property
    def is_readable(self) -> bool:
        return self.parser is not None

    def mime_type(self, version: Optional[str] = None) -> str:
        return self.mime_types[version or self.default_version]

    def version_for_mime_type(self, mime_type: str) -> str:
        """
        Detect the format version a MIME type stands for.

        Raises:
            UnsupportedMediaTypeError: If this handler does not declare mime_type
        """
        for version in self.versions:
            if self.mime_types[version] == mime_type:
                return version
        raise UnsupportedMediaTypeError(
            f"Format '{self.format}' has no version for media type {mime_type}"
        )

    def encode(self, style: Dict[str, Any], version: Optional[str] = None) -> bytes:
        return self.encoder(style, version or self.default_version)

    def validate(self, content: str, version: Optional[str] = None) -> List[str]:
        return self.validator(content, version or self.default_version)

    def parse(self, content: str, version: Optional[str] = None) -> Dict[str, Any]:
        if self.parser is None:
            raise UnsupportedMediaTypeError(
                f"Format '{self.format}' is output-only and cannot be read"
            )
        return self.parser(content, version or self.default_version)
