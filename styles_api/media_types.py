"""
Media type parsing and matching.

Small value type for HTTP media types plus Accept header parsing.

Matching rules:
    - "*/*" matches everything
    - "type/*" matches any subtype of type
    - "application/*+json" matches any "application/x+json"
    - parameters never take part in matching

Accept headers keep the client's listing order. Quality values are parsed
and kept as the "q" parameter but do not reorder the list.

Exports:
    MediaType: Immutable (type, subtype, parameters) value
    InvalidMediaTypeError: Raised for unparseable media types
    parse_accept_header: Ordered list of MediaType from an Accept header
    ALL: The "*/*" media type
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

WILDCARD = "*"


class InvalidMediaTypeError(ValueError):
    """Media type text could not be parsed."""


def _split_params(text: str) -> List[str]:
    """Split on ';' outside double quotes."""
    parts = []
    current = []
    in_quotes = False
    for ch in text:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == ";" and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


@dataclass(frozen=True)
class MediaType:
    """
    HTTP media type.

    Parameters are stored as a frozenset of (key, value) pairs so equality
    and hashing do not depend on parameter order. Keys are lower-cased.
    """

    type: str
    subtype: str
    params: FrozenSet[Tuple[str, str]] = field(default_factory=frozenset)

    @classmethod
    def of(cls, type_: str, subtype: str, **params: str) -> "MediaType":
        return cls(
            type_.lower(),
            subtype.lower(),
            frozenset((k.lower(), v) for k, v in params.items())
        )

    @classmethod
    def parse(cls, text: Optional[str]) -> "MediaType":
        """
        Parse "type/subtype; key=value; ..." into a MediaType.

        Raises:
            InvalidMediaTypeError: If text is empty or malformed
        """
        if text is None or not text.strip():
            raise InvalidMediaTypeError("Media type must not be empty")

        pieces = _split_params(text.strip())
        full_type = pieces[0].strip()
        if full_type == WILDCARD:
            full_type = "*/*"

        if full_type.count("/") != 1:
            raise InvalidMediaTypeError(f"Invalid media type '{text}': expected type/subtype")
        type_, subtype = (p.strip().lower() for p in full_type.split("/"))
        if not type_ or not subtype:
            raise InvalidMediaTypeError(f"Invalid media type '{text}': empty type or subtype")
        if type_ == WILDCARD and subtype != WILDCARD:
            raise InvalidMediaTypeError(f"Invalid media type '{text}': wildcard type requires wildcard subtype")

        params = []
        for raw in pieces[1:]:
            raw = raw.strip()
            if not raw:
                continue
            if "=" not in raw:
                raise InvalidMediaTypeError(f"Invalid parameter '{raw}' in media type '{text}'")
            key, value = raw.split("=", 1)
            key = key.strip().lower()
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]
            if not key:
                raise InvalidMediaTypeError(f"Invalid parameter '{raw}' in media type '{text}'")
            params.append((key, value))

        return cls(type_, subtype, frozenset(params))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> Dict[str, str]:
        return dict(self.params)

    @property
    def mime_type(self) -> str:
        """type/subtype without parameters."""
        return f"{self.type}/{self.subtype}"

    @property
    def charset(self) -> Optional[str]:
        return self.parameters.get("charset")

    @property
    def is_wildcard_type(self) -> bool:
        return self.type == WILDCARD

    @property
    def is_wildcard_subtype(self) -> bool:
        """True for "*" and for structured wildcards like "*+json"."""
        return self.subtype == WILDCARD or self.subtype.startswith("*+")

    @property
    def suffix(self) -> Optional[str]:
        if "+" in self.subtype:
            return self.subtype.rsplit("+", 1)[1]
        return None

    def without_params(self) -> "MediaType":
        return MediaType(self.type, self.subtype)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def includes(self, other: "MediaType") -> bool:
        """True if every media type matched by other is matched by self."""
        if self.is_wildcard_type:
            return True
        if self.type != other.type:
            return False
        if self.subtype == other.subtype or self.subtype == WILDCARD:
            return True
        if self.subtype.startswith("*+"):
            return other.suffix == self.subtype[2:]
        return False

    def is_compatible_with(self, other: "MediaType") -> bool:
        """Symmetric wildcard-aware match."""
        return self.includes(other) or other.includes(self)

    def __str__(self) -> str:
        text = self.mime_type
        for key, value in sorted(self.params):
            text += f";{key}={value}"
        return text


ALL = MediaType("*", "*")


def parse_accept_header(value: Optional[str]) -> List[MediaType]:
    """
    Parse an Accept header keeping the client's order.

    Args:
        value: Raw header value, may be None or empty

    Returns:
        Media types in listing order ([] when no header)

    Raises:
        InvalidMediaTypeError: If any entry is malformed
    """
    if not value or not value.strip():
        return []

    media_types = []
    entry = []
    in_quotes = False
    for ch in value:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == "," and not in_quotes:
            media_types.append("".join(entry))
            entry = []
        else:
            entry.append(ch)
    media_types.append("".join(entry))

    return [MediaType.parse(text) for text in media_types if text.strip()]


def is_accept_all(media_types: List[MediaType]) -> bool:
    """True when the client expressed no preference."""
    if not media_types:
        return True
    return len(media_types) == 1 and media_types[0].without_params() == ALL
