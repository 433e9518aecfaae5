from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for errors raised while rebuilding a schema.

    The reflected graph is static, so every one of these is deterministic:
    the run is aborted rather than retried.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        message_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.message_name = message_name

    def locate(
        self,
        field_name: Optional[str] = None,
        message_name: Optional[str] = None,
    ) -> None:
        """Attach the enclosing location unless an inner one is already set."""
        if self.message_name is not None:
            return
        if self.field_name is None:
            self.field_name = field_name
        self.message_name = message_name

    def __str__(self) -> str:
        text = super().__str__()
        if self.field_name and self.message_name:
            return f"{text} (field '{self.field_name}' in message '{self.message_name}')"
        if self.message_name:
            return f"{text} (message '{self.message_name}')"
        if self.field_name:
            return f"{text} (field '{self.field_name}')"
        return text


class UnknownFieldKind(ExtractionError):
    """A field's kind tag is not scalar, message, enum or map."""


class UnknownScalarCode(ExtractionError):
    """A scalar type code has no protobuf keyword."""


class InvalidUnpackedFlag(ExtractionError):
    """A non-repeated field is flagged as unpacked."""


class UnrecognizedStructKind(ExtractionError):
    """A nested struct is neither a message nor an enum."""


class DescriptorLoadError(ExtractionError):
    """A descriptor dump could not be read into a reflected graph."""
