"""Decode error types.

Every failure the decoder can report is a DecodeError subclass. Each one
carries the dotted path of the field that failed (e.g.
"result.softforks.taproot.bit") and a stable machine-readable kind, so
callers can branch on the class, match on the kind, or just print it.

Decoding is all-or-nothing: the first error aborts the whole decode and no
partial document is ever returned alongside it.
"""

from typing import Any


class DecodeError(Exception):
    """Base class for all structured decode failures.

    Attributes:
        path: Dotted path of the offending field. Empty string when the
            failure concerns the raw input as a whole (e.g. invalid JSON).
        kind: Stable snake_case identifier for the error class. Subclasses
            override it; it is what the HTTP surface reports.
        message: Human-readable description, without the path.
    """

    kind = "decode_error"

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation of the error."""
        return {"kind": self.kind, "path": self.path, "message": self.message}


class MalformedEnvelopeError(DecodeError):
    """Input is not JSON, not an object, or has no usable `result` object."""

    kind = "malformed_envelope"


class MissingFieldError(DecodeError):
    kind = "missing_field"

    def __init__(self, path: str, message: str = "required field is missing"):
        super().__init__(path, message)


class TypeMismatchError(DecodeError):
    """A field is present but holds the wrong JSON type or an unknown value."""

    kind = "type_mismatch"


class RangeError(DecodeError):
    """A bounded integer fell outside its allowed range.

    Attributes:
        field: Short name of the bounded field (always "bit" today).
        max: Largest accepted value.
        got: The rejected value.
    """

    kind = "range_error"

    def __init__(self, field: str, max: int, got: int, path: str | None = None):
        super().__init__(
            path if path is not None else field,
            f"{field} must be between 0 and {max}, got {got}",
        )
        self.field = field
        self.max = max
        self.got = got

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(field=self.field, max=self.max, got=self.got)
        return data


class DiscriminatorMismatchError(DecodeError):
    """The `type` field disagrees with the activation kind the fork name implies."""

    kind = "discriminator_mismatch"

    def __init__(self, path: str, expected: str, got: Any):
        super().__init__(path, f"expected type {expected!r}, got {got!r}")
        self.expected = expected
        self.got = got


class ShapeMismatchError(DecodeError):
    """A signal-phase object carries a contradictory set of optional fields."""

    kind = "shape_mismatch"


class UnknownForkNameError(DecodeError):
    kind = "unknown_fork_name"

    def __init__(self, path: str, name: str):
        super().__init__(path, f"unknown soft fork {name!r}")
        self.name = name


class InconsistentPruningStateError(DecodeError):
    """The `pruned` flag disagrees with the presence of pruning fields."""

    kind = "inconsistent_pruning_state"
