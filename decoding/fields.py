"""Field-level helpers shared by the decoders.

Leaf validation (types, unsigned bounds, enum text, the bit range) is done
by pydantic. This module runs a model against a JSON fragment and turns the
resulting ValidationError into the matching DecodeError, with the failing
field's full dotted path.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from schemas.errors import (
    DecodeError,
    DiscriminatorMismatchError,
    InconsistentPruningStateError,
    MissingFieldError,
    RangeError,
    TypeMismatchError,
)

M = TypeVar("M", bound=BaseModel)


def join_path(path: str, *parts: Any) -> str:
    """Append parts to a dotted field path."""
    segments = [path] if path else []
    segments.extend(str(part) for part in parts)
    return ".".join(segments)


def expect_object(value: Any, path: str) -> dict:
    """Return value if it is a JSON object, else raise TypeMismatchError."""
    if not isinstance(value, dict):
        raise TypeMismatchError(path, f"expected an object, got {_json_type(value)}")
    return value


def expect_discriminator(obj: dict, expected: str, path: str) -> None:
    """Require obj["type"] to be present and equal to expected.

    Raises:
        MissingFieldError: `type` is absent.
        TypeMismatchError: `type` is not a string.
        DiscriminatorMismatchError: `type` names a different activation kind.
    """
    type_path = join_path(path, "type")
    if "type" not in obj:
        raise MissingFieldError(type_path)
    got = obj["type"]
    if not isinstance(got, str):
        raise TypeMismatchError(type_path, f"expected a string, got {_json_type(got)}")
    if got != expected:
        raise DiscriminatorMismatchError(type_path, expected=expected, got=got)


def validate_model(model: type[M], data: Any, path: str) -> M:
    """Validate data against model, translating failures to DecodeError.

    Only the first pydantic error is reported; decoding stops at the first
    bad field anyway.
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise translate_validation_error(exc, path) from exc


def translate_validation_error(exc: ValidationError, path: str) -> DecodeError:
    """Map the first error in a pydantic ValidationError to a DecodeError."""
    error = exc.errors(include_url=False)[0]
    field_path = join_path(path, *error["loc"])
    error_type = error["type"]
    ctx = error.get("ctx") or {}

    if error_type == "missing":
        return MissingFieldError(field_path)
    if error_type == "bit_range":
        return RangeError(field="bit", max=ctx["max"], got=ctx["got"], path=field_path)
    if error_type == "discriminator_mismatch":
        return DiscriminatorMismatchError(
            join_path(field_path, "type"), expected=ctx["expected"], got=ctx["got"]
        )
    if error_type == "inconsistent_pruning_state":
        return InconsistentPruningStateError(join_path(field_path, "pruned"), error["msg"])
    return TypeMismatchError(field_path, error["msg"])


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return type(value).__name__
