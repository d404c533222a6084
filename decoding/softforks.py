"""Soft fork decoders.

Turns the `softforks` object of a getblockchaininfo result into a
ForkRegistry. Three layers, each calling the next:

1. decode_fork_registry: walks the name -> object mapping, all-or-nothing.
2. decode_fork_record: looks up the name's fixed activation kind, checks
   the `type` discriminator, and picks the buried or BIP9 arm.
3. decode_signal_phase: picks the BIP9 payload variant by which optional
   fields are present:

       bit + statistics  -> InProgress
       height            -> ActivatedAtHeight
       neither           -> OtherPhase

   `status` does not take part in the choice. Nodes have reported the same
   status with different shapes across versions, so the shape is read from
   the fields themselves. bit together with height, or only one of
   bit/statistics, is a contradiction and raises ShapeMismatchError.
"""

import logging
from typing import Any

from decoding.fields import expect_discriminator, expect_object, join_path, validate_model
from schemas.errors import ShapeMismatchError, UnknownForkNameError
from schemas.softforks import (
    ActivatedAtHeight,
    ForkActivationKind,
    ForkName,
    ForkRecord,
    ForkRegistry,
    HeightTriggered,
    InProgress,
    OtherPhase,
    SignalPhaseBase,
    SignalPhasePayload,
    SignalTriggered,
)

logger = logging.getLogger(__name__)


def decode_signal_phase(value: Any, path: str) -> SignalPhasePayload:
    """Decode a BIP9 deployment object into its payload variant.

    Args:
        value: The JSON object for one BIP9 fork.
        path: Dotted path of value, used in error reports.

    Returns:
        An InProgress, ActivatedAtHeight or OtherPhase instance.

    Raises:
        MissingFieldError, TypeMismatchError: A common field is absent or
            wrongly typed.
        ShapeMismatchError: The optional fields contradict each other.
        RangeError: `bit` is outside [0, 28].
    """
    obj = expect_object(value, path)
    validate_model(SignalPhaseBase, obj, path)

    has_bit = "bit" in obj
    has_statistics = "statistics" in obj
    has_height = "height" in obj

    if has_bit and has_height:
        raise ShapeMismatchError(path, "bit and height cannot both be present")
    if has_bit != has_statistics:
        present, absent = ("bit", "statistics") if has_bit else ("statistics", "bit")
        raise ShapeMismatchError(path, f"{present} is present without {absent}")

    if has_bit:
        variant = InProgress
    elif has_height:
        variant = ActivatedAtHeight
    else:
        variant = OtherPhase

    payload = validate_model(variant, obj, path)
    logger.debug("%s decoded as %s (status=%s).", path, variant.__name__, payload.status.value)
    return payload


def decode_fork_record(name: str, value: Any, path: str) -> ForkRecord:
    """Decode one soft fork entry according to its name's activation kind.

    Raises:
        UnknownForkNameError: name is not a known soft fork.
        DiscriminatorMismatchError: `type` disagrees with the name's kind.
        DecodeError: Any field-level failure from the chosen arm.
    """
    try:
        fork = ForkName(name)
    except ValueError:
        raise UnknownForkNameError(path, name) from None

    obj = expect_object(value, path)
    kind = fork.activation_kind
    expect_discriminator(obj, kind.value, path)

    if kind is ForkActivationKind.BURIED:
        return validate_model(HeightTriggered, obj, path)
    return SignalTriggered(payload=decode_signal_phase(obj, path))


def decode_fork_registry(value: Any, path: str) -> ForkRegistry:
    """Decode the whole `softforks` mapping.

    Forks that are absent from the source are simply absent from the
    registry. The first bad entry aborts the decode.
    """
    obj = expect_object(value, path)
    records: dict[ForkName, ForkRecord] = {}
    for name, entry in obj.items():
        record = decode_fork_record(name, entry, join_path(path, name))
        records[ForkName(name)] = record
    logger.debug("Decoded %d soft forks at %s.", len(records), path)
    return ForkRegistry(records)


def encode_fork_record(record: ForkRecord) -> dict:
    """Render a ForkRecord back to its wire object."""
    if isinstance(record, SignalTriggered):
        return record.payload.model_dump(mode="json", by_alias=True)
    return record.model_dump(mode="json", by_alias=True)
