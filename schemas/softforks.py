"""Soft fork schemas.

Models for the `softforks` section of a getblockchaininfo response. A soft
fork is reported in one of two families of shapes:

- Buried forks (activated at a fixed height) are a flat
  {"height", "active", "type": "buried"} object.
- BIP9 forks (activated by miner signalling) carry a common set of fields
  plus extras that depend on the deployment's current phase: the version
  bit and voting statistics while signalling, the activation height once
  active, or nothing extra otherwise.

Which family a fork belongs to is a property of its name, not of the data.
FORK_ACTIVATION_KINDS is the fixed table that says which is which.

All models are frozen. Decoding (choosing a variant, translating errors)
lives in decoding/, not here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, ClassVar, ItemsView, Iterator, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    StrictBool,
    StrictInt,
    model_validator,
)
from pydantic_core import PydanticCustomError, core_schema

from schemas.errors import RangeError

UInt = Annotated[StrictInt, Field(ge=0)]

_MODEL_CONFIG = ConfigDict(frozen=True, populate_by_name=True)


@dataclass(frozen=True, order=True)
class BoundedBit:
    """A BIP9 version-bit index, guaranteed to lie in [0, 28].

    Build one with BoundedBit.make(value). Instances compare and order by
    their underlying value and serialize as a plain integer.
    """

    value: int

    MAX: ClassVar[int] = 28

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"bit must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value <= self.MAX:
            raise RangeError(field="bit", max=self.MAX, got=self.value)

    @classmethod
    def make(cls, value: int) -> "BoundedBit":
        """Validate value and wrap it.

        Raises:
            RangeError: If value is outside [0, 28].
        """
        return cls(value)

    def __int__(self) -> int:
        return self.value

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        def validate(raw: Any) -> "BoundedBit":
            if isinstance(raw, cls):
                return raw
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise PydanticCustomError("int_type", "Input should be a valid integer")
            try:
                return cls.make(raw)
            except RangeError as exc:
                raise PydanticCustomError(
                    "bit_range",
                    "bit must be between 0 and {max}, got {got}",
                    {"max": exc.max, "got": exc.got},
                ) from exc

        return core_schema.no_info_plain_validator_function(
            validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda bit: bit.value),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: Any, handler: Any) -> dict[str, Any]:
        return {"type": "integer", "minimum": 0, "maximum": cls.MAX}


class SignalStatus(str, Enum):
    """BIP9 deployment phase.

    Ordered by lifecycle: defined < started < locked_in < active < failed.
    The wire form is the lower-case value; note the underscore in
    "locked_in".
    """

    DEFINED = "defined"
    STARTED = "started"
    LOCKED_IN = "locked_in"
    ACTIVE = "active"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    # str supplies all four comparisons, so each one is overridden here.
    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, SignalStatus):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, SignalStatus):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, SignalStatus):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, SignalStatus):
            return NotImplemented
        return self.rank >= other.rank


_STATUS_RANK: dict[SignalStatus, int] = {status: rank for rank, status in enumerate(SignalStatus)}


class ForkActivationKind(str, Enum):
    """How a soft fork activates. Serialized under the `type` key."""

    BURIED = "buried"
    SIGNALING = "bip9"


class SignalStatistics(BaseModel):
    """Counters for the current BIP9 voting window.

    Attributes:
        period: Length of the signalling window in blocks.
        threshold: Signalling blocks required within the window to lock in.
        elapsed: Blocks elapsed in the current window.
        count: Signalling blocks seen in the current window.
        possible: Whether the threshold can still be reached this window.
    """

    model_config = _MODEL_CONFIG

    period: UInt
    threshold: UInt
    elapsed: UInt
    count: UInt
    possible: StrictBool


def _check_kind(kind: ForkActivationKind, expected: ForkActivationKind) -> None:
    if kind is not expected:
        raise PydanticCustomError(
            "discriminator_mismatch",
            "expected type {expected!r}, got {got!r}",
            {"expected": expected.value, "got": kind.value},
        )


class SignalPhaseBase(BaseModel):
    """Fields every BIP9 deployment reports, whatever its phase."""

    model_config = _MODEL_CONFIG

    status: SignalStatus
    start_time: UInt
    timeout: UInt
    since: UInt
    active: StrictBool
    kind: ForkActivationKind = Field(alias="type")

    @model_validator(mode="after")
    def _kind_is_signaling(self) -> "SignalPhaseBase":
        _check_kind(self.kind, ForkActivationKind.SIGNALING)
        return self


class InProgress(SignalPhaseBase):
    """A deployment that is being signalled for (usually `started`)."""

    bit: BoundedBit
    statistics: SignalStatistics


class ActivatedAtHeight(SignalPhaseBase):
    """An active deployment, reported with the height it activated at."""

    height: UInt


class OtherPhase(SignalPhaseBase):
    """Any phase reported without height or statistics (defined, locked_in, failed)."""


SignalPhasePayload = Union[InProgress, ActivatedAtHeight, OtherPhase]


class HeightTriggered(BaseModel):
    """A buried soft fork: active from a fixed block height."""

    model_config = _MODEL_CONFIG

    height: UInt
    active: StrictBool
    kind: ForkActivationKind = Field(default=ForkActivationKind.BURIED, alias="type")

    @model_validator(mode="after")
    def _kind_is_buried(self) -> "HeightTriggered":
        _check_kind(self.kind, ForkActivationKind.BURIED)
        return self


class SignalTriggered(BaseModel):
    """A BIP9 soft fork wrapping its phase-dependent payload."""

    model_config = _MODEL_CONFIG

    payload: SignalPhasePayload

    @property
    def kind(self) -> ForkActivationKind:
        return self.payload.kind

    @property
    def active(self) -> bool:
        return self.payload.active


ForkRecord = Union[HeightTriggered, SignalTriggered]


class ForkName(str, Enum):
    """The closed set of soft fork names a node may report."""

    BIP34 = "bip34"
    BIP65 = "bip65"
    BIP66 = "bip66"
    CSV = "csv"
    SEGWIT = "segwit"
    TESTDUMMY = "testdummy"
    TAPROOT = "taproot"

    @property
    def activation_kind(self) -> ForkActivationKind:
        return FORK_ACTIVATION_KINDS[self]


FORK_ACTIVATION_KINDS: dict[ForkName, ForkActivationKind] = {
    ForkName.BIP34: ForkActivationKind.BURIED,
    ForkName.BIP65: ForkActivationKind.BURIED,
    ForkName.BIP66: ForkActivationKind.BURIED,
    ForkName.CSV: ForkActivationKind.BURIED,
    ForkName.SEGWIT: ForkActivationKind.BURIED,
    ForkName.TESTDUMMY: ForkActivationKind.SIGNALING,
    ForkName.TAPROOT: ForkActivationKind.SIGNALING,
}


class ForkRegistry(RootModel[dict[ForkName, ForkRecord]]):
    """Read-only mapping of fork name to its decoded record.

    Only forks present in the source document are populated; a missing
    name means the node did not report that deployment.
    """

    model_config = ConfigDict(frozen=True)

    root: dict[ForkName, ForkRecord] = Field(default_factory=dict)

    def __getitem__(self, name: ForkName | str) -> ForkRecord:
        return self.root[ForkName(name)]

    def __contains__(self, name: object) -> bool:
        try:
            return ForkName(name) in self.root
        except ValueError:
            return False

    def __iter__(self) -> Iterator[ForkName]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def get(self, name: ForkName | str, default: ForkRecord | None = None) -> ForkRecord | None:
        return self.root.get(ForkName(name), default)

    def items(self) -> ItemsView[ForkName, ForkRecord]:
        return self.root.items()
