"""Chain status document schema.

ChainStatusDocument is the validated form of the `result` object of a
getblockchaininfo response. It is built once by decoding.decoder.decode()
and never modified afterwards.
"""

from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from schemas.softforks import ForkRegistry, UInt


class Chain(str, Enum):
    """Network the node is running on."""

    MAIN = "main"
    TEST = "test"
    SIGNET = "signet"
    REGTEST = "regtest"


class PruningExtension(BaseModel):
    """Extra fields a node reports only when running in pruned mode.

    On the wire these sit at the top level of `result`, next to `pruned`,
    rather than in a nested object. Each slot is optional because nodes
    omit some of them (prune_target_size only appears with automatic
    pruning).

    Attributes:
        prune_height: Lowest block height still stored. Wire key is
            "pruneheight", without the underscore.
        automatic_pruning: Whether the node prunes automatically.
        prune_target_size: Target on-disk size in bytes for automatic pruning.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prune_height: UInt | None = Field(default=None, alias="pruneheight")
    automatic_pruning: StrictBool | None = None
    prune_target_size: UInt | None = None

    @model_validator(mode="after")
    def _has_a_value(self) -> "PruningExtension":
        if all(getattr(self, name) is None for name in type(self).model_fields):
            raise PydanticCustomError(
                "empty_pruning_extension",
                "Pruning extension needs at least one field; use None instead",
            )
        return self


PRUNING_WIRE_KEYS: tuple[str, ...] = tuple(
    field.alias or name for name, field in PruningExtension.model_fields.items()
)


class ChainStatusDocument(BaseModel):
    """The decoded, validated result of a chain status query.

    Attributes:
        chain: Network identity.
        blocks: Height of the most-work fully-validated chain.
        headers: Height of the most-work header chain seen.
        bestblockhash: Hex hash of the current tip.
        difficulty: Current proof-of-work difficulty.
        mediantime: Median time of the last 11 blocks (unix seconds).
        verificationprogress: Estimated fraction of the chain verified, 0..1.
        initialblockdownload: Whether the node is still in initial sync.
        chainwork: Cumulative work of the active chain, as a hex string.
        size_on_disk: Estimated size of the block and undo files in bytes.
        pruned: Whether the node runs in pruned mode.
        softforks: Status of each soft fork the node reported.
        warnings: Node warnings. A string on older nodes, a list of strings
            on newer ones; kept in whichever shape arrived.
        pruning: Pruning extension fields. Always None when pruned is
            false. May be None with pruned true, but only a lenient decode
            produces that.
    """

    model_config = ConfigDict(frozen=True)

    chain: Chain
    blocks: UInt
    headers: UInt
    bestblockhash: StrictStr
    difficulty: StrictFloat
    mediantime: UInt
    verificationprogress: StrictFloat
    initialblockdownload: StrictBool
    chainwork: StrictStr
    size_on_disk: UInt
    pruned: StrictBool
    softforks: ForkRegistry
    warnings: str | list[str]
    pruning: PruningExtension | None = None

    @field_validator("warnings", mode="plain")
    @classmethod
    def _warnings_shape(cls, value: Any) -> str | list[str]:
        if isinstance(value, str):
            return value
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        raise PydanticCustomError(
            "warnings_type",
            "Input should be a string or a list of strings",
        )

    @model_validator(mode="after")
    def _pruning_needs_pruned(self) -> "ChainStatusDocument":
        if self.pruning is not None and not self.pruned:
            raise PydanticCustomError(
                "inconsistent_pruning_state",
                "pruned is false but pruning fields are set",
            )
        return self
