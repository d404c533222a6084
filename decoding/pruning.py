"""Pruning extension decoder.

A pruned node adds up to three scalar fields to the top level of `result`:
"pruneheight", "automatic_pruning" and "prune_target_size". Each key's type
is fixed by its name. They are gathered here into a PruningExtension.

Strict mode (the default) also checks that the `pruned` flag agrees with
the keys: pruned=true with no keys, or pruned=false with any key, raises
InconsistentPruningStateError. Lenient mode skips that check: pruned=true
builds the extension from whatever keys are present, and pruned=false
drops the keys, since an unpruned document never carries an extension.
"""

import logging

from decoding.fields import join_path, validate_model
from schemas.chain_status import PRUNING_WIRE_KEYS, PruningExtension
from schemas.errors import InconsistentPruningStateError

logger = logging.getLogger(__name__)


def decode_pruning_extension(
    result: dict,
    pruned: bool,
    path: str,
    strict: bool = True,
) -> PruningExtension | None:
    """Collect the pruning keys from result into a PruningExtension.

    Args:
        result: The top-level `result` object.
        pruned: The already-validated value of result["pruned"].
        path: Dotted path of result, used in error reports.
        strict: Enforce agreement between `pruned` and the extension keys.

    Returns:
        The extension, or None when no pruning key is present or the node
        is not pruned.

    Raises:
        TypeMismatchError: A pruning key holds the wrong type.
        InconsistentPruningStateError: strict is set and the flag and the
            keys disagree.
    """
    present = {key: result[key] for key in PRUNING_WIRE_KEYS if key in result}

    if strict and pruned and not present:
        raise InconsistentPruningStateError(
            join_path(path, "pruned"),
            "node reports pruned=true but no pruning fields are present",
        )
    if strict and not pruned and present:
        raise InconsistentPruningStateError(
            join_path(path, "pruned"),
            f"node reports pruned=false but sends {', '.join(sorted(present))}",
        )

    if not present:
        return None
    if not pruned:
        logger.warning("Ignoring pruning fields on an unpruned node: %s", sorted(present))
        return None

    logger.debug("Pruning fields present: %s", sorted(present))
    return validate_model(PruningExtension, present, path)
