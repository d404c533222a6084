"""Top-level chain status decoder.

decode() is the only entry point callers need: it takes the raw body of a
getblockchaininfo JSON-RPC response and returns a ChainStatusDocument, or
raises a DecodeError naming the first field that failed. It is pure: no
I/O, no shared state, safe to call from any thread.

encode() is its inverse and exists mainly so the round-trip law
decode(encode(doc)) == doc can be checked, and so fixtures can be built
from typed documents.
"""

import json
import logging
from typing import Any

from decoding.fields import join_path, validate_model
from decoding.pruning import decode_pruning_extension
from decoding.softforks import decode_fork_registry, encode_fork_record
from schemas.chain_status import PRUNING_WIRE_KEYS, ChainStatusDocument
from schemas.errors import MalformedEnvelopeError, MissingFieldError

logger = logging.getLogger(__name__)

RESULT_PATH = "result"


def decode(raw: bytes | str, *, strict_pruning: bool = True) -> ChainStatusDocument:
    """Decode a getblockchaininfo response body.

    Args:
        raw: Response body as received from the node.
        strict_pruning: Reject documents whose `pruned` flag disagrees with
            the presence of pruning fields. See decoding.pruning.

    Returns:
        The validated, immutable document.

    Raises:
        MalformedEnvelopeError: raw is not a JSON object with a `result`
            object, or the node returned an RPC error.
        DecodeError: Any other field failure, with its dotted path.
    """
    result = _unwrap_envelope(raw)

    softforks_path = join_path(RESULT_PATH, "softforks")
    if "softforks" not in result:
        raise MissingFieldError(softforks_path)
    softforks = decode_fork_registry(result["softforks"], softforks_path)

    pruning = None
    pruned = result.get("pruned")
    if isinstance(pruned, bool):
        pruning = decode_pruning_extension(result, pruned, RESULT_PATH, strict=strict_pruning)

    fields = {key: value for key, value in result.items() if key not in PRUNING_WIRE_KEYS}
    fields["softforks"] = softforks
    fields["pruning"] = pruning

    document = validate_model(ChainStatusDocument, fields, RESULT_PATH)
    logger.debug(
        "Decoded chain status: chain=%s blocks=%d forks=%d pruned=%s",
        document.chain.value, document.blocks, len(document.softforks), document.pruned,
    )
    return document


def encode(document: ChainStatusDocument, request_id: Any = None) -> bytes:
    """Render a document as a JSON-RPC response body that decode() accepts."""
    result = document.model_dump(mode="json", by_alias=True, exclude={"softforks", "pruning"})
    result["softforks"] = {
        name.value: encode_fork_record(record) for name, record in document.softforks.items()
    }
    if document.pruning is not None:
        result.update(document.pruning.model_dump(mode="json", by_alias=True, exclude_none=True))
    envelope = {"result": result, "error": None, "id": request_id}
    return json.dumps(envelope).encode("utf-8")


# ── Private helpers ────────────────────────────────────────────────────────────

def _unwrap_envelope(raw: bytes | str) -> dict:
    """Parse the JSON-RPC envelope and return its `result` object."""
    try:
        envelope = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedEnvelopeError("", f"response is not valid JSON: {exc}") from exc

    if not isinstance(envelope, dict):
        raise MalformedEnvelopeError("", "response is not a JSON object")

    error = envelope.get("error")
    if error is not None:
        message = error.get("message") if isinstance(error, dict) else error
        raise MalformedEnvelopeError("error", f"node returned an RPC error: {message}")

    result = envelope.get(RESULT_PATH)
    if result is None:
        raise MalformedEnvelopeError(RESULT_PATH, "response has no result")
    if not isinstance(result, dict):
        raise MalformedEnvelopeError(RESULT_PATH, "result is not an object")
    return result
