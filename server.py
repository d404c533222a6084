"""
chainstatus HTTP server.

Exposes the decoder over HTTP so tools that cannot link against Python can
post a raw getblockchaininfo response and get back the validated document
or a structured error.

    POST /api/decode          body = raw response bytes
        200  {"document": {...}}
        422  {"error": {"kind": ..., "path": ..., "message": ...}}

    GET  /api/health

Query parameter `strict_pruning=false` relaxes the pruning consistency
check for a single request.
"""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from decoding.decoder import decode
from schemas.errors import DecodeError

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"

logger = logging.getLogger(__name__)

app = FastAPI(title="chainstatus", version="0.1.0", docs_url=None, redoc_url=None)


@app.post("/api/decode")
async def decode_status(request: Request, strict_pruning: bool = True) -> JSONResponse:
    """Decode the raw request body as a getblockchaininfo response."""
    raw = await request.body()
    try:
        doc = decode(raw, strict_pruning=strict_pruning)
    except DecodeError as exc:
        logger.info("Rejected chain status (%s at %s).", exc.kind, exc.path or "<root>")
        return JSONResponse(status_code=422, content={"error": exc.to_dict()})

    content = doc.model_dump(mode="json", by_alias=True)
    return JSONResponse(content={"document": content})


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    uvicorn.run("server:app", host="127.0.0.1", port=8000, reload=True)
