"""Decoding layer: raw getblockchaininfo bytes in, ChainStatusDocument out.

Import decode/encode from decoding.decoder. The error types live in
schemas.errors.
"""
