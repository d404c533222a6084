"""Typed models for the chain status document and its soft fork section."""
