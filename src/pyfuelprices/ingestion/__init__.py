"""Ingestion layer.

Helpers that turn raw upstream text (location spellings, locale-formatted
prices) into the normalized values every source adapter emits.
"""

__all__: list[str] = []
