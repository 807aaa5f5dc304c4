"""Exceptions raised while decoding simulation logs."""

from __future__ import annotations


class ParserError(Exception):
    """Structural failure that makes the whole resource undecodable."""


class EmptyLogError(ParserError):
    """A fully loaded resource produced no world state."""
