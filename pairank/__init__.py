"""Pairank - rank lists through pairwise preference questions."""

__version__ = "1.0.0"
