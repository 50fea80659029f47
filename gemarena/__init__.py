"""Deterministic AI tournament arena for a two-player gem placement board game."""

__version__ = "0.1.0"
