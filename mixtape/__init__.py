"""Mixtape - unified media sources with live update interleaving."""

__version__ = "1.0.0"
