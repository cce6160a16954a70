"""Prometheus exporter for Claymore-style mining rigs."""

__version__ = "0.3.0"
