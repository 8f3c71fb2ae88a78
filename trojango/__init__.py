"""Trojan-protocol proxy core: configuration, option handling, relaying, logging and geodata."""

__version__ = "0.1.0"