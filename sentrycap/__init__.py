"""Header decoding, rule parsing and matching, and interface state checks."""

__version__ = "0.1.0"