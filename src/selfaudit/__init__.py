"""DApp security self-audit: finding normalization and risk scoring."""

__version__ = "1.4.0"
