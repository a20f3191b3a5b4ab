"""Model descriptions, column type mapping, dynamic SQL template splitting and clause checks for data-access code generation."""

__version__ = "0.1.0"

__all__ = ["config", "interface", "model", "parser", "pools", "query", "section", "security", "utils"]