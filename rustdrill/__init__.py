"""Command-line trainer that builds, tests and tracks small Rust exercises."""

__version__ = "5.5.1"

__all__ = ["__version__"]