"""docassembler - assemble documentation trees and fix their links."""

__version__ = "0.1.0"

__all__ = ["__version__"]
