"""Check whether git repositories are safely backed up."""

__version__ = "0.1.0"
