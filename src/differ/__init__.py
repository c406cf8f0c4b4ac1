"""differ: review a branch diff and relay line comments to a coding agent."""

__version__ = "0.1.0"
