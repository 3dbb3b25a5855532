"""ImpactGraph CLI: diff parsing and import-graph impact analysis."""

__version__ = "0.1.0"
