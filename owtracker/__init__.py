"""Match tracker backend: record store, season lookup and statistics."""

__version__ = "0.4.0"
