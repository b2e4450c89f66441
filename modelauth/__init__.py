"""modelauth - pluggable credential profiles for model-serving providers."""

__version__ = "0.1.0"
__logo__ = "🔑"
