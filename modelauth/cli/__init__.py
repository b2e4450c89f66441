"""CLI module for modelauth."""
