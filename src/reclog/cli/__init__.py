"""Command line interface for reclog."""
