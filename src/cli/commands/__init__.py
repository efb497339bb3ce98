"""Subcommands of the shapebind CLI."""
