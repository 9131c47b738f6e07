"""Clarion CLI subcommands."""
