"""Knative router CLI — Typer-based command interface."""
