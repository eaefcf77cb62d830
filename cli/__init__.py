"""Typer commands for inspecting, registering and checking the schema catalog.

The application object is ``cli.app.app``.
"""
