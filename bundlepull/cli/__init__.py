"""bundlepull CLI — Typer-based command-line interface.

Provides the ``bundlepull`` command with ``pull`` and ``package``
subcommands. All output uses Rich for formatted terminal display.
"""
