"""Command line tool for work-status.

See `work-status --help` for the available commands.
"""
