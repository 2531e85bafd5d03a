"""
Cyone Command-Line Interface
============================

- **cyonec**: Cyone compiler, source to Intel HEX

The tool is a Click application with help text and unified exit codes
(see cyone.cli.errors).
"""

__all__ = ["cyonec"]
