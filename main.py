#!/usr/bin/env python3
"""
SCORPIO - Browser-driven web vulnerability scanner

Script entry point, equivalent to the installed `scorpio` command.

Usage:
    python main.py scan --target http://localhost
    python main.py quick http://localhost
"""

from scorpio.cli import cli


if __name__ == '__main__':
    cli()
