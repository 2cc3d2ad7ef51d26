#!/usr/bin/env python3
"""Main CLI entry point for cfnupd."""

from .update import main

if __name__ == "__main__":
    main()
