#!/usr/bin/env python3
"""
vsu - Version Solution Updater
Entry point for `python -m vsu`.
"""

from .cli import main

if __name__ == '__main__':
    main()
