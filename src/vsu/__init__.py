#!/usr/bin/env python3
"""
vsu - Version Solution Updater
=============================

Keeps '// Version: MAJOR.MINOR.BUILD.REVISION' markers in source files in step
with their content. A file's version is bumped only when its content, with the
marker line excluded, changed since the last run.

Usage:
    from vsu.orchestrator import RunOrchestrator
    from vsu.options import RunOptions, validate_options

    stats = RunOrchestrator(validate_options(RunOptions(root=Path(".")))).run()
"""

__version__ = "1.0.0"
__all__ = ['__version__']
