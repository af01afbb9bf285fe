#!/usr/bin/env python3
"""
Exception Classes for vsu
"""

class VsuError(Exception):
    """Base exception for vsu errors"""
    pass

class ConfigurationError(VsuError):
    """Raised when options or configuration are invalid, before any file is touched"""
    pass

class StateFileError(VsuError):
    """Raised when a persisted state file (hashes or history) cannot be decoded"""

    def __init__(self, path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
