"""
Test configuration and shared fixtures for vsu tests
"""
import os
import sys
import pytest
import tempfile
import shutil
from pathlib import Path

# Make the src layout importable without an install
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from vsu.options import RunOptions


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)

@pytest.fixture
def sample_config():
    """Default configuration for tests"""
    return {
        'scan': {
            'extensions': ['.cs', '.py'],
            'ignored_file': None,
            'report_filename': 'version_raport.txt',
        },
        'versioning': {
            'increment_mode': 'revision',
            'max_major': 99,
            'max_minor': 99,
            'max_build': 99,
            'max_revision': 99,
        },
        'markers': {
            'default_prefix': '//',
            'prefixes': {},
        },
        'state': {
            'hashes_filename': 'hashes.json',
            'history_filename': 'version_history.json',
        },
        'logging': {
            'level': 'INFO',
            'log_to_file': False,
        },
    }

@pytest.fixture
def project_dir(temp_dir):
    """A small project tree with unversioned and versioned source files"""
    (temp_dir / 'Main.cs').write_text("class Main {}\n", encoding='utf-8')
    (temp_dir / 'Services').mkdir()
    (temp_dir / 'Services' / 'Utils.cs').write_text(
        "// Version: 1.0.0.4\nstatic class Utils {}\n", encoding='utf-8')
    (temp_dir / 'notes.txt').write_text("not a source file\n", encoding='utf-8')
    return temp_dir

@pytest.fixture
def make_options(temp_dir):
    """Factory for RunOptions rooted at the temporary directory"""
    def _make(**overrides):
        overrides.setdefault('root', temp_dir)
        return RunOptions(**overrides)
    return _make
