#!/usr/bin/env python
"""
Setup script for resample-compare.

For modern installations, use:
    pip install -e .
    pip install -e ".[test]"  # Install with test dependencies

Legacy installations:
    python setup.py develop
"""

from setuptools import setup

# Configuration is in pyproject.toml
# This file exists for backward compatibility and editable installs
setup()
