"""
Lake: a build tool whose build files are restricted Python scripts.

A build file registers named tasks; `lake <task> [args...]` runs exactly one.
"""

__version__ = "0.1.0"
