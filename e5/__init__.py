"""
e5 - Cross-Platform Tool Installation Manager
Installs the tools a project needs through whichever package manager the host has,
falling back across methods when one fails.
"""

__version__ = "0.4.0"
__author__ = "e5 contributors"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__"]
