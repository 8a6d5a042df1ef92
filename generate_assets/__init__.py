"""
Build the community assets catalog from a tree of TOML descriptors.
"""

__version__ = "0.1.0"
