# File: rasqualtools/__init__.py
# Location: rasqualtools/rasqualtools/__init__.py

"""
rasqualtools Package.

This package provides helpers around RASQUAL allele-specific QTL mapping:
fetching tabix-indexed result files, building cis-window query ranges,
exporting matrices in RASQUAL's input format and computing GC-content
correction factors for count data.
"""

from .version import __version__
