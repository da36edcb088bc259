"""
DualSub - SRT to ASS converter with two-track merging.

Merges a top and a bottom SRT track into one ASS file, with manual
time shifts, index based sync and automatic offset search.
"""

__version__ = "0.1.0";
__author__ = "DualSub Project";
__license__ = "MIT";
