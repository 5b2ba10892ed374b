"""
rtwroster - Total War Mod Roster Resolver

A Python toolkit for parsing Rome: Total War style mod data and resolving
which units every faction can recruit, at which tech tier and in which eras.
"""

__version__ = "0.1.0"
__author__ = "rtwroster contributors"

from rtwroster.parser import parse_requires, filter_lines, split_records
