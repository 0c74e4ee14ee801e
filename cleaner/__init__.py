"""Cleaner - source-code health auditing engine for JavaScript trees.

Scans a source tree, builds AST-level and import-graph models of each
file, runs a registry of independent auditors against those models and
either reports violations or rewrites files to a canonical form.
"""

__version__ = "0.1.0"
