"""
Fishbone
========

Ishikawa (fishbone) root-cause diagrams: the bone tree, positional path
addressing, the tree mutator, the fishbone layout engine and the editing
session that ties them to a record store.
"""

__version__ = "1.0.0"
