"""
Fishbone Diagrams Test Suite

Test Categories:
- Paths, mutator, expansion: the bone tree core
- Layout: primitives, truncation and colours
- Session and store: editing, saving and rollback
- Export: SVG/PNG rendering and the export script
- API: auth, diagram CRUD and editor endpoints

Run all tests:
    pytest

Run specific test file:
    pytest tests/test_mutator.py
"""

__version__ = "1.0.0"
