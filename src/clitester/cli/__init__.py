# src/clitester/cli/__init__.py

"""
Command-line interface for clitester.
"""
