"""
Command-line interface for certpath.
"""
