"""
Command-line interface for AI Observer.
"""
