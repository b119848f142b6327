"""
Light Mirror CLI Commands Package

Command modules for the light mirror CLI.
"""

__all__ = ['proof', 'config']
