"""
Procedural torus overworld generation.
"""

__version__ = "0.1.0"
