"""
Training analysis for cyclists
"""

__version__ = "0.1.0"
