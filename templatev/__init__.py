"""
templatev - validate and expand ${...} templates.
"""

__version__ = '0.1.0'
