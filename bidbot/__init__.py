"""
bidbot – freelance project search, scoring and proposal generation.
"""
__version__ = "1.0.0"
