"""
AutoShorts - trend-driven short-form video production pipeline.
"""
__version__ = "1.0.0"
