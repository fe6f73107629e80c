"""The Lens storefront"""

__version__ = "1.0.0"
