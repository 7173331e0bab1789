"""ims-cli: call Adobe IMS APIs with tokens from named authentication contexts."""

__version__ = "0.1.0"
