from kealthy.app import ConfigurationError, Kealthy

__all__ = ["ConfigurationError", "Kealthy"]
__version__ = "0.1.0"
