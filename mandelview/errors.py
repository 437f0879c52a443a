class ConfigurationError(ValueError):
    """Raised when render configuration is malformed. Always raised before rendering starts."""
