"""devsetup — install and configure developer tools with fallback strategies."""

__version__ = "0.1.0"
