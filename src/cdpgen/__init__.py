"""cdpgen — typed client generator for DevTools-style wire protocols."""

__version__ = "0.1.0"
