"""iGPT gateway nodes: token exchange and model clients for a workflow host."""

__version__ = "0.1.0"
