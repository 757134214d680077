"""A small interactive shell with pipelines, background jobs, history and completion."""

__version__ = "0.1.0"
__all__ = ["__version__"]