"""Server components for pdfsheet (FastAPI)."""


def create_app(*args, **kwargs):
    """Create and configure the FastAPI application."""
    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = ["create_app"]
