"""House catalog services backed by the document store."""

from .houses import fetch_houses

__all__ = ["fetch_houses"]
