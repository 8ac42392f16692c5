"""Application wiring."""

from .container import Container, create_container

__all__ = ["Container", "create_container"]
