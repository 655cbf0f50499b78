"""Front end: read a module as source or ESTree JSON and analyze its bindings."""

from .pipeline import FrontEndResult, SourceError, load_estree, run_frontend

__all__ = ["FrontEndResult", "SourceError", "load_estree", "run_frontend"]
