"""
CLI Command Handlers Facade.

Re-exports the handlers from `trait_variant.cli.handlers` so the dispatcher (and
tests patching it) have a single module to reference.
"""

from trait_variant.cli.handlers.expand import handle_expand, handle_make

__all__ = [
  "handle_expand",
  "handle_make",
]
