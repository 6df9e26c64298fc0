from .expand import handle_expand, handle_make, _expand_single_file, _print_batch_summary

__all__ = [
  "_expand_single_file",
  "_print_batch_summary",
  "handle_expand",
  "handle_make",
]
