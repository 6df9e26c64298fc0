"""
Hygienic Name Generation.

Generated code introduces names of its own: the receiver alias in adapted
default bodies, the lifetime bound to a borrowed receiver, the bridge's blanket
type parameter and its higher-ranked lifetime. None of them may capture or shadow
a name written by the user.

A `HygieneScope` is built from every identifier and lifetime that appears in the
declaration. Asking for a stem returns the stem itself when unused, otherwise the
first free `stem2`, `stem3`, ... The answer for a stem is memoized, so every use
within one expansion agrees, and no global state is involved, so repeated runs
produce identical output.
"""

import re
from typing import Dict, Iterable, Set

from trait_variant.core.syntax import Lifetime, SyntaxNode

NAME_PATTERN = re.compile(r"'?(?:r#)?[^\W\d]\w*")


class HygieneScope:
  def __init__(self, taken: Iterable[str] = ()):
    self._taken: Set[str] = {name.replace("r#", "", 1) for name in taken}
    self._issued: Dict[str, str] = {}

  @classmethod
  def for_declaration(cls, decl: SyntaxNode) -> "HygieneScope":
    """
    Collects every identifier-like word in the declaration's text.

    Over-approximates (words inside string literals count too), which can only
    make generated names longer, never clash.
    """
    return cls(NAME_PATTERN.findall(decl.to_text()))

  def is_taken(self, name: str) -> bool:
    return name in self._taken

  def ident(self, stem: str) -> str:
    """
    Returns the unique identifier issued for `stem`.

    Args:
        stem (str): Preferred name.

    Returns:
        str: `stem` or `stem<N>`, never equal to a user-written name.
    """
    if stem in self._issued:
      return self._issued[stem]
    candidate = stem
    suffix = 1
    while candidate in self._taken:
      suffix += 1
      candidate = f"{stem}{suffix}"
    self._taken.add(candidate)
    self._issued[stem] = candidate
    return candidate

  def lifetime(self, stem: str) -> Lifetime:
    return Lifetime(self.ident("'" + stem.lstrip("'")))
