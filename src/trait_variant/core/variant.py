"""
Variant Synthesizer.

Builds the bounded trait declaration from the original declaration and the
rewritten members, and annotates the original declaration when it is kept.
"""

from typing import Optional, Sequence

from trait_variant.config import RuntimeConfig
from trait_variant.core.model import TraitDeclaration
from trait_variant.core.rewriter import RewriteResult
from trait_variant.core.syntax import Attribute, TraitBound, merge_bounds


class VariantSynthesizer:
  def __init__(self, config: Optional[RuntimeConfig] = None):
    self.config = config or RuntimeConfig()

  def synthesize(
    self, decl: TraitDeclaration, name: str, bounds: Sequence[TraitBound], rewritten: RewriteResult
  ) -> TraitDeclaration:
    """
    Args:
        decl: The original declaration.
        name: Name of the emitted trait (the new name, or the original one in place).
        bounds: Extra capability bounds, added to the supertraits.
        rewritten: Output of `SignatureRewriter.rewrite_all` for `decl.members`.

    Returns:
        TraitDeclaration: Same attributes, visibility, generics and where-clause as
        `decl`; supertraits extended; members replaced.
    """
    return decl.with_changes(
      name=name,
      supertraits=merge_bounds(decl.supertraits, bounds),
      members=rewritten.members,
    )

  def annotate_original(self, decl: TraitDeclaration, bounds: Sequence[TraitBound]) -> TraitDeclaration:
    """
    Attaches `#[allow(<lint>)]` to the original trait when a bound exempts it.

    The async-fn-in-trait lint warns that callers cannot require `Send` futures;
    once a `Send` variant exists, the warning on the original is moot.
    """
    exempt = set(self.config.lint_exempt_bounds)
    if not any(b.path.last_ident in exempt for b in bounds):
      return decl
    lint = Attribute.allow(self.config.suppressed_lint)
    if lint in decl.attributes:
      return decl
    return decl.with_changes(attributes=(lint,) + decl.attributes)
