"""
Bridge Synthesizer.

Builds the blanket implementation that makes every implementor of the variant
trait an implementor of the original trait:

    impl<G..., Blanket: Variant<A...>> Original<A...> for Blanket where ... {
        const N: T = <Self as Variant<A...>>::N;
        type Assoc<'x> = <Self as Variant<A...>>::Assoc<'x> where Self: 'x;
        async fn call(&self, x: u32) -> i32 {
            <Self as Variant<A...>>::call(self, x).await
        }
    }

`G...` are the original generic parameters without defaults and `A...` the
arguments naming them, so both traits are applied to the same parameters.
Members that cannot be forwarded are replaced by a `compile_error!` item and a
diagnostic; the remaining members are still forwarded.
"""

import logging
from typing import List, Optional, Sequence

from trait_variant.config import RuntimeConfig
from trait_variant.core.errors import UNSUPPORTED_ITEM, UNSUPPORTED_PATTERN, DiagnosticSink
from trait_variant.core.hygiene import HygieneScope
from trait_variant.core.model import (
  AssociatedTypeMember,
  ConstantMember,
  IdentPattern,
  ImplBlock,
  ImplConstant,
  ImplMember,
  ImplMethod,
  ImplPlaceholder,
  ImplType,
  MethodMember,
  Receiver,
  TraitDeclaration,
  TraitMember,
)
from trait_variant.core.rewriter import ReceiverRequirement
from trait_variant.core.syntax import (
  Block,
  BoundPredicate,
  LifetimeParam,
  Path,
  PathSegment,
  PathType,
  QualifiedPathType,
  ReferenceType,
  SELF_TYPE,
  TraitBound,
  TypeParam,
)
from trait_variant.core.tracer import TraceLogger

logger = logging.getLogger(__name__)


class BridgeSynthesizer:
  """
  Generates the blanket implementation for one `CreateNamed` expansion.
  """

  def __init__(
    self,
    scope: HygieneScope,
    sink: DiagnosticSink,
    config: Optional[RuntimeConfig] = None,
    tracer: Optional[TraceLogger] = None,
  ):
    self.scope = scope
    self.sink = sink
    self.config = config or RuntimeConfig()
    self.tracer = tracer or TraceLogger()

  def synthesize(
    self,
    decl: TraitDeclaration,
    variant_name: str,
    bounds: Sequence[TraitBound],
    requirements: Sequence[ReceiverRequirement] = (),
  ) -> ImplBlock:
    """
    Args:
        decl: The original declaration.
        variant_name: Name of the variant trait.
        bounds: The extra capability bounds.
        requirements: Receiver requirements reported by the rewriter. When any exist,
            the blanket type must satisfy them for every borrow lifetime.

    Returns:
        ImplBlock: The bridge implementation.
    """
    type_args = decl.generics.type_arguments()
    variant_path = Path.from_ident(variant_name, type_args)
    blanket = self.scope.ident(self.config.blanket_type)
    blanket_type = PathType.named(blanket)

    impl_generics = decl.generics.for_impl()
    impl_generics = impl_generics.with_changes(
      params=impl_generics.params + (TypeParam(blanket, (TraitBound(variant_path),)),)
    )
    if requirements:
      borrow = self.scope.lifetime(self.config.bridge_lifetime)
      predicate = BoundPredicate(ReferenceType(blanket_type, borrow), tuple(bounds), (LifetimeParam(borrow),))
      impl_generics = impl_generics.with_predicate(predicate)
      logger.debug("Bridge requires %s", predicate.to_text())

    items: List[ImplMember] = [self.forward_member(member, variant_path) for member in decl.members]
    return ImplBlock(
      trait_path=Path.from_ident(decl.name, type_args),
      self_type=blanket_type,
      generics=impl_generics,
      items=tuple(items),
      is_unsafe=decl.is_unsafe,
    )

  def forward_member(self, member: TraitMember, variant_path: Path) -> ImplMember:
    if isinstance(member, ConstantMember):
      value = self._qualified(variant_path, PathSegment(member.name))
      return ImplConstant(member.name, member.type, value, member.generics.for_impl())
    if isinstance(member, AssociatedTypeMember):
      target = self._qualified(variant_path, PathSegment(member.name, member.generics.type_arguments()))
      return ImplType(member.name, target, member.generics.for_impl())
    if isinstance(member, MethodMember):
      return self._forward_method(member, variant_path)

    placeholder = self.sink.report(member.span, UNSUPPORTED_ITEM)
    self.tracer.log_diagnostic(UNSUPPORTED_ITEM, member.span.line, member.span.column)
    return ImplPlaceholder(placeholder)

  def _forward_method(self, member: MethodMember, variant_path: Path) -> ImplMethod:
    signature = member.signature
    args = []
    for param in signature.params:
      if isinstance(param, Receiver):
        args.append("self")
      elif isinstance(param.pattern, IdentPattern):
        args.append(param.pattern.name)
      else:
        args.append(self.sink.report(param.span, UNSUPPORTED_PATTERN))
        self.tracer.log_diagnostic(UNSUPPORTED_PATTERN, param.span.line, param.span.column)

    callee = self._qualified(variant_path, PathSegment(signature.name))
    call = f"{callee.to_text()}({', '.join(args)})"
    if signature.is_async:
      call += ".await"
    return ImplMethod(signature, Block.quote("{ " + call + " }"))

  @staticmethod
  def _qualified(variant_path: Path, segment: PathSegment) -> QualifiedPathType:
    return QualifiedPathType(SELF_TYPE, variant_path, (segment,))
