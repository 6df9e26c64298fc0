"""
Signature Rewriter.

Applies the bound-augmentation rule to each trait member. Rules, in priority order:

1.  **Async methods** become synchronous methods returning
    `impl ::core::future::Future<Output = R> + <bounds>`, where `R` is the declared
    return type (unit when omitted). A default body is adapted (see below).
2.  **Methods returning `impl Trait`** get the extra bounds appended to the opaque
    type, skipping bounds already present.
3.  **Everything else** is copied verbatim.

Default-body adaptation turns `{ body }` into

    { let __self = self; let a = a; let mut b = b; async move { body } }

with receiver tokens in `body` renamed to the alias. Parameters are rebound in
declared order, so argument evaluation order and identity are unchanged. For a
shared-borrow receiver (`&self`, `self: &Self`) the returned future captures `&Self`, so a
method-scoped lifetime is bound to the borrow and the predicate
`&'lt Self: <bounds>` is added to the method's where-clause. These receiver
requirements are also returned to the caller, which uses them to constrain the
bridge implementation.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from trait_variant.config import RuntimeConfig
from trait_variant.core.errors import UNSUPPORTED_PATTERN, DiagnosticSink
from trait_variant.core.hygiene import HygieneScope
from trait_variant.core.model import IdentPattern, MethodMember, Receiver, Signature, TraitMember
from trait_variant.core.parser import parse_path
from trait_variant.core.syntax import (
  SELF_TYPE,
  UNIT,
  AngleArguments,
  AssocBinding,
  Block,
  BoundPredicate,
  ImplTraitType,
  Lifetime,
  LifetimeParam,
  ReferenceType,
  TraitBound,
  Type,
  merge_bounds,
)
from trait_variant.core.tracer import TraceLogger
from trait_variant.enums import RewriteRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiverRequirement:
  """A method whose adapted future holds `&'lifetime Self` and so needs `&Self: bounds`."""

  method: str
  lifetime: Lifetime


@dataclass(frozen=True)
class RewriteResult:
  members: Tuple[TraitMember, ...]
  receiver_requirements: Tuple[ReceiverRequirement, ...] = ()

  @property
  def borrows_receiver(self) -> bool:
    return bool(self.receiver_requirements)


class SignatureRewriter:
  """
  Rewrites member signatures for one expansion.
  """

  def __init__(
    self,
    bounds: Sequence[TraitBound],
    scope: HygieneScope,
    sink: DiagnosticSink,
    config: Optional[RuntimeConfig] = None,
    tracer: Optional[TraceLogger] = None,
  ):
    """
    Args:
        bounds: The extra capability bounds, already de-duplicated.
        scope: Fresh-name source shared with the bridge synthesizer.
        sink: Collector for non-fatal diagnostics.
        config: Runtime configuration (future path, name stems).
        tracer: Optional trace log.
    """
    self.bounds = tuple(bounds)
    self.scope = scope
    self.sink = sink
    self.config = config or RuntimeConfig()
    self.tracer = tracer or TraceLogger()
    self._requirements: List[ReceiverRequirement] = []

  def rewrite_all(self, members: Sequence[TraitMember]) -> RewriteResult:
    """
    Rewrites every member, preserving order.

    Args:
        members: The original trait members.

    Returns:
        RewriteResult: The rewritten members plus the receiver requirements found.
    """
    self._requirements = []
    rewritten = tuple(self.rewrite_member(m) for m in members)
    return RewriteResult(rewritten, tuple(self._requirements))

  def rewrite_member(self, member: TraitMember) -> TraitMember:
    if not isinstance(member, MethodMember):
      return member

    signature = member.signature
    if signature.is_async:
      result = self._rewrite_async(member)
    elif isinstance(signature.output, ImplTraitType):
      output = signature.output.with_changes(bounds=merge_bounds(signature.output.bounds, self.bounds))
      result = member.with_changes(signature=signature.with_changes(output=output))
      self._trace(member, result, RewriteRule.OPAQUE_RETURN)
    else:
      result = member
      self.tracer.log_inspection(member.name, RewriteRule.VERBATIM.value)
    return result

  def future_bound(self, output: Optional[Type]) -> TraitBound:
    """
    Builds `<future_path><Output = R>` from the configured trait path.

    Args:
        output (Optional[Type]): The async method's declared return type.

    Returns:
        TraitBound: e.g. `::core::future::Future<Output = i32>`.
    """
    path = parse_path(self.config.future_path)
    last = path.segments[-1]
    existing = last.arguments.args if isinstance(last.arguments, AngleArguments) else ()
    binding = AssocBinding(self.config.future_output, output if output is not None else UNIT)
    segment = last.with_changes(arguments=AngleArguments(existing + (binding,)))
    return TraitBound(path.with_changes(segments=path.segments[:-1] + (segment,)))

  def _rewrite_async(self, member: MethodMember) -> MethodMember:
    signature = member.signature
    returns = ImplTraitType(merge_bounds((self.future_bound(signature.output),), self.bounds))
    signature = signature.with_changes(is_async=False, output=returns)

    if member.default_body is None:
      result = member.with_changes(signature=signature)
      self._trace(member, result, RewriteRule.ASYNC)
      return result

    signature, body = self._adapt_default_body(signature, member)
    result = member.with_changes(signature=signature, default_body=body)
    self._trace(member, result, RewriteRule.ASYNC_DEFAULT)
    return result

  def _adapt_default_body(self, signature: Signature, member: MethodMember) -> Tuple[Signature, Block]:
    receiver = signature.receiver
    alias = self.scope.ident(self.config.self_alias)
    statements = []

    for param in signature.params:
      if isinstance(param, Receiver):
        statements.append(f"let {'mut ' if param.mutable else ''}{alias} = self;")
      elif isinstance(param.pattern, IdentPattern):
        statements.append(f"let {param.pattern.to_text()} = {param.pattern.name};")
      else:
        statements.append(self.sink.report(param.span, UNSUPPORTED_PATTERN))
        self.tracer.log_diagnostic(UNSUPPORTED_PATTERN, param.span.line, param.span.column)

    body = member.default_body.rename_receiver(alias) if receiver is not None else member.default_body
    block = Block.quote("{ " + " ".join(statements + [f"async move {body.to_text()}"]) + " }")

    if receiver is not None and receiver.is_shared_borrow:
      signature = self._bind_receiver_borrow(signature, receiver)
    return signature, block

  def _bind_receiver_borrow(self, signature: Signature, receiver: Receiver) -> Signature:
    generics = signature.generics
    params = signature.params
    lifetime = receiver.borrow_lifetime
    if lifetime is None:
      lifetime = self.scope.lifetime(self.config.self_lifetime)
      generics = generics.with_changes(params=(LifetimeParam(lifetime),) + generics.params)
      params = (receiver.with_borrow_lifetime(lifetime),) + params[1:]

    predicate = BoundPredicate(ReferenceType(SELF_TYPE, lifetime), self.bounds)
    generics = generics.with_predicate(predicate)
    self._requirements.append(ReceiverRequirement(signature.name, lifetime))
    logger.debug("Bound receiver of '%s' to %s", signature.name, lifetime.to_text())
    return signature.with_changes(generics=generics, params=params)

  def _trace(self, before: MethodMember, after: MethodMember, rule: RewriteRule) -> None:
    logger.debug("Rewrote '%s' (%s)", before.name, rule.value)
    self.tracer.log_rewrite(before.name, rule.value, before.signature.to_text(), after.signature.to_text())
