"""
Orchestration Engine for Trait Expansion.

This module provides the `TransformEngine`, the driver for one
`#[trait_variant::make(...)]` expansion.

The pipeline consists of:

1.  **Directive Phase**: the attribute arguments are parsed into a `TransformMode`
    (`CreateNamed` or `RewriteInPlace`).
2.  **Parse Phase**: the trait text is lexed and parsed into a `TraitDeclaration`.
    Errors in either phase are fatal: the result holds a single `compile_error!`
    placeholder and a fatal diagnostic.
3.  **Rewrite Phase**: `SignatureRewriter` processes every member, collecting the
    receiver requirements of adapted default bodies.
4.  **Variant Phase**: `VariantSynthesizer` assembles the bounded trait.
5.  **Bridge Phase** (`CreateNamed` only): `BridgeSynthesizer` builds the blanket
    implementation; the original trait is emitted first, possibly lint-annotated.

Each expansion gets its own `HygieneScope`, `DiagnosticSink` and `TraceLogger`;
the engine holds nothing but its configuration.
"""

import logging
from typing import Callable, Optional, Sequence

from trait_variant.config import RuntimeConfig
from trait_variant.core.bridge import BridgeSynthesizer
from trait_variant.core.directive import DirectiveParser
from trait_variant.core.errors import Diagnostic, DiagnosticSink, RustSyntaxError, Span
from trait_variant.core.expansion_result import ExpansionResult
from trait_variant.core.hygiene import HygieneScope
from trait_variant.core.model import CreateNamed, EmitSet, RewriteInPlace, TraitDeclaration, TransformMode
from trait_variant.core.parser import RustParser
from trait_variant.core.rewriter import SignatureRewriter
from trait_variant.core.tokens import Token
from trait_variant.core.tracer import TraceLogger
from trait_variant.core.variant import VariantSynthesizer

logger = logging.getLogger(__name__)


class TransformEngine:
  """
  Expands annotated trait declarations.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None):
    """
    Args:
        config (Optional[RuntimeConfig]): Names and paths spliced into generated code.
    """
    self.config = config or RuntimeConfig()

  def parse_directive(self, text: str, span: Optional[Span] = None) -> TransformMode:
    return DirectiveParser.from_text(text, span).parse()

  def parse_interface(self, text: str) -> TraitDeclaration:
    return RustParser.from_text(text).parse_trait()

  def transform(self, mode: TransformMode, decl: TraitDeclaration, tracer: Optional[TraceLogger] = None) -> EmitSet:
    """
    Applies a transform to a parsed declaration.

    Args:
        mode (TransformMode): What to emit and which bounds to add.
        decl (TraitDeclaration): The interface to transform.
        tracer (Optional[TraceLogger]): Trace log to record into.

    Returns:
        EmitSet: `(variant,)` for RewriteInPlace, `(original, variant, bridge)` for
        CreateNamed, plus the diagnostics reported along the way.
    """
    tracer = tracer or TraceLogger()
    if isinstance(mode, CreateNamed) and mode.new_name == decl.name:
      logger.warning("Variant name '%s' equals the trait name; rewriting in place", decl.name)
      tracer.log_inspection(decl.name, "rewrite_in_place", "variant name equals trait name")
      mode = RewriteInPlace(mode.bounds)

    scope = HygieneScope.for_declaration(decl)
    sink = DiagnosticSink()
    name = mode.new_name if isinstance(mode, CreateNamed) else decl.name

    tracer.start_phase("Rewrite", f"{len(decl.members)} members")
    rewritten = SignatureRewriter(mode.bounds, scope, sink, self.config, tracer).rewrite_all(decl.members)
    tracer.end_phase()

    tracer.start_phase("Variant", name)
    synthesizer = VariantSynthesizer(self.config)
    variant = synthesizer.synthesize(decl, name, mode.bounds, rewritten)
    tracer.end_phase()

    if isinstance(mode, RewriteInPlace):
      return EmitSet((variant,), sink.diagnostics)

    tracer.start_phase("Bridge", f"{decl.name} for every {name}")
    bridge = BridgeSynthesizer(scope, sink, self.config, tracer).synthesize(
      decl, name, mode.bounds, rewritten.receiver_requirements
    )
    tracer.end_phase()

    original = synthesizer.annotate_original(decl, mode.bounds)
    return EmitSet((original, variant, bridge), sink.diagnostics)

  def run(self, attr: str, item: str) -> ExpansionResult:
    """
    Expands one trait given as text.

    Args:
        attr (str): The attribute arguments, e.g. `LocalFactory: Send`.
        item (str): The trait declaration.

    Returns:
        ExpansionResult: Generated code, diagnostics and trace.
    """
    return self._expand(lambda: self.parse_directive(attr), lambda: self.parse_interface(item))

  def run_tokens(self, attr: Sequence[Token], item: Sequence[Token], attr_span: Span) -> ExpansionResult:
    """
    Expands one trait given as token runs cut from a larger file, keeping file positions.

    Args:
        attr: Tokens between the attribute's parentheses.
        item: Tokens of the trait declaration.
        attr_span: Location of the attribute, used for directive errors.
    """
    return self._expand(
      lambda: DirectiveParser.from_tokens(tuple(attr), attr_span).parse(),
      lambda: RustParser(item).parse_trait(),
    )

  def _expand(
    self, read_directive: Callable[[], TransformMode], read_interface: Callable[[], TraitDeclaration]
  ) -> ExpansionResult:
    tracer = TraceLogger()
    tracer.start_phase("Expansion", "trait_variant::make")
    try:
      tracer.start_phase("Directive")
      mode = read_directive()
      tracer.end_phase()
      tracer.start_phase("Parse")
      decl = read_interface()
      tracer.end_phase()
    except RustSyntaxError as e:
      diagnostic = Diagnostic.at(e.span, e.reason, fatal=True)
      tracer.log_diagnostic(e.reason, e.span.line, e.span.column)
      tracer.end_phase()
      tracer.end_phase()
      logger.debug("Expansion aborted: %s", e)
      return ExpansionResult(
        code=diagnostic.placeholder, diagnostics=[diagnostic], success=False, trace_events=tracer.export()
      )

    emitted = self.transform(mode, decl, tracer)
    tracer.end_phase()
    return ExpansionResult(
      code=emitted.to_text(), diagnostics=list(emitted.diagnostics), success=True, trace_events=tracer.export()
    )


def transform(mode: TransformMode, decl: TraitDeclaration, config: Optional[RuntimeConfig] = None) -> EmitSet:
  """
  Applies `mode` to `decl` with a default engine.

  Args:
      mode (TransformMode): The parsed directive.
      decl (TraitDeclaration): The parsed trait.
      config (Optional[RuntimeConfig]): Engine configuration.

  Returns:
      EmitSet: The declarations to emit and the diagnostics.
  """
  return TransformEngine(config).transform(mode, decl)
