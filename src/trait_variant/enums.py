"""
Enumerations for trait-variant.

This module defines standard enumerations shared by the parser, the rewriter
and the trace log.
"""

from enum import Enum


class ReceiverKind(str, Enum):
  """
  Shape of a method's receiver parameter.
  """

  NONE = "none"  # associated function, no receiver
  VALUE = "value"  # self, mut self
  REF = "ref"  # &self, &'a self
  MUT_REF = "mut_ref"  # &mut self
  TYPED = "typed"  # self: Box<Self>


class RewriteRule(str, Enum):
  """
  Which branch of the signature rewrite applied to a member.
  """

  ASYNC = "async"  # async fn -> fn returning impl Future + bounds
  ASYNC_DEFAULT = "async_default"  # as above, with the default body adapted
  OPAQUE_RETURN = "opaque_return"  # -> impl Trait gains the bounds
  VERBATIM = "verbatim"  # copied unchanged
