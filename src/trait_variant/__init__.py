"""
trait-variant Package.

Generates bounded variants of Rust traits with `async fn` and `-> impl Trait`
methods, the way the `#[trait_variant::make(...)]` attribute does.

Given a trait and a directive, the engine emits either

* ``Name: Bounds``: the original trait, a variant named ``Name`` whose futures and
  opaque return types carry ``Bounds``, and a blanket impl of the original trait
  for every implementor of the variant; or
* ``Bounds``: the trait rewritten in place with the bounds added.

Usage
-----

Simple String Expansion
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import trait_variant
    code = trait_variant.make("SendFactory: Send", "trait Factory { async fn make(&self) -> i32; }")
    print(code)

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from trait_variant import TransformEngine, RuntimeConfig

    engine = TransformEngine(RuntimeConfig(self_alias="this"))
    res = engine.run("Send", source)

    if res.success and not res.has_errors:
        print(res.code)
    else:
        print(f"Errors: {res.errors}")
"""

from trait_variant.config import RuntimeConfig
from trait_variant.core.engine import TransformEngine, transform
from trait_variant.core.expansion_result import ExpansionResult
from trait_variant.core.scanner import expand_source

__version__ = "0.1.0"


def make(attr: str, item: str, config: RuntimeConfig = None) -> str:
  """
  Expands one trait declaration.

  This is a convenience wrapper around `TransformEngine.run`. Non-fatal
  diagnostics are returned inline as `compile_error!` placeholders, exactly as
  the host compiler would see them.

  Args:
      attr (str): The directive, e.g. ``"LocalIntFactory: Send"`` or ``"Send"``.
      item (str): Source text of one trait declaration.
      config (RuntimeConfig, optional): Engine configuration.

  Returns:
      str: The generated Rust code.

  Raises:
      ValueError: If the directive or the trait cannot be parsed.
  """
  result = TransformEngine(config).run(attr, item)
  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Expansion failed:\n{error_msg}")
  return result.code


__all__ = [
  "ExpansionResult",
  "RuntimeConfig",
  "TransformEngine",
  "expand_source",
  "make",
  "transform",
  "__version__",
]
