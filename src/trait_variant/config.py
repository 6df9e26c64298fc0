"""
Runtime Configuration Store.

Holds the names and paths the engine splices into generated code, plus the
attribute paths the source scanner recognises. Values come from the nearest
`pyproject.toml` (`[tool.trait_variant]`) and can be overridden from the CLI.
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trait_variant.utils.console import log_warning


class RuntimeConfig(BaseModel):
  """
  Configuration container for the expansion engine.
  """

  model_config = ConfigDict(frozen=True)

  future_path: str = Field("::core::future::Future", description="Path of the trait used for async return types.")
  future_output: str = Field("Output", description="Associated type of the future trait bound to the return type.")
  lint_exempt_bounds: List[str] = Field(
    default_factory=lambda: ["Send"],
    description="Bounds (last path segment) that suppress the async-fn-in-trait lint on the original trait.",
  )
  suppressed_lint: str = Field("async_fn_in_trait", description="Lint allowed on the original trait.")
  blanket_type: str = Field("TraitVariantBlanketType", description="Stem of the bridge's blanket type parameter.")
  self_alias: str = Field("__self", description="Stem of the receiver alias in adapted default bodies.")
  self_lifetime: str = Field("the_self_lt", description="Stem of the lifetime bound to a borrowed receiver.")
  bridge_lifetime: str = Field("s", description="Stem of the higher-ranked lifetime in the bridge where-clause.")
  attribute_paths: List[str] = Field(
    default_factory=lambda: ["trait_variant::make", "make"],
    description="Attribute paths recognised by the source scanner.",
  )

  @field_validator("lint_exempt_bounds", "attribute_paths", mode="before")
  @classmethod
  def split_lists(cls, v: Any) -> Any:
    """
    Accepts comma-separated strings for list fields (as given on the command line).

    Args:
        v (Any): Raw value.

    Returns:
        Any: A list of stripped, non-empty strings when `v` is a string.
    """
    if isinstance(v, str):
      return [part.strip() for part in v.split(",") if part.strip()]
    return v

  @field_validator("self_alias", "blanket_type", "self_lifetime", "bridge_lifetime")
  @classmethod
  def validate_stem(cls, v: str) -> str:
    stem = v.strip().lstrip("'")
    if not stem or not (stem[0].isalpha() or stem[0] == "_") or not stem.replace("_", "a").isalnum():
      raise ValueError(f"Not a valid identifier stem: '{v}'")
    return stem

  @classmethod
  def load(cls, overrides: Optional[Dict[str, Any]] = None, search_path: Optional[Path] = None) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and applies overrides.

    Args:
        overrides (Optional[Dict]): Values taking precedence over the TOML table.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    toml_config, _ = _load_toml_settings(search_path or Path.cwd())
    merged = {**toml_config, **(overrides or {})}

    unknown = sorted(set(merged) - set(cls.model_fields))
    for key in unknown:
      log_warning(f"Ignoring unknown config key '{key}'.")
      merged.pop(key)

    return cls(**merged)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches parents for 'pyproject.toml' and extracts the `[tool.trait_variant]` table.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        log_warning(f"Could not read {toml_path}: {e}")
        return {}, None
      return data.get("tool", {}).get("trait_variant", {}), parent

  return {}, None


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Booleans and integers are inferred; everything else stays a string.

  Args:
      items (Optional[List[str]]): List of raw CLI strings directly from argparse.

  Returns:
      Dict[str, Any]: Parsed dictionary.
  """
  if not items:
    return {}

  config: Dict[str, Any] = {}
  for item in items:
    if "=" not in item:
      log_warning(f"Ignoring invalid config format: '{item}'. Expected 'key=value'.")
      continue

    key, val_str = item.split("=", 1)
    key = key.strip()
    val_str = val_str.strip()

    final_val: Any = val_str
    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    else:
      try:
        final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config
