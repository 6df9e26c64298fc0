"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Sample Rust trait sources shared across test modules.
- Console isolation so CLI tests do not leak handlers.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'trait_variant' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from trait_variant.utils.console import reset_console  # noqa: E402

FACTORY = """trait Factory {
    async fn make(&self) -> i32;
    fn call(&self) -> u32;
}"""

DEFAULTED = """trait Counter {
    async fn bump(&self, x: u32, mut y: String) -> u32 {
        self.base() + x
    }
    fn base(&self) -> u32;
}"""

GENERIC = """pub trait Store<'a, T: Clone, const N: usize = 4>
where
    T: 'a,
{
    const CAP: usize;
    type Item<'x>: Send
    where
        Self: 'x;
    async fn get(&self, key: &'a T) -> Option<T>;
}"""


@pytest.fixture
def factory_src() -> str:
  return FACTORY


@pytest.fixture
def defaulted_src() -> str:
  return DEFAULTED


@pytest.fixture
def generic_src() -> str:
  return GENERIC


@pytest.fixture(autouse=True)
def isolate_console():
  """Restores the default console after each test that swapped it."""
  yield
  reset_console()
