"""Query workloads for the two ternary-search-tree searches.

- Wildcard patterns for `TSTMap.partial_match`: characters of a stored key are
  replaced by `WILDCARD` with probability `wildcard_p`.
- Typo queries for `TSTMap.near_search`: up to `max_typos` characters of a key
  are substituted with a different character from `alphabet`.
"""

import random
import string
from dataclasses import dataclass
from typing import List, Optional

from tst.tst_map import WILDCARD


@dataclass
class QueryConfig:
  """
  Configuration for QueryGenerator
      wildcard_p: float, per-character probability of a wildcard in a pattern
      max_typos: int, upper bound of substituted characters per typo query
      alphabet: str, replacement characters for typos
      seed: int, seed for random number generator
  """
  wildcard_p: float = 0.3
  max_typos: int = 1
  alphabet: str = string.ascii_lowercase
  seed: Optional[int] = None

  def __post_init__(self):
    if not 0.0 <= self.wildcard_p <= 1.0:
      raise ValueError("wildcard_p must be between 0 and 1")
    if self.max_typos < 0:
      raise ValueError("max_typos must be >= 0")
    if len(set(self.alphabet)) < 2:
      raise ValueError("alphabet needs at least 2 distinct characters")
    if WILDCARD in self.alphabet:
      raise ValueError(f"alphabet must not contain the wildcard {WILDCARD!r}")


def make_pattern(word, rng, wildcard_p):
  """Replace each character of `word` with WILDCARD with probability wildcard_p."""
  return "".join(WILDCARD if rng.random() < wildcard_p else c for c in word)


def make_typo(word, rng, typos, alphabet):
  """Substitute `typos` distinct positions of `word` (capped at len(word))."""
  chars = list(word)
  for pos in rng.sample(range(len(chars)), min(typos, len(chars))):
    chars[pos] = rng.choice([a for a in alphabet if a != chars[pos]])
  return "".join(chars)


class QueryGenerator:
  def __init__(self, config: QueryConfig):
    self.config = config
    self.rng = random.Random(config.seed)

  def patterns(self, words) -> List[str]:
    return [make_pattern(w, self.rng, self.config.wildcard_p) for w in words if w]

  def typos(self, words) -> List[str]:
    cfg = self.config
    return [make_typo(w, self.rng, self.rng.randint(0, cfg.max_typos), cfg.alphabet)
            for w in words if w]
