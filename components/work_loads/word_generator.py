import random
import math
from collections import defaultdict
from dataclasses import dataclass

from faker.providers.lorem.en_US import Provider as LoremProvider


@dataclass
class WordConfig:
  """
  Configuration for word key generation
      prefix_len: int, length of the prefix used to bucket words for clustering
      min_len: int, words shorter than this are left out of the vocabulary
  """
  prefix_len: int = 2
  min_len: int = 2

  def __post_init__(self):
    if self.prefix_len < 1:
      raise ValueError("prefix_len must be >= 1")
    if self.min_len < 1:
      raise ValueError("min_len must be >= 1")


def build_vocabulary(config=None):
  """Return (vocabulary, prefix_bucket) built from Faker's English word list.
  The vocabulary is deduplicated, lowercased and sorted so that seeded
  sampling is reproducible across runs."""
  config = config or WordConfig()
  vocab = sorted({w.lower() for w in LoremProvider.word_list if len(w) >= config.min_len})
  bucket = defaultdict(list)
  for word in vocab:
    bucket[word[:config.prefix_len]].append(word)
  return vocab, bucket


VOCABULARY, prefix_bucket = build_vocabulary()
prefixes = list(prefix_bucket.keys())
prefix_weights = [len(prefix_bucket[p]) for p in prefixes]


def generate_random_words(num_words, seed=None, unique=False):
  """
  Return n random words from VOCABULARY.
  - unique=False: sample with replacement (fast, allows duplicates)
  - unique=True: sample without replacement (requires n <= len(VOCABULARY))
  """
  if num_words < 1 or (unique is True and num_words > len(VOCABULARY)):
    raise ValueError(f"num_words must be between 1 and {len(VOCABULARY)}")
  rng = random.Random(seed)
  if unique:
    return rng.sample(VOCABULARY, num_words)
  return rng.choices(VOCABULARY, k=num_words)


def _p_eff_log(x, max_mean=100) -> float:
  # Logarithmic mapping of prefix frequency to effective prefix frequency
  if x < 0 or x > 1:
    raise ValueError("Prefix frequency must be between 0 and 1")
  x = max(0.0, min(0.999999, x))
  k = math.log(max_mean)
  p = 1.0 - math.exp(-k * x)
  return min(p, 0.999999)


def gen_words_with_prefix_freq(num_words, prefix_freq=0.0, seed=None, unique=False):
  """Generate words in runs that share a common prefix.
  A higher prefix_freq makes longer runs of words from the same prefix bucket,
  which produces deep shared `eqkid` chains in a ternary search tree.
  prefix_freq: 0 -> 0.999... (applied logarithmically)
  """
  p_run = _p_eff_log(prefix_freq)
  max_unique = int(len(VOCABULARY) // 1.1)
  if num_words < 1 or (unique is True and num_words > max_unique):
    raise ValueError(f"num_words must be between 1 and {max_unique}")
  rng = random.Random(seed)

  out = []
  seen = set()
  exhausted = set()

  while len(out) < num_words:
    prefix = rng.choices(prefixes, weights=prefix_weights)[0]
    if unique and prefix in exhausted:
      continue
    options = prefix_bucket[prefix]
    if unique:
      options = [w for w in options if w not in seen]
      if not options:
        exhausted.add(prefix)
        continue
    word = rng.choice(options)
    out.append(word)
    if unique:
      seen.add(word)

    # Keep drawing from the same bucket while the run continues
    while len(out) < num_words and rng.random() < p_run:
      options = prefix_bucket[prefix]
      if unique:
        options = [w for w in options if w not in seen]
        if not options:
          exhausted.add(prefix)
          break
      word = rng.choice(options)
      out.append(word)
      if unique:
        seen.add(word)
  return out
