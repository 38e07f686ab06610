#!/usr/bin/env python3
import string

from components.work_loads.word_generator import generate_random_words, gen_words_with_prefix_freq
from components.work_loads.ip_generator import IPGenerator, IPConfig
from components.work_loads.query_generator import QueryGenerator, QueryConfig


class WorkLoad:
    def __init__(self, seed=None):
        self.seed = seed

    def words(self, num_words, p_freq=0, unique=False):
        if p_freq > 0:
            return gen_words_with_prefix_freq(num_words, p_freq, self.seed, unique)
        else:
            return generate_random_words(num_words, self.seed, unique)

    def ips(self, num_ips, unique=False):
        return IPGenerator(IPConfig(seed=self.seed)).batch(num_ips, unique=unique)

    def pairs(self, keys):
        """Pair every key with its position, the value stored in the map."""
        return [(k, i) for i, k in enumerate(keys)]

    def patterns(self, keys, wildcard_p=0.3):
        return QueryGenerator(QueryConfig(wildcard_p=wildcard_p, seed=self.seed)).patterns(keys)

    def typos(self, keys, max_typos=1, alphabet=string.ascii_lowercase):
        cfg = QueryConfig(max_typos=max_typos, alphabet=alphabet, seed=self.seed)
        return QueryGenerator(cfg).typos(keys)
