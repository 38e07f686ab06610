"""
Ternary Search Tree map (string keys -> arbitrary values) with wildcard and
near-neighbor search.

A ternary search tree combines the space efficiency of a binary search tree
with the per-character descent of a digital trie: every node tests one
character (`splitchar`) and has three children, `lokid` / `hikid` for keys
whose character *at this depth* sorts before / after it, and `eqkid` for keys
that share it and continue one character deeper.

Key design choices:
- **Memory efficiency:** `TSTNode` uses `__slots__`; a node carries its
  character, the collation key of that character, three child links and a value
  slot. Absent values are marked with a private sentinel so `None` can be stored.
- **Pluggable ordering:** the map takes a `collate` callable applied to each
  character before comparing (e.g. `str.casefold` for case-insensitive keys).
  Characters with equal collation keys share a node.
- **Lazy deletion:** `remove` only clears a node's value (a tombstone). Nodes are
  never pruned, so repeated insert/remove cycles over the same key set reuse
  the same structure. Nodes are reclaimed by `clear()` only.
- **Iterative traversals:** every walk (teardown, traversal, partial-match and
  near-neighbor search) runs on an explicit stack with a shared mutable path
  buffer, so neither key length nor tree shape can hit the recursion limit.


Classes
-------
TSTNode
    One character position along the keys that share a prefix.
TSTMap
    Public API: insert / index / find / remove, traversal, partial-match and
    near-neighbor search, copy / assign / swap.


Complexity (typical)
--------------------
Let L be the key length and A the alphabet size.
- insert / find / remove: O(L + log A) on a reasonably balanced character mix
- traversal: O(#nodes)
- partial_match: O(#nodes) worst case (all wildcards), far less in practice
- near_search: grows with the mismatch budget; budget 0 costs as much as find


Conventions & Notes
-------------------
- **Empty string:** `""` is never stored. Inserting it is a silent no-op and
  looking it up always misses.
- **Traversal order:** keys are emitted in ascending collation order of their
  first differing character, except that a key is emitted only *after* every
  longer key it is a prefix of ("dogma" before "dog").
- **Wildcard:** `WILDCARD` (".") matches any single character in
  `partial_match`. A literal "." in a pattern cannot be matched exactly.
- **Thread safety:** none. Callers must not mutate a map (insert, index,
  remove, clear, assign, swap) while another thread reads it, and must not
  mutate it while iterating over it.
"""

import logging


logger = logging.getLogger(__name__)

WILDCARD = "."

_EMPTY = object()

# Explicit-stack work items
_VISIT, _DESCEND, _EMIT = 0, 1, 2


class TSTNode:
  __slots__ = ("splitchar", "splitkey", "lokid", "eqkid", "hikid", "value")

  def __init__(self, splitchar, splitkey):
    self.splitchar = splitchar
    self.splitkey = splitkey
    self.lokid = None
    self.eqkid = None
    self.hikid = None
    self.value = _EMPTY

  def has_value(self):
    return self.value is not _EMPTY


def _check_str(name, s):
  if not isinstance(s, str):
    raise TypeError(f"{name} must be str, not {type(s).__name__}")


class TSTMap:
  """A ternary search tree mapping string keys to arbitrary values.

  >>> m = TSTMap()
  >>> m.insert("cat", 1)
  1
  >>> m["car"] = 2
  >>> m.find("cat")
  1
  >>> m.partial_match("ca.")
  [('car', 2), ('cat', 1)]
  >>> m.near_search("cab", 1)
  [('car', 2), ('cat', 1)]
  """

  __slots__ = ("_root", "_size", "_collate", "default_factory")

  def __init__(self, items=None, *, collate=None, default_factory=None):
    """Create a map, optionally filled from `items`.

    Parameters
    ----------
    items : Mapping[str, Any] | Iterable[tuple[str, Any]] | None
        Initial entries, inserted in iteration order.
    collate : Callable[[str], Any] | None, default=None
        Collation key applied to every character before comparison. None means
        natural code-point ordering.
    default_factory : Callable[[], Any] | None, default=None
        Produces the value `index` stores for an absent key.
    """
    self._root = None
    self._size = 0
    self._collate = collate
    self.default_factory = default_factory
    if items is not None:
      self.update(items)

  def _key(self, ch):
    collate = self._collate
    return ch if collate is None else collate(ch)

  # ------------------------------------------------------------------
  # Insert / lookup / removal
  # ------------------------------------------------------------------

  def _locate(self, key, create):
    """Return the node where `key` terminates, or None.

    With `create=True` the missing path nodes are built on the way down, so
    the result is None only for the empty key.
    """
    if not key:
      return None
    k = self._key
    last = len(key) - 1
    i = 0
    ch = key[0]
    ck = k(ch)
    parent, slot = None, None
    node = self._root

    while True:
      if node is None:
        if not create:
          return None
        node = TSTNode(ch, ck)
        if parent is None:
          self._root = node
        else:
          setattr(parent, slot, node)

      if ck < node.splitkey:
        parent, slot, node = node, "lokid", node.lokid
      elif node.splitkey < ck:
        parent, slot, node = node, "hikid", node.hikid
      else:
        if i == last:
          return node
        i += 1
        ch = key[i]
        ck = k(ch)
        parent, slot, node = node, "eqkid", node.eqkid

  def insert(self, key, value):
    """Insert `key` with `value`, overwriting the value if `key` exists.

    Parameters
    ----------
    key : str
        Key to store. The empty string is ignored.
    value : Any
        Payload stored at the key's terminal node.

    Returns
    -------
    Any
        The stored value, or None when `key` is empty and nothing was stored.

    Notes
    -----
    - Creates one node per novel (depth, character) pair along the path.
    - The live count only grows when the key had no value yet.

    Complexity
    ----------
    O(L + log A) time, O(new_nodes) space where L = len(key).
    """
    _check_str("key", key)
    node = self._locate(key, create=True)
    if node is None:
      logger.debug("Ignoring insert of empty key")
      return None
    if node.value is _EMPTY:
      self._size += 1
    node.value = value
    return value

  def insert_pair(self, pair):
    """Insert a `(key, value)` tuple."""
    key, value = pair
    return self.insert(key, value)

  def update(self, items):
    """Insert every entry of a mapping or an iterable of `(key, value)` pairs."""
    if hasattr(items, "items"):
      items = items.items()
    for key, value in items:
      self.insert(key, value)

  def index(self, key):
    """Return the value for `key`, storing a default value first if absent.

    The default comes from `default_factory` (None when no factory is set).
    For the empty key a fresh default is returned without being stored.
    """
    _check_str("key", key)
    node = self._locate(key, create=True)
    factory = self.default_factory
    if node is None:
      logger.debug("Ignoring index of empty key")
      return factory() if factory is not None else None
    if node.value is _EMPTY:
      node.value = factory() if factory is not None else None
      self._size += 1
    return node.value

  def find(self, key, default=None):
    """Return the value stored for `key`, or `default` if absent.

    A key is absent when the descent runs off a missing child or ends on a
    node that only exists as a prefix of longer keys.
    """
    _check_str("key", key)
    node = self._locate(key, create=False)
    if node is None or node.value is _EMPTY:
      return default
    return node.value

  get = find

  def remove(self, key):
    """Clear the value stored for `key`. Returns True if `key` was present.

    The node stays in the tree as a path segment (tombstone); only `clear()`
    reclaims nodes.
    """
    _check_str("key", key)
    node = self._locate(key, create=False)
    if node is None or node.value is _EMPTY:
      return False
    node.value = _EMPTY
    self._size -= 1
    return True

  erase = remove

  def clear(self):
    """Destroy every node (post-order, iterative) and reset the live count."""
    stack = [(self._root, False)] if self._root is not None else []
    while stack:
      node, children_done = stack.pop()
      if not children_done:
        stack.append((node, True))
        for child in (node.hikid, node.eqkid, node.lokid):
          if child is not None:
            stack.append((child, False))
        continue
      if node.value is not _EMPTY:
        node.value = _EMPTY
        self._size -= 1
      node.lokid = node.eqkid = node.hikid = None
    self._root = None
    logger.debug("Cleared map")

  def size(self):
    return self._size

  def empty(self):
    return self._size == 0

  # ------------------------------------------------------------------
  # Sorted traversal
  # ------------------------------------------------------------------

  def _walk(self):
    """Yield `(key, value)` for every stored key in traversal order.

    Per node: walk `lokid`, push `splitchar` and walk `eqkid`, emit the node's
    own key, then walk `hikid`. Every work item carries the depth of its
    node; the path buffer is truncated to that depth before it is extended,
    so `buf[:depth]` always holds the characters from the root to the parent.
    """
    if self._root is None:
      return
    buf = []
    to_str = "".join
    stack = [(_VISIT, self._root, 0)]

    while stack:
      op, node, depth = stack.pop()
      if op == _VISIT:
        if node.hikid is not None:
          stack.append((_VISIT, node.hikid, depth))
        if node.value is not _EMPTY:
          stack.append((_EMIT, node, depth))
        if node.eqkid is not None:
          stack.append((_DESCEND, node, depth))
        if node.lokid is not None:
          stack.append((_VISIT, node.lokid, depth))
      elif op == _DESCEND:
        buf[depth:] = []
        buf.append(node.splitchar)
        stack.append((_VISIT, node.eqkid, depth + 1))
      else:
        yield to_str(buf[:depth]) + node.splitchar, node.value

  def for_each(self, visitor):
    """Call `visitor(key, value)` for every stored key in traversal order."""
    for key, value in self._walk():
      visitor(key, value)

  def to_sequence(self):
    """Return every `(key, value)` pair as a list, in traversal order."""
    return list(self._walk())

  def items(self):
    return self._walk()

  def keys(self):
    for key, _ in self._walk():
      yield key

  def values(self):
    for _, value in self._walk():
      yield value

  def count_nodes(self, get_avg_branch_factor=False):
    """Return total node count, or average branching factor over internal nodes.

    Tombstoned nodes are counted: the node count only shrinks on `clear()`.

    Parameters
    ----------
    get_avg_branch_factor : bool, default=False
        If False, return the total node count.
        If True, return the average number of non-empty child links over
        nodes that have at least one.

    Returns
    -------
    int | float
    """
    total_nodes = 0
    internal = 0
    total_deg = 0

    stack = [self._root] if self._root is not None else []
    while stack:
      node = stack.pop()
      total_nodes += 1
      deg = 0
      for child in (node.lokid, node.eqkid, node.hikid):
        if child is not None:
          deg += 1
          stack.append(child)
      if deg:
        total_deg += deg
        internal += 1
    if get_avg_branch_factor:
      return (total_deg / internal) if internal else 0.0
    return total_nodes

  # ------------------------------------------------------------------
  # Searches
  # ------------------------------------------------------------------

  def partial_match(self, pattern):
    """Return every `(key, value)` whose key matches `pattern`.

    `WILDCARD` matches any single character; every other character must match
    exactly under the map's collation. Only keys of exactly `len(pattern)`
    characters can match.

    Parameters
    ----------
    pattern : str
        Pattern to match. An empty pattern matches nothing.

    Returns
    -------
    list[tuple[str, Any]]
        Matches in traversal order.
    """
    _check_str("pattern", pattern)
    out = []
    if not pattern or self._root is None:
      return out

    k = self._key
    keys = [None if c == WILDCARD else k(c) for c in pattern]
    last = len(pattern) - 1
    buf = []
    stack = [(_VISIT, self._root, 0)]

    while stack:
      op, node, i = stack.pop()
      if op == _VISIT:
        ck = keys[i]
        sk = node.splitkey
        if node.hikid is not None and (ck is None or sk < ck):
          stack.append((_VISIT, node.hikid, i))
        if ck is None or not (ck < sk or sk < ck):
          stack.append((_DESCEND, node, i))
        if node.lokid is not None and (ck is None or ck < sk):
          stack.append((_VISIT, node.lokid, i))
      else:
        buf[i:] = []
        buf.append(node.splitchar)
        if i == last:
          if node.value is not _EMPTY:
            out.append(("".join(buf), node.value))
        elif node.eqkid is not None:
          stack.append((_VISIT, node.eqkid, i + 1))
    return out

  def near_search(self, pattern, max_mismatches):
    """Return keys within `max_mismatches` character substitutions of `pattern`.

    Walk
    ----
    - `lokid` / `hikid` are explored while budget remains, or when the
      pattern character already sorts to that side.
    - `eqkid` is always explored; the pattern advances by one character (unless
      exhausted) and one unit of budget is charged when the node's character
      differs from the pattern character. An exhausted pattern sorts before
      every character and matches none.
    - A node holding a value is reported when the unconsumed rest of the
      pattern is no longer than the budget left after charging that node, so
      length differences cost one unit per character.

    Parameters
    ----------
    pattern : str
    max_mismatches : int
        Mismatch budget. Negative budgets yield nothing; 0 is an exact match.

    Returns
    -------
    list[tuple[str, Any]]
        Matches in traversal order.
    """
    _check_str("pattern", pattern)
    if not isinstance(max_mismatches, int):
      raise TypeError(
        f"max_mismatches must be int, not {type(max_mismatches).__name__}")
    out = []
    if max_mismatches < 0 or self._root is None:
      return out

    k = self._key
    keys = [k(c) for c in pattern]
    n = len(pattern)
    buf = []
    stack = [(_VISIT, self._root, 0, max_mismatches, 0)]

    while stack:
      op, node, i, d, depth = stack.pop()
      sk = node.splitkey
      if i < n:
        ck = keys[i]
        lo = ck < sk
        hi = sk < ck
        nd = d if not (lo or hi) else d - 1
        ni = i + 1
      else:
        lo, hi = True, False
        nd = d - 1
        ni = i

      if op == _VISIT:
        if node.hikid is not None and (d > 0 or hi):
          stack.append((_VISIT, node.hikid, i, d, depth))
        if node.value is not _EMPTY and n - ni <= nd:
          stack.append((_EMIT, node, i, d, depth))
        if node.eqkid is not None and nd >= 0:
          stack.append((_DESCEND, node, i, d, depth))
        if node.lokid is not None and (d > 0 or lo):
          stack.append((_VISIT, node.lokid, i, d, depth))
      elif op == _DESCEND:
        buf[depth:] = []
        buf.append(node.splitchar)
        stack.append((_VISIT, node.eqkid, ni, nd, depth + 1))
      else:
        out.append(("".join(buf[:depth]) + node.splitchar, node.value))
    return out

  # ------------------------------------------------------------------
  # Copy / assign / swap
  # ------------------------------------------------------------------

  def assign(self, other, convert=None):
    """Replace this map's contents with `other`'s.

    Clears this map, then reinserts every entry of `other` in `other`'s
    traversal order. `convert`, when given, maps each source value first, so a
    map of one value type can be assigned from another. Assigning a map to
    itself is a no-op.

    Returns
    -------
    TSTMap
        self
    """
    if other is self:
      return self
    self.clear()
    for key, value in other.items():
      self.insert(key, value if convert is None else convert(value))
    logger.debug("Assigned %d entries", self._size)
    return self

  def copy(self):
    """Return an independent map holding the same entries (values are shared)."""
    dup = TSTMap(collate=self._collate, default_factory=self.default_factory)
    return dup.assign(self)

  __copy__ = copy

  def swap(self, other):
    """Exchange contents with `other` in O(1), without copying elements."""
    self._root, other._root = other._root, self._root
    self._size, other._size = other._size, self._size
    self._collate, other._collate = other._collate, self._collate

  # ------------------------------------------------------------------
  # Mapping protocol
  # ------------------------------------------------------------------

  def __len__(self):
    return self._size

  def __bool__(self):
    return self._size != 0

  def __contains__(self, key):
    if not isinstance(key, str):
      return False
    node = self._locate(key, create=False)
    return node is not None and node.value is not _EMPTY

  def __iter__(self):
    return self.keys()

  def __getitem__(self, key):
    if self.default_factory is not None:
      return self.index(key)
    _check_str("key", key)
    node = self._locate(key, create=False)
    if node is None or node.value is _EMPTY:
      raise KeyError(key)
    return node.value

  def __setitem__(self, key, value):
    self.insert(key, value)

  def __delitem__(self, key):
    if not self.remove(key):
      raise KeyError(key)

  def __eq__(self, other):
    if not isinstance(other, TSTMap):
      return NotImplemented
    return self._size == other._size and self.to_sequence() == other.to_sequence()

  __hash__ = None

  def __repr__(self):
    return f"{type(self).__name__}({self.to_sequence()!r})"


def swap(lhs, rhs):
  """Exchange the contents of two maps in O(1)."""
  lhs.swap(rhs)
