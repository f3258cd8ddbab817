# unitmerge

Building blocks for packing the directed switch pairs of a datacenter
topology into groups so that no switch serves more groups than its
capacity allows.

Every directed pair starts out as its own group. Each group has a
footprint: the set of switches on its shortest paths, stored as an
integer bitmask. A switch's usage is the number of active groups whose
footprint contains it. Merging two groups that share overloaded
switches lowers the usage of those switches.

The package needs nothing beyond the Python standard library (3.10 or
newer).

```
pip install .
```

## Modules

### `unitmerge.bitset`

* `iter_bits(mask)` yields the indices of the set bits, lowest first.
* `popcount(mask)` counts the set bits.

Both raise `ValueError` for negative masks.

### `unitmerge.hashing`

Group signatures that do not depend on the order of merging.

* `GroupKey(size, h1, h2)` is a frozen dataclass.
* `mix64(x)` and `hash_fields(fields, seed)` are 64-bit mixing hashes.
* `singleton_key(fields)` builds the key of a one-pair group.
* `merge_key(a, b)` adds two keys together, wrapping at 64 bits.

### `unitmerge.topology`

* `build_clos(k)` builds a two-tier Clos fabric. It has `k` pods, and
  each pod holds `k/2` ToRs and `k/2` aggregation switches. Only pairs
  of ToRs in different pods are included. `k` must be an even integer
  of at least 4, otherwise `ValueError` is raised.
* `clos_caps(topo, m3, tor_cap_override, agg_cap_override)` gives the
  per-switch capacities. The defaults are `m3 * (k*k/2 + k)` for ToRs
  and `m3 * k*k` for aggregation switches.
* `build_dragonfly(groups, routers_per_group, global_links_per_router,
  build_log_every)` builds a canonical Dragonfly. Inside a group every
  router links to every other router, and each pair of groups has
  exactly one global link. The arguments must satisfy
  `groups - 1 == routers_per_group * global_links_per_router`. When
  `build_log_every > 0`, build progress is printed.
* `dragonfly_natural_usage(topo, group_size_limit)` gives the switch
  usage when pairs with the same source router and destination group
  are grouped together, in chunks of at most `group_size_limit`.
* `bfs(adj, src)` returns hop distances, with -1 for nodes that cannot
  be reached.
* `shift_pair_id(topo, pid, shift)` and
  `shifted_members(topo, members, shift)` map pairs to their
  counterparts under a cyclic shift of pods or groups. They return
  `None` when a pair has no counterpart.
* `Topology` holds `name`, `num_switches`, `pairs`, `footprints`,
  `pair_keys` and `meta`. `meta` is a `ClosMeta` or a `DragonflyMeta`.
  `group_count()` and `switch_groups()` give the number of pods or
  groups, and the pod or group of each switch.

### `unitmerge.merging`

* `MergeState.from_topology(topo, build_members_index)` starts with one
  active group per pair and keeps `usage`, the switch-to-group index
  `by_switch`, a signature index and, optionally, a members index in
  step.
* `merge(i, j)` replaces two groups with their union and returns the
  new group's index.
* `rebuild_index()` rebuilds `by_switch` from the active groups only.
* `recomputed_usage()` computes the usage from scratch.
* `active_by_key(key, limit)` and `find_active_by_members(members)`
  look up active groups by signature or by exact membership.
* `score_pair(g1, g2, usage, caps, group_size_limit)` returns a
  `ScoreKey`, or `None` if the merged group would be too large or the
  merge brings no gain. Larger scores are better.
* `best_candidate(...)` searches pairs of groups that share an
  overloaded switch. It returns a `CandidateResult` with the best merge
  and, optionally, the top alternatives.
* `total_overflow(usage, caps)` and `max_overflow(usage, caps)`
  summarise how far usage is above capacity.

## Example

```python
from unitmerge.topology import build_clos, clos_caps
from unitmerge.merging import MergeState, best_candidate, total_overflow

topo = build_clos(4)
caps = clos_caps(topo, 1, None, None)
state = MergeState.from_topology(topo, build_members_index=False)
limit = 2

while total_overflow(state.usage, caps) > 0:
    found = best_candidate(
        state.groups, state.by_switch, state.usage, caps,
        limit, 50_000, 1024, 0, None, None,
    )
    if found.best is None:
        break
    _, i, j = found.best
    state.merge(i, j)

print(total_overflow(state.usage, caps))
```

## What this package does not do

It has no command-line program. It offers no ready-made solver loop
with run configuration, signature batching or cyclic-shift orbit
merging. It also prints no summary reports and does not export groups
to CSV. The modules above provide the topology, the merge state and the
candidate search, and the caller drives the merging loop.