"""Clos and Dragonfly topologies with per-pair switch footprints."""

from __future__ import annotations

import time
from collections import Counter, defaultdict, deque
from collections.abc import Sequence
from dataclasses import dataclass

from .bitset import iter_bits, popcount
from .hashing import GroupKey, singleton_key


@dataclass(frozen=True)
class ClosMeta:
    """Shape of a two-tier Clos fabric with ``k`` pods."""

    k: int
    num_tors: int
    num_aggs: int
    tors_per_pod: int
    switch_group: tuple[int, ...]


@dataclass(frozen=True)
class DragonflyMeta:
    """Shape and path statistics of a canonical Dragonfly."""

    groups: int
    routers_per_group: int
    global_links_per_router: int
    path_lengths: dict[int, int]
    footprint_sizes: dict[int, int]
    router_group: tuple[int, ...]


@dataclass
class Topology:
    """Directed switch pairs, each with the set of switches its shortest paths touch."""

    name: str
    num_switches: int
    pairs: list[tuple[int, int]]
    footprints: list[int]
    pair_keys: list[GroupKey]
    meta: ClosMeta | DragonflyMeta

    def group_count(self) -> int:
        """Number of pods (Clos) or router groups (Dragonfly)."""
        if isinstance(self.meta, DragonflyMeta):
            return self.meta.groups
        return self.meta.k

    def switch_groups(self) -> tuple[int, ...]:
        """Pod or router group of every switch."""
        if isinstance(self.meta, DragonflyMeta):
            return self.meta.router_group
        return self.meta.switch_group


def build_clos(k: int) -> Topology:
    """Build a Clos fabric with ``k`` pods of ``k/2`` ToRs and ``k/2`` aggregation switches."""
    if k < 4 or k % 2 != 0:
        raise ValueError("--k must be an even integer >= 4")

    tors_per_pod = k // 2
    num_tors = k * tors_per_pod
    num_aggs = k * tors_per_pod
    num_switches = num_tors + num_aggs
    switch_group = tuple(i // tors_per_pod for i in range(num_tors)) + tuple(
        i // tors_per_pod for i in range(num_aggs)
    )
    pod_aggs = [
        sum(1 << (num_tors + pod * tors_per_pod + a) for a in range(tors_per_pod))
        for pod in range(k)
    ]

    pairs: list[tuple[int, int]] = []
    footprints: list[int] = []
    pair_keys: list[GroupKey] = []
    for s in range(num_tors):
        sp = s // tors_per_pod
        for d in range(num_tors):
            dp = d // tors_per_pod
            if sp == dp:
                continue
            pairs.append((s, d))
            footprints.append((1 << s) | (1 << d) | pod_aggs[sp] | pod_aggs[dp])
            pair_keys.append(singleton_key([s % tors_per_pod, d % tors_per_pod]))

    return Topology(
        name=f"clos-k{k}",
        num_switches=num_switches,
        pairs=pairs,
        footprints=footprints,
        pair_keys=pair_keys,
        meta=ClosMeta(k, num_tors, num_aggs, tors_per_pod, switch_group),
    )


def clos_caps(
    topo: Topology,
    m3: int,
    tor_cap_override: int | None,
    agg_cap_override: int | None,
) -> list[int]:
    """Per-switch capacities for a Clos topology: ToRs first, then aggregation switches."""
    meta = topo.meta
    if not isinstance(meta, ClosMeta):
        raise TypeError("not a Clos topology")
    k = meta.k
    tor_cap = tor_cap_override if tor_cap_override is not None else m3 * (k * k // 2 + k)
    agg_cap = agg_cap_override if agg_cap_override is not None else m3 * k * k
    return [tor_cap] * meta.num_tors + [agg_cap] * (topo.num_switches - meta.num_tors)


def bfs(adj: Sequence[Sequence[int]], src: int) -> list[int]:
    """Hop distances from ``src``; unreachable nodes get -1."""
    dist = [-1] * len(adj)
    dist[src] = 0
    queue = deque([src])
    while queue:
        u = queue.popleft()
        for v in adj[u]:
            if dist[v] < 0:
                dist[v] = dist[u] + 1
                queue.append(v)
    return dist


def build_dragonfly(
    groups: int,
    routers_per_group: int,
    global_links_per_router: int,
    build_log_every: int,
) -> Topology:
    """Build a canonical Dragonfly and the shortest-path footprint of every router pair."""
    if groups < 1 or groups - 1 != routers_per_group * global_links_per_router:
        raise ValueError(
            "canonical dragonfly requires groups - 1 == routers_per_group * global_links_per_router"
        )
    a = routers_per_group
    n = groups * a
    router_group = tuple(i // a for i in range(n))

    def endpoint_idx(delta: int) -> int:
        return (delta - 1) // global_links_per_router

    neighbours: list[set[int]] = [set() for _ in range(n)]
    for group in range(groups):
        base = group * a
        for i in range(a):
            for j in range(i + 1, a):
                neighbours[base + i].add(base + j)
                neighbours[base + j].add(base + i)
    for g1 in range(groups):
        for g2 in range(g1 + 1, groups):
            delta = (g2 - g1) % groups
            u = g1 * a + endpoint_idx(delta)
            v = g2 * a + endpoint_idx(groups - delta)
            neighbours[u].add(v)
            neighbours[v].add(u)
    adj = [sorted(ns) for ns in neighbours]

    start = time.perf_counter()
    all_dist = []
    for src in range(n):
        all_dist.append(bfs(adj, src))
        if build_log_every > 0 and (src + 1) % build_log_every == 0:
            print(f"build: bfs {src + 1}/{n} elapsed_s={time.perf_counter() - start:.1f}")

    pairs: list[tuple[int, int]] = []
    footprints: list[int] = []
    pair_keys: list[GroupKey] = []
    path_lengths: Counter[int] = Counter()
    footprint_sizes: Counter[int] = Counter()
    total_pairs = n * (n - 1)

    for s, ds in enumerate(all_dist):
        for d, dd in enumerate(all_dist):
            if s == d:
                continue
            shortest = ds[d]
            fp = 0
            for v, (to_s, to_d) in enumerate(zip(ds, dd)):
                if to_s >= 0 and to_d >= 0 and to_s + to_d == shortest:
                    fp |= 1 << v
            path_lengths[shortest] += 1
            footprint_sizes[popcount(fp)] += 1
            pairs.append((s, d))
            footprints.append(fp)

            sg, dg = router_group[s], router_group[d]
            si, di = s % a, d % a
            if sg == dg:
                fields = [0, si, di]
            else:
                delta = (dg - sg) % groups
                fields = [1, delta, si, di, endpoint_idx(delta), endpoint_idx(groups - delta)]
            pair_keys.append(singleton_key(fields))
            if build_log_every > 0 and len(pairs) % build_log_every == 0:
                print(
                    f"build: footprints {len(pairs)}/{total_pairs} "
                    f"elapsed_s={time.perf_counter() - start:.1f}"
                )

    return Topology(
        name=f"dragonfly-g{groups}-a{routers_per_group}-h{global_links_per_router}",
        num_switches=n,
        pairs=pairs,
        footprints=footprints,
        pair_keys=pair_keys,
        meta=DragonflyMeta(
            groups=groups,
            routers_per_group=routers_per_group,
            global_links_per_router=global_links_per_router,
            path_lengths=dict(sorted(path_lengths.items())),
            footprint_sizes=dict(sorted(footprint_sizes.items())),
            router_group=router_group,
        ),
    )


def dragonfly_natural_usage(topo: Topology, group_size_limit: int) -> list[int]:
    """Switch usage when pairs are grouped by (source router, destination group)."""
    meta = topo.meta
    if not isinstance(meta, DragonflyMeta):
        raise TypeError("not a Dragonfly topology")
    by_key: defaultdict[tuple[int, int], list[int]] = defaultdict(list)
    for pid, (s, d) in enumerate(topo.pairs):
        by_key[(s, meta.router_group[d])].append(pid)

    usage = [0] * topo.num_switches
    for pids in by_key.values():
        count = max(-(-len(pids) // group_size_limit), 1)
        fp = 0
        for pid in pids:
            fp |= topo.footprints[pid]
        for v in iter_bits(fp):
            if v < topo.num_switches:
                usage[v] += count
    return usage


def _dragonfly_shift(topo: Topology, meta: DragonflyMeta, pid: int, shift: int) -> int | None:
    a = meta.routers_per_group
    s, d = topo.pairs[pid]
    shifted_s = ((s // a + shift) % meta.groups) * a + s % a
    shifted_d = ((d // a + shift) % meta.groups) * a + d % a
    if shifted_s == shifted_d:
        return None
    offset = shifted_d if shifted_d < shifted_s else shifted_d - 1
    return shifted_s * (topo.num_switches - 1) + offset


def _clos_shift(meta: ClosMeta, pair: tuple[int, int], shift: int) -> int | None:
    tpp = meta.tors_per_pod
    s, d = pair
    shifted_sp = (s // tpp + shift) % meta.k
    shifted_dp = (d // tpp + shift) % meta.k
    if shifted_sp == shifted_dp:
        return None
    shifted_s = shifted_sp * tpp + s % tpp
    shifted_d = shifted_dp * tpp + d % tpp
    per_source = meta.num_tors - tpp
    skipped_start = shifted_sp * tpp
    dst_rank = shifted_d if shifted_d < skipped_start else shifted_d - tpp
    return shifted_s * per_source + dst_rank


def shift_pair_id(topo: Topology, pid: int, shift: int) -> int | None:
    """Index of the pair obtained by rotating both endpoints ``shift`` groups/pods."""
    meta = topo.meta
    if isinstance(meta, DragonflyMeta):
        return _dragonfly_shift(topo, meta, pid, shift)
    return _clos_shift(meta, topo.pairs[pid], shift)


def shifted_members(topo: Topology, members: Sequence[int], shift: int) -> tuple[int, ...] | None:
    """Sorted shifted pair indices of ``members``, or None if any pair has no counterpart."""
    out = []
    for pid in members:
        shifted = shift_pair_id(topo, pid, shift)
        if shifted is None:
            return None
        out.append(shifted)
    return tuple(sorted(out))