"""Greedy merging of pair groups: state, scoring and candidate search."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from .bitset import iter_bits, popcount
from .hashing import GroupKey, merge_key
from .topology import Topology


@dataclass(slots=True)
class Group:
    """A set of directed pairs that share one forwarding entry."""

    size: int
    fp_count: int
    footprint: int
    members: tuple[int, ...]
    key: GroupKey
    active: bool = True


@dataclass(frozen=True, order=True)
class ScoreKey:
    """Merge quality; larger compares better, field by field."""

    squared_overflow_gain: int
    overflow_reduction: int
    new_size: int
    shared: int
    neg_union: int


Candidate = tuple[ScoreKey, int, int]


@dataclass
class CandidateResult:
    """Outcome of one candidate search."""

    best: Candidate | None
    alternatives: list[Candidate]
    considered: int
    overloaded_count: int
    searched_overloaded_count: int


@dataclass
class MergeState:
    """All groups ever created plus the usage and lookup indices kept in step with them."""

    num_switches: int
    groups: list[Group] = field(default_factory=list)
    usage: list[int] = field(default_factory=list)
    by_switch: list[list[int]] = field(default_factory=list)
    symmetry_index: defaultdict[GroupKey, list[int]] = field(
        default_factory=lambda: defaultdict(list)
    )
    members_index: defaultdict[tuple[int, ...], list[int]] | None = None

    @classmethod
    def from_topology(cls, topo: Topology, build_members_index: bool) -> MergeState:
        """Start with one active group per directed pair of ``topo``."""
        n = topo.num_switches
        state = cls(
            num_switches=n,
            usage=[0] * n,
            by_switch=[[] for _ in range(n)],
            members_index=defaultdict(list) if build_members_index else None,
        )
        for pid, (fp, key) in enumerate(zip(topo.footprints, topo.pair_keys)):
            gid = len(state.groups)
            for v in iter_bits(fp):
                if v < n:
                    state.usage[v] += 1
                    state.by_switch[v].append(gid)
            state.symmetry_index[key].append(gid)
            if state.members_index is not None:
                state.members_index[(pid,)].append(gid)
            state.groups.append(Group(1, popcount(fp), fp, (pid,), key))
        return state

    def _switches(self, footprint: int):
        return (v for v in iter_bits(footprint) if v < self.num_switches)

    def merge(self, i: int, j: int) -> int:
        """Replace groups ``i`` and ``j`` by their union; return the new group's index."""
        gi, gj = self.groups[i], self.groups[j]
        for v in self._switches(gi.footprint):
            self.usage[v] -= 1
        for v in self._switches(gj.footprint):
            self.usage[v] -= 1

        footprint = gi.footprint | gj.footprint
        members = tuple(sorted(gi.members + gj.members))
        gi.active = False
        gj.active = False

        new_gid = len(self.groups)
        for v in self._switches(footprint):
            self.usage[v] += 1
            self.by_switch[v].append(new_gid)
        group = Group(
            size=len(members),
            fp_count=popcount(footprint),
            footprint=footprint,
            members=members,
            key=merge_key(gi.key, gj.key),
        )
        self.groups.append(group)
        self.symmetry_index[group.key].append(new_gid)
        if self.members_index is not None:
            self.members_index[members].append(new_gid)
        return new_gid

    def rebuild_index(self) -> None:
        """Rebuild the switch-to-group index from the active groups only."""
        by_switch: list[list[int]] = [[] for _ in range(self.num_switches)]
        for gid, group in enumerate(self.groups):
            if group.active:
                for v in self._switches(group.footprint):
                    by_switch[v].append(gid)
        self.by_switch = by_switch

    def recomputed_usage(self) -> list[int]:
        """Switch usage computed from scratch over the active groups."""
        usage = [0] * self.num_switches
        for group in self.groups:
            if group.active:
                for v in self._switches(group.footprint):
                    usage[v] += 1
        return usage

    def active_by_key(self, key: GroupKey, limit: int) -> list[int]:
        """Up to ``limit`` active groups with signature ``key``, newest first."""
        out: list[int] = []
        for gid in reversed(self.symmetry_index.get(key, ())):
            if self.groups[gid].active:
                out.append(gid)
                if len(out) >= limit:
                    break
        return out

    def find_active_by_members(self, members: Sequence[int]) -> int | None:
        """The newest active group holding exactly ``members``, if any."""
        if self.members_index is None:
            return None
        members = tuple(members)
        for gid in reversed(self.members_index.get(members, ())):
            group = self.groups[gid]
            if group.active and group.members == members:
                return gid
        return None


def total_overflow(usage: Sequence[int], caps: Sequence[int]) -> int:
    """Sum of usage above capacity over all switches."""
    return sum(max(u - c, 0) for u, c in zip(usage, caps))


def max_overflow(usage: Sequence[int], caps: Sequence[int]) -> int:
    """Largest usage above capacity on any switch."""
    return max((max(u - c, 0) for u, c in zip(usage, caps)), default=0)


def score_pair(
    g1: Group,
    g2: Group,
    usage: Sequence[int],
    caps: Sequence[int],
    group_size_limit: int,
) -> ScoreKey | None:
    """Score merging two groups, or None if too large or it brings no gain."""
    new_size = g1.size + g2.size
    if new_size > group_size_limit:
        return None
    common = g1.footprint & g2.footprint
    shared = popcount(common)
    gain = 0
    reduction = 0
    for v in iter_bits(common):
        if v >= len(usage):
            continue
        over = usage[v] - caps[v]
        if over > 0:
            gain += 2 * over - 1
            reduction += 1
    if gain <= 0:
        return None
    union_count = g1.fp_count + g2.fp_count - shared
    return ScoreKey(gain, reduction, new_size, shared, -union_count)


def _finish_alternatives(alternatives: list[Candidate], limit: int) -> list[Candidate]:
    if limit == 0:
        return []
    return sorted(alternatives, key=lambda item: item[0], reverse=True)[:limit]


def best_candidate(
    groups: Sequence[Group],
    by_switch: Sequence[Sequence[int]],
    usage: Sequence[int],
    caps: Sequence[int],
    group_size_limit: int,
    candidate_limit: int | None,
    groups_per_switch: int,
    alternative_limit: int,
    representative_switch_group: int | None,
    switch_groups: Sequence[int] | None,
) -> CandidateResult:
    """Search pairs of groups sharing an overloaded switch for the best merge."""
    overloaded = [v for v, (u, c) in enumerate(zip(usage, caps)) if u > c]
    overloaded_count = len(overloaded)
    if not overloaded:
        return CandidateResult(None, [], 0, 0, 0)
    if representative_switch_group is not None and switch_groups is not None:
        overloaded = [
            v
            for v in overloaded
            if v < len(switch_groups) and switch_groups[v] == representative_switch_group
        ]
    searched = len(overloaded)
    if not overloaded:
        return CandidateResult(None, [], 0, overloaded_count, searched)
    overloaded.sort(key=lambda v: usage[v] - caps[v], reverse=True)

    per_switch_limit = (
        max(candidate_limit // len(overloaded) + 1, 64) if candidate_limit is not None else None
    )

    seen: set[tuple[int, int]] = set()
    considered = 0
    best: Candidate | None = None
    alternatives: list[Candidate] = []

    def result() -> CandidateResult:
        return CandidateResult(
            best,
            _finish_alternatives(alternatives, alternative_limit),
            considered,
            overloaded_count,
            searched,
        )

    for v in overloaded:
        idxs: list[int] = []
        for gid in reversed(by_switch[v]):
            g = groups[gid]
            if g.active and g.size < group_size_limit:
                idxs.append(gid)
                if len(idxs) >= groups_per_switch:
                    break
        idxs.sort(key=lambda gid: (groups[gid].size, groups[gid].fp_count, gid), reverse=True)

        added_for_switch = 0
        stop_switch = False
        for a_pos, i in enumerate(idxs):
            for j in idxs[a_pos + 1 :]:
                if groups[i].size + groups[j].size > group_size_limit:
                    continue
                pair = (i, j) if i < j else (j, i)
                if pair in seen:
                    continue
                seen.add(pair)
                considered += 1
                added_for_switch += 1
                score = score_pair(groups[i], groups[j], usage, caps, group_size_limit)
                if score is not None:
                    if alternative_limit > 0:
                        alternatives.append((score, i, j))
                    if best is None or score > best[0]:
                        best = (score, i, j)
                if candidate_limit is not None and considered >= candidate_limit:
                    return result()
                if per_switch_limit is not None and added_for_switch >= per_switch_limit:
                    stop_switch = True
                    break
            if stop_switch:
                break

    return result()