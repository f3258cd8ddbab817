"""Topologies, bitmask footprints, group signatures and greedy merge search for switch-pair grouping."""

__version__ = "0.1.0"

__all__ = ["bitset", "hashing", "topology", "merging"]