#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Turns hash buckets and accepted similar pairs into disjoint, ranked groups.
"""

import hashlib
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence

from .models.file_descriptor import FileDescriptor
from .models.results import DuplicateGroup, SimilarGroup, SimilarPair

logger = logging.getLogger(__name__)


class DisjointSet:
    """Union-find over integer indices with path compression and union by size."""

    def __init__(self, n: int = 0):
        self.parent: List[int] = list(range(n))
        self.size: List[int] = [1] * n

    def add(self) -> int:
        idx = len(self.parent)
        self.parent.append(idx)
        self.size.append(1)
        return idx

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> int:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        if self.size[ra] < self.size[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.size[ra] += self.size[rb]
        return ra


def pick_representative(files: Sequence[FileDescriptor]) -> FileDescriptor:
    """Earliest-modified member; ties keep the first one encountered."""
    return min(files, key=lambda f: f.modified_time)


def build_duplicate_groups(buckets: Mapping[str, Sequence[Path]],
                           files_by_path: Mapping[Path, FileDescriptor]) -> List[DuplicateGroup]:
    """One group per full-digest bucket, largest waste first."""
    groups: List[DuplicateGroup] = []
    for digest, paths in buckets.items():
        members = tuple(files_by_path[p] for p in paths if p in files_by_path)
        if len(members) < 2:
            continue
        groups.append(DuplicateGroup(
            id=digest,
            digest=digest,
            files=members,
            representative=pick_representative(members),
        ))
    groups.sort(key=lambda g: g.waste_size, reverse=True)
    return groups


def _group_id(files: Iterable[FileDescriptor]) -> str:
    h = hashlib.md5()
    for path in sorted(str(f.path) for f in files):
        h.update(path.encode('utf-8'))
        h.update(b"\0")
    return h.hexdigest()[:16]


def build_similar_groups(pairs: Sequence[SimilarPair]) -> List[SimilarGroup]:
    """
    Connected components of the accepted-pair graph.

    Membership is the transitive closure of the pairs regardless of arrival
    order; every pair is kept as evidence in its component.
    """
    index: Dict[Path, int] = {}
    files: List[FileDescriptor] = []
    dsu = DisjointSet()

    def idx_for(f: FileDescriptor) -> int:
        if f.path not in index:
            index[f.path] = dsu.add()
            files.append(f)
        return index[f.path]

    for pair in pairs:
        dsu.union(idx_for(pair.file1), idx_for(pair.file2))

    members: Dict[int, List[FileDescriptor]] = {}
    for i, f in enumerate(files):
        members.setdefault(dsu.find(i), []).append(f)
    evidence: Dict[int, List[SimilarPair]] = {}
    for pair in pairs:
        evidence.setdefault(dsu.find(index[pair.file1.path]), []).append(pair)

    groups = [
        SimilarGroup(id=_group_id(component), files=tuple(component),
                     pairs=tuple(evidence[root]))
        for root, component in members.items()
    ]
    groups.sort(key=lambda g: g.average_similarity, reverse=True)
    logger.debug("Built %d similar groups from %d pairs", len(groups), len(pairs))
    return groups
