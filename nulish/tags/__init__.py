"""Tag extraction, tree building and reconciliation."""

from .parser import extract_tag_paths, split_tag
from .reconcile import ReconciliationPolicy, fingerprint
from .tree import build_tag_tree, nest_tags, sort_tags, suggest_tags, tag_paths

__all__ = [
    "extract_tag_paths",
    "split_tag",
    "build_tag_tree",
    "sort_tags",
    "tag_paths",
    "nest_tags",
    "suggest_tags",
    "fingerprint",
    "ReconciliationPolicy",
]
