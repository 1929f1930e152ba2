"""
Competitor pivot: filter, group and rank schedule rows.

Rows are grouped mid category -> small category -> brand, and each node
accumulates weighted hours (``weights_time / 60``) per competitor
broadcaster. Everything here is a pure function of its inputs; callers
recompute from scratch whenever rows or selections change.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from checkschedule.domain.models import Dimension, ScheduleRow

PLACEHOLDER = "(none)"
DEFAULT_TOP_N = 5
MINUTES_PER_HOUR = 60.0

# Tree levels, outermost first.
GROUP_LEVELS: Tuple[Dimension, ...] = (Dimension.MID, Dimension.SMALL, Dimension.BRAND)

Selections = Mapping[Dimension, Set[str]]
NodePath = Tuple[str, ...]


def dimension_value(row: ScheduleRow, dimension: Dimension) -> str:
    """Value of `dimension` on `row`, with missing values bucketed under the placeholder."""
    value = getattr(row, dimension.field_name, None)
    return value if value else PLACEHOLDER


def row_weight(row: ScheduleRow) -> float:
    return row.weights_time / MINUTES_PER_HOUR


def format_hours(value: float) -> str:
    """Two-decimal display, with a dash for zero."""
    return "-" if value == 0 else f"{value:.2f}"


@dataclass
class GroupNode:
    """One row of the pivot tree."""

    name: str
    is_leaf: bool = False
    children: Dict[str, "GroupNode"] = field(default_factory=dict)
    totals: Dict[str, float] = field(default_factory=dict)
    row_total: float = 0.0
    rank: Optional[int] = None

    def add(self, broadcaster: str, weight: float) -> None:
        self.totals[broadcaster] = self.totals.get(broadcaster, 0.0) + weight

    def child(self, name: str, is_leaf: bool) -> "GroupNode":
        node = self.children.get(name)
        if node is None:
            node = GroupNode(name=name, is_leaf=is_leaf)
            self.children[name] = node
        return node

    def value(self, broadcaster: str) -> float:
        return self.totals.get(broadcaster, 0.0)

    def sorted_children(self) -> List["GroupNode"]:
        return sort_nodes(self.children.values())

    @property
    def has_children(self) -> bool:
        return not self.is_leaf and bool(self.children)


@dataclass
class PivotResult:
    """Everything the pivot table renders."""

    tree: Dict[str, GroupNode]
    columns: List[str]
    column_totals: Dict[str, float]
    grand_total: float
    ranking: List[GroupNode]
    row_count: int

    @property
    def is_empty(self) -> bool:
        return not self.tree

    def top_level(self) -> List[GroupNode]:
        return sort_nodes(self.tree.values())


@dataclass(frozen=True)
class PivotLine:
    """A visible pivot row after applying expand/collapse state."""

    level: int
    path: NodePath
    node: GroupNode
    expanded: bool


def sort_nodes(nodes: Iterable[GroupNode]) -> List[GroupNode]:
    return sorted(nodes, key=lambda node: node.name)


def observed_values(rows: Iterable[ScheduleRow]) -> Dict[Dimension, List[str]]:
    """Sorted distinct values per dimension, placeholder included where values are missing."""
    seen: Dict[Dimension, Set[str]] = {dimension: set() for dimension in Dimension}
    for row in rows:
        for dimension in Dimension:
            seen[dimension].add(dimension_value(row, dimension))
    return {dimension: sorted(values) for dimension, values in seen.items()}


def complete_mid_values(rows: Iterable[ScheduleRow]) -> Set[str]:
    """Mid categories that have at least one row carrying both a small category and a brand."""
    return {
        dimension_value(row, Dimension.MID)
        for row in rows
        if row.other_sgroup_name and row.brand_name
    }


def filter_rows(rows: Iterable[ScheduleRow], selections: Optional[Selections]) -> List[ScheduleRow]:
    """
    Keep rows whose value in every recorded dimension is selected.

    A dimension absent from `selections` excludes nothing.
    """
    if not selections:
        return list(rows)
    active = [(dimension, selected) for dimension, selected in selections.items() if selected is not None]
    return [
        row
        for row in rows
        if all(dimension_value(row, dimension) in selected for dimension, selected in active)
    ]


def build_tree(rows: Iterable[ScheduleRow]) -> Dict[str, GroupNode]:
    """Group rows into the three-level tree, summing weights at every level of the path."""
    root: Dict[str, GroupNode] = {}
    for row in rows:
        broadcaster = dimension_value(row, Dimension.BROADCASTER)
        weight = row_weight(row)
        mid, small, brand = (dimension_value(row, level) for level in GROUP_LEVELS)

        mid_node = root.get(mid)
        if mid_node is None:
            mid_node = root[mid] = GroupNode(name=mid)
        mid_node.add(broadcaster, weight)

        small_node = mid_node.child(small, is_leaf=False)
        small_node.add(broadcaster, weight)

        brand_node = small_node.child(brand, is_leaf=True)
        brand_node.add(broadcaster, weight)
    return root


def displayed_columns(
    broadcasters: Sequence[str], selections: Optional[Selections] = None
) -> List[str]:
    """Known broadcasters, restricted to the broadcaster selection when one is recorded."""
    selected = (selections or {}).get(Dimension.BROADCASTER)
    if selected is None:
        return list(broadcasters)
    return [name for name in broadcasters if name in selected]


def _apply_row_totals(nodes: Iterable[GroupNode], columns: Sequence[str]) -> None:
    for node in nodes:
        node.row_total = sum(node.value(column) for column in columns)
        _apply_row_totals(node.children.values(), columns)


def rank_nodes(nodes: Iterable[GroupNode], top_n: int = DEFAULT_TOP_N) -> List[GroupNode]:
    """
    Assign ranks 1..top_n to the highest row totals.

    Ordering is row total descending, then name ascending. Nodes with a zero
    (or negative) total are never ranked.
    """
    ordered = sorted(nodes, key=lambda node: (-node.row_total, node.name))
    ranked: List[GroupNode] = []
    for node in ordered:
        node.rank = None
        if len(ranked) < top_n and node.row_total > 0:
            node.rank = len(ranked) + 1
            ranked.append(node)
    return ranked


def compute_aggregation(
    rows: Sequence[ScheduleRow],
    selections: Optional[Selections] = None,
    broadcasters: Optional[Sequence[str]] = None,
    top_n: int = DEFAULT_TOP_N,
) -> PivotResult:
    """
    Build the competitor pivot for `rows`.

    Parameters
    ----------
    rows : sequence of ScheduleRow
        Rows currently loaded for the window.
    selections : mapping of Dimension to set of str, optional
        Selected values per dimension; missing dimensions select everything.
    broadcasters : sequence of str, optional
        Known broadcaster columns, in display order. Defaults to the
        broadcasters observed in `rows`.
    top_n : int
        Number of top-level groups to rank.
    """
    if broadcasters is None:
        broadcasters = observed_values(rows)[Dimension.BROADCASTER]

    filtered = filter_rows(rows, selections)
    tree = build_tree(filtered)
    columns = displayed_columns(broadcasters, selections)
    _apply_row_totals(tree.values(), columns)
    ranking = rank_nodes(tree.values(), top_n=top_n)

    column_totals = {column: 0.0 for column in columns}
    for row in filtered:
        broadcaster = dimension_value(row, Dimension.BROADCASTER)
        if broadcaster in column_totals:
            column_totals[broadcaster] += row_weight(row)
    grand_total = sum(column_totals[column] for column in columns)

    return PivotResult(
        tree=tree,
        columns=columns,
        column_totals=column_totals,
        grand_total=grand_total,
        ranking=ranking,
        row_count=len(filtered),
    )


def visible_lines(
    tree: Mapping[str, GroupNode], expanded: Optional[Set[NodePath]] = None
) -> List[PivotLine]:
    """Depth-first flattening of the tree; children appear only under expanded paths."""
    expanded = expanded or set()
    lines: List[PivotLine] = []

    def walk(nodes: Iterable[GroupNode], level: int, parent: NodePath) -> None:
        for node in sort_nodes(nodes):
            path = parent + (node.name,)
            is_open = node.has_children and path in expanded
            lines.append(PivotLine(level=level, path=path, node=node, expanded=is_open))
            if is_open:
                walk(node.children.values(), level + 1, path)

    walk(tree.values(), 0, ())
    return lines


def all_paths(tree: Mapping[str, GroupNode]) -> Set[NodePath]:
    """Every expandable path in the tree."""
    paths: Set[NodePath] = set()

    def walk(nodes: Iterable[GroupNode], parent: NodePath) -> None:
        for node in nodes:
            path = parent + (node.name,)
            if node.has_children:
                paths.add(path)
                walk(node.children.values(), path)

    walk(tree.values(), ())
    return paths


__all__ = [
    "DEFAULT_TOP_N",
    "GROUP_LEVELS",
    "PLACEHOLDER",
    "GroupNode",
    "PivotLine",
    "PivotResult",
    "all_paths",
    "build_tree",
    "complete_mid_values",
    "compute_aggregation",
    "dimension_value",
    "displayed_columns",
    "filter_rows",
    "format_hours",
    "observed_values",
    "rank_nodes",
    "row_weight",
    "visible_lines",
]
