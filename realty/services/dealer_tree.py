"""
Dealer referral tree.

Rebuilds the referral hierarchy from a flat list of dealer records and
aggregates, per node, how many dealers sit below it and how much
commission the whole subtree has earned.

The builder is pure: it takes plain records (model instances or dicts)
and never touches the database.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping


class DealerHierarchyCycleError(ValueError):
    """Raised when parent links form a loop, so some dealers have no root."""

    def __init__(self, dealer_ids):
        self.dealer_ids = sorted(dealer_ids)
        super().__init__(
            f"Dealer referral hierarchy contains a cycle involving dealers {self.dealer_ids}"
        )


@dataclass
class DealerNode:
    id: int
    parent_id: int | None
    commission: Decimal
    referral_code: str = ''
    status: str = ''
    user: Mapping[str, Any] | None = None
    created_at: datetime | None = None
    level: int = 0
    children: list[DealerNode] = field(default_factory=list)
    total_children: int = 0
    total_commission: Decimal = Decimal('0')

    def _flat_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'parent_id': self.parent_id,
            'user': dict(self.user) if self.user is not None else None,
            'referral_code': self.referral_code,
            'status': self.status,
            'commission': str(self.commission),
            'level': self.level,
            'total_children': self.total_children,
            'total_commission': str(self.total_commission),
            'children': [],
        }

    def to_dict(self) -> dict[str, Any]:
        """Nested representation of the node and everything below it."""
        result = self._flat_dict()
        stack = [(self, result)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                child_out = child._flat_dict()
                out['children'].append(child_out)
                stack.append((child, child_out))
        return result


def _read(record, name, default=None):
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _user_summary(record) -> Mapping[str, Any] | None:
    user = _read(record, 'user')
    if user is None or isinstance(user, Mapping):
        return user
    return {
        'id': user.id,
        'name': getattr(user, 'name', ''),
        'email': user.email,
        'role': getattr(user, 'role', ''),
    }


def _to_node(record) -> DealerNode:
    commission = _read(record, 'commission')
    return DealerNode(
        id=_read(record, 'id'),
        parent_id=_read(record, 'parent_id'),
        commission=Decimal(str(commission)) if commission is not None else Decimal('0'),
        referral_code=_read(record, 'referral_code', '') or '',
        status=_read(record, 'status', '') or '',
        user=_user_summary(record),
        created_at=_read(record, 'created_at'),
    )


def _sort_key(node: DealerNode):
    # Nodes without a timestamp sort first, then creation order, then id.
    return (node.created_at is not None, node.created_at or 0, node.id)


def _aggregate(order: list[DealerNode]) -> None:
    """Fill subtree totals; ``order`` lists every parent before its children."""
    for node in reversed(order):
        node.total_children = 0
        node.total_commission = node.commission
        for child in node.children:
            node.total_children += child.total_children + 1
            node.total_commission += child.total_commission


def build_dealer_forest(records: Iterable[Any]) -> list[DealerNode]:
    """
    Build the referral forest and compute subtree aggregates.

    Args:
        records: Dealer model instances or dicts with ``id``, ``parent_id``
            and ``commission``; ``referral_code``, ``status``, ``user`` and
            ``created_at`` are carried through when present.

    Returns:
        list[DealerNode]: Root nodes ordered by creation time. A dealer whose
        parent is not among the records is treated as a root.

    Raises:
        DealerHierarchyCycleError: If parent links form a cycle.
    """
    nodes = {}
    for record in records:
        node = _to_node(record)
        nodes[node.id] = node

    roots = []
    children_of = defaultdict(list)
    for node in nodes.values():
        if node.parent_id is None or node.parent_id not in nodes:
            roots.append(node)
        else:
            children_of[node.parent_id].append(node)

    # Walk from the roots; anything not reached is stuck in a cycle.
    order = []
    for root in roots:
        root.level = 0
    stack = list(roots)
    while stack:
        node = stack.pop()
        order.append(node)
        node.children = sorted(children_of.get(node.id, []), key=_sort_key)
        for child in node.children:
            child.level = node.level + 1
        stack.extend(node.children)

    if len(order) != len(nodes):
        raise DealerHierarchyCycleError(set(nodes) - {node.id for node in order})

    _aggregate(order)
    roots.sort(key=_sort_key)
    return roots


def find_subtree(forest: Iterable[DealerNode], dealer_id: int, max_depth: int | None = None) -> DealerNode | None:
    """
    Locate ``dealer_id`` in the forest and return its subtree.

    Levels are re-based so the returned node is level 0. When ``max_depth``
    is given, children deeper than ``max_depth`` levels below the node are
    pruned from the returned copy; aggregates still cover the full subtree.
    """
    stack = list(forest)
    while stack:
        node = stack.pop()
        if node.id == dealer_id:
            return _copy_limited(node, max_depth)
        stack.extend(node.children)
    return None


def _copy_node(node: DealerNode, level: int) -> DealerNode:
    return DealerNode(
        id=node.id,
        parent_id=node.parent_id,
        commission=node.commission,
        referral_code=node.referral_code,
        status=node.status,
        user=node.user,
        created_at=node.created_at,
        level=level,
        total_children=node.total_children,
        total_commission=node.total_commission,
    )


def _copy_limited(node: DealerNode, max_depth: int | None) -> DealerNode:
    top = _copy_node(node, 0)
    stack = [(node, top)]
    while stack:
        source, copy = stack.pop()
        if max_depth is not None and copy.level >= max_depth:
            continue
        for child in source.children:
            child_copy = _copy_node(child, copy.level + 1)
            copy.children.append(child_copy)
            stack.append((child, child_copy))
    return top


def load_dealer_forest(queryset=None) -> list[DealerNode]:
    """Read every dealer once and build the forest from the result."""
    from ..models import Dealer

    if queryset is None:
        queryset = Dealer.objects.select_related('user').order_by('created_at', 'id')
    return build_dealer_forest(queryset)
