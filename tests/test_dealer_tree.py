"""
Tests for the dealer referral tree aggregation and its endpoints.
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from realty.services.dealer_tree import (
    DealerHierarchyCycleError,
    build_dealer_forest,
    find_subtree,
)


BASE_TIME = datetime(2024, 1, 1, tzinfo=dt_timezone.utc)


def record(dealer_id, parent_id, commission, minutes=0):
    return {
        'id': dealer_id,
        'parent_id': parent_id,
        'commission': Decimal(commission),
        'referral_code': f'CODE{dealer_id:02d}',
        'status': 'APPROVED',
        'created_at': BASE_TIME + timedelta(minutes=minutes),
    }


def flatten(nodes):
    for node in nodes:
        yield node
        yield from flatten(node.children)


# ============================================================================
# 1. AGGREGATION
# ============================================================================

class TestBuildDealerForest:

    def test_chain_totals(self):
        forest = build_dealer_forest([
            record(1, None, '5000'),
            record(2, 1, '2000'),
            record(3, 2, '1000'),
        ])

        assert len(forest) == 1
        a = forest[0]
        b = a.children[0]
        c = b.children[0]

        assert (a.total_children, a.total_commission) == (2, Decimal('8000'))
        assert (b.total_children, b.total_commission) == (1, Decimal('3000'))
        assert (c.total_children, c.total_commission) == (0, Decimal('1000'))
        assert [a.level, b.level, c.level] == [0, 1, 2]

    def test_totals_match_descendant_counts(self):
        records = [
            record(1, None, '100'),
            record(2, 1, '50'),
            record(3, 1, '25'),
            record(4, 2, '10'),
            record(5, 2, '5'),
            record(6, None, '7'),
        ]
        forest = build_dealer_forest(records)

        def descendants(node):
            return list(flatten(node.children))

        for node in flatten(forest):
            below = descendants(node)
            assert node.total_children == len(below)
            assert node.total_commission == node.commission + sum((d.commission for d in below), Decimal('0'))

    def test_children_sorted_by_created_at_then_id(self):
        forest = build_dealer_forest([
            record(1, None, '0'),
            record(9, 1, '0', minutes=5),
            record(4, 1, '0', minutes=10),
            record(7, 1, '0', minutes=5),
        ])

        assert [child.id for child in forest[0].children] == [7, 9, 4]

    def test_missing_parent_becomes_root(self):
        forest = build_dealer_forest([
            record(1, None, '10'),
            record(2, 99, '20'),
        ])

        assert sorted(root.id for root in forest) == [1, 2]
        orphan = next(root for root in forest if root.id == 2)
        assert orphan.level == 0

    def test_empty_input(self):
        assert build_dealer_forest([]) == []

    def test_cycle_raises(self):
        with pytest.raises(DealerHierarchyCycleError) as excinfo:
            build_dealer_forest([
                record(1, None, '10'),
                record(2, 3, '10'),
                record(3, 2, '10'),
            ])

        assert excinfo.value.dealer_ids == [2, 3]

    def test_self_parent_is_a_cycle(self):
        with pytest.raises(DealerHierarchyCycleError):
            build_dealer_forest([record(1, 1, '10')])

    def test_deep_chain(self):
        depth = 2000
        forest = build_dealer_forest([
            record(n, n - 1 if n > 1 else None, '1.50', minutes=n) for n in range(1, depth + 1)
        ])

        nodes = []
        node = forest[0]
        while node is not None:
            nodes.append(node)
            node = node.children[0] if node.children else None

        assert len(nodes) == depth
        assert (nodes[0].total_children, nodes[0].total_commission) == (depth - 1, Decimal('3000.00'))
        assert nodes[-1].level == depth - 1
        assert nodes[-1].total_children == 0
        assert nodes[1000].total_children == depth - 1001

    def test_to_dict_serializes_decimals_as_strings(self):
        data = build_dealer_forest([record(1, None, '12.50'), record(2, 1, '2.50')])[0].to_dict()

        assert data['total_commission'] == '15.00'
        assert data['total_children'] == 1
        assert data['children'][0]['commission'] == '2.50'


class TestFindSubtree:

    def test_rebases_levels_and_prunes(self):
        forest = build_dealer_forest([
            record(1, None, '1'),
            record(2, 1, '1'),
            record(3, 2, '1'),
            record(4, 3, '1'),
        ])

        node = find_subtree(forest, 2, max_depth=1)

        assert node.level == 0
        assert [child.id for child in node.children] == [3]
        assert node.children[0].children == []
        # Totals still cover the whole subtree
        assert node.total_children == 2

    def test_unknown_dealer(self):
        forest = build_dealer_forest([record(1, None, '1')])
        assert find_subtree(forest, 42) is None

    def test_deep_chain_copy_and_serialization(self):
        depth = 2000
        forest = build_dealer_forest([
            record(n, n - 1 if n > 1 else None, '1', minutes=n) for n in range(1, depth + 1)
        ])

        full = find_subtree(forest, 2).to_dict()
        pruned = find_subtree(forest, 1, max_depth=1500).to_dict()

        def chain_length(data):
            length = 1
            while data['children']:
                data = data['children'][0]
                length += 1
            return length, data

        length, last = chain_length(full)
        assert length == depth - 1
        assert last['id'] == depth
        assert last['level'] == depth - 2

        length, last = chain_length(pruned)
        assert length == 1501
        assert last['level'] == 1500
        assert last['total_children'] == depth - 1501


# ============================================================================
# 2. ENDPOINTS
# ============================================================================

@pytest.mark.django_db
class TestDealerTreeEndpoints:

    @pytest.fixture
    def chain(self, make_dealer):
        a = make_dealer(commission=Decimal('5000'))
        b = make_dealer(parent=a, commission=Decimal('2000'))
        c = make_dealer(parent=b, commission=Decimal('1000'))
        return a, b, c

    def test_admin_dealer_tree(self, admin_client, chain):
        response = admin_client.get(reverse('admin_dealer_tree'))

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['total_dealers'] == 3
        root = data['tree'][0]
        assert root['total_commission'] == '8000.00'
        assert root['total_children'] == 2
        assert root['children'][0]['total_commission'] == '3000.00'

    def test_dealer_views_own_subtree_with_depth_limit(self, client_for, chain):
        a, b, _ = chain
        response = client_for(a.user).get(reverse('dealer_tree', args=[a.id]), {'max_depth': 1})

        assert response.status_code == status.HTTP_200_OK
        node = response.data['data']
        assert node['id'] == a.id
        assert node['children'][0]['id'] == b.id
        assert node['children'][0]['children'] == []

    def test_dealer_cannot_view_someone_elses_tree(self, client_for, chain):
        a, _, c = chain
        response = client_for(c.user).get(reverse('dealer_tree', args=[a.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.parametrize('max_depth', ['deep', '-1', '1.5', '²', '١٢'])
    def test_invalid_max_depth(self, admin_client, chain, max_depth):
        response = admin_client.get(reverse('dealer_tree', args=[chain[0].id]), {'max_depth': max_depth})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False

    def test_cyclic_hierarchy_reports_conflict(self, admin_client, chain):
        a, _, c = chain
        type(a).objects.filter(pk=a.pk).update(parent=c)

        response = admin_client.get(reverse('admin_dealer_tree'))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert 'cycle' in response.data['error']
