"""Tests for frontiers, closed maps and neighbor generation."""

import pytest

from lattice_search.core.data_models import Node
from lattice_search.search.frontier import ClosedMap, PriorityFrontier, StackFrontier
from lattice_search.search.neighbors import NeighborGenerator, NodeFactory
from lattice_search.integration.boards import open_board


class TestClosedMap:
    """Test authoritative entry bookkeeping."""

    def test_put_and_get(self):
        closed = ClosedMap()
        node = Node((1, 2), g=3, h=0.0, id=0)
        assert closed.put(node) is None
        assert closed.get((1, 2)) is node
        assert (1, 2) in closed
        assert (2, 1) not in closed
        assert len(closed) == 1

    def test_replacement_revokes_authority(self):
        """Only the latest node for a position is authoritative."""
        closed = ClosedMap()
        old = Node((0, 0), g=5, h=0.0, id=0)
        new = Node((0, 0), g=3, h=0.0, id=1)
        closed.put(old)
        assert closed.put(new) is old
        assert closed.is_authoritative(new)
        assert not closed.is_authoritative(old)
        assert closed.superseded == 1

    def test_remove_only_authoritative(self):
        closed = ClosedMap()
        old = Node((0, 0), g=5, h=0.0, id=0)
        new = Node((0, 0), g=3, h=0.0, id=1)
        closed.put(old)
        closed.put(new)
        closed.remove(old)
        assert closed.get((0, 0)) is new
        closed.remove(new)
        assert len(closed) == 0

    def test_positions_and_clear(self):
        closed = ClosedMap()
        for i, position in enumerate([(0, 0), (1, 0), (-1, -1)]):
            closed.put(Node(position, g=i, h=0.0, id=i))
        assert sorted(closed.positions()) == [(-1, -1), (0, 0), (1, 0)]
        assert len(list(closed)) == 3
        closed.clear()
        assert len(closed) == 0


class TestPriorityFrontier:
    """Test heap ordering and lazy deletion."""

    def test_pops_in_node_order(self):
        frontier = PriorityFrontier()
        nodes = [
            Node((0, 0), g=2, h=2.0, id=0),
            Node((1, 0), g=1, h=1.0, id=1),
            Node((2, 0), g=2, h=1.0, id=2),
            Node((3, 0), g=1, h=2.0, id=3),
        ]
        for node in nodes:
            frontier.push(node)
        order = [frontier.pop().position for _ in range(4)]
        assert order == [(1, 0), (2, 0), (3, 0), (0, 0)]
        assert frontier.pop() is None
        assert frontier.max_size == 4

    def test_pop_authoritative_skips_stale(self):
        """Superseded duplicates are discarded when popped."""
        frontier = PriorityFrontier()
        closed = ClosedMap()
        stale = Node((0, 0), g=1, h=0.0, id=0)
        fresh = Node((0, 0), g=4, h=0.0, id=1)
        other = Node((5, 5), g=2, h=0.0, id=2)
        for node in (stale, fresh, other):
            frontier.push(node)
        closed.put(stale)
        closed.put(fresh)
        closed.put(other)

        assert frontier.pop_authoritative(closed) is other
        assert frontier.pop_authoritative(closed) is fresh
        assert frontier.pop_authoritative(closed) is None

    def test_peek_and_clear(self):
        frontier = PriorityFrontier()
        assert frontier.peek() is None
        node = Node((0, 0), g=0, h=0.0, id=0)
        frontier.push(node)
        assert frontier.peek() is node
        assert len(frontier) == 1
        frontier.clear()
        assert not frontier


class TestStackFrontier:
    """Test LIFO frontier."""

    def test_lifo(self):
        stack = StackFrontier()
        for i in range(3):
            stack.push(Node((i, 0), g=i, h=0.0, id=i))
        assert [stack.pop().id for _ in range(3)] == [2, 1, 0]
        assert stack.pop() is None
        assert stack.max_size == 3


class TestNeighborGenerator:
    """Test neighbor order and filtering."""

    @pytest.fixture
    def factory(self):
        return NodeFactory()

    def test_order(self, factory):
        """+x, -x, +y, -y."""
        generator = NeighborGenerator(open_board(5, 5))
        seed = factory.seed((2, 2), 0.0)
        assert generator.open_positions(seed) == [(3, 2), (1, 2), (2, 3), (2, 1)]

    def test_parent_and_obstacles_excluded(self, factory):
        generator = NeighborGenerator(open_board(5, 5))
        parent = factory.seed((1, 0), 0.0)
        child = factory.child(parent, (0, 0), 0.0)
        # (-1, 0) and (0, -1) are out of bounds, (1, 0) is the parent
        assert generator.open_positions(child) == [(0, 1)]

    def test_forced_step(self, factory):
        generator = NeighborGenerator(open_board(5, 1))
        seed = factory.seed((0, 0), 0.0)
        child = factory.child(seed, (1, 0), 0.0)
        assert generator.forced_step(seed) is None
        assert generator.forced_step(child) == (2, 0)

    def test_forced_step_at_junction(self, factory):
        generator = NeighborGenerator(open_board(5, 5))
        seed = factory.seed((2, 2), 0.0)
        child = factory.child(seed, (2, 3), 0.0)
        assert generator.forced_step(child) is None

    def test_factory_ids_increase(self, factory):
        seed = factory.seed((0, 0), 1.0)
        child = factory.child(seed, (1, 0), 0.0)
        assert child.id > seed.id
        assert child.g == 1
        assert child.parent is seed
        assert factory.created == 2
