"""Tests for the search engine and its four strategies."""

import logging
import math

import numpy as np
import pytest

from lattice_search import find_path
from lattice_search.core.data_models import SearchStrategy
from lattice_search.integration.boards import (
    ArrayPredicate, blocked_everywhere, double_slit_board, open_board,
    random_board, slit_board
)
from lattice_search.search.astar import (
    Admission, AStarSearcher, SearchConfig, SideState, create_astar_searcher
)
from lattice_search.search.baseline import breadth_first_length
from lattice_search.search.bidirectional import (
    BidirectionalAStarSearcher, create_bidirectional_searcher
)
from lattice_search.search.engine import LatticeSearchEngine
from lattice_search.search.heuristics import (
    BoundaryPruningHeuristic, CallableHeuristic, ManhattanHeuristic
)
from lattice_search.search.iterative import IterativeDeepeningSearcher

ALL_STRATEGIES = list(SearchStrategy)

HEURISTIC_PAIRS = [
    ('zero', 'zero'),
    ('manhattan', 'manhattan'),
    ('manhattan', 'zero'),
    ('euclidean', 'manhattan'),
    ('breadth_first', 'breadth_first'),
]

POCKET_WALLS = (
    {(x, 2) for x in range(5)}
    | {(x, -2) for x in range(5)}
    | {(4, y) for y in range(-2, 3)}
)


def pocket_predicate(position):
    x, y = position
    if abs(x) > 12 or abs(y) > 12:
        return True
    return position in POCKET_WALLS


def assert_valid_path(result, predicate):
    """Path is a chain of free unit steps from a start to a target."""
    path = result.path
    assert path is not None
    assert len(path) == result.path_length + 1
    assert path[0] in result.starts
    assert path[-1] in result.targets
    for position in path:
        assert not predicate(position)
    for a, b in zip(path, path[1:]):
        assert abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def ring_board():
    """Two routes from (0, 0) to (4, 0): along row 0 (length 4) or round row 2 (length 8)."""
    blocked = np.zeros((3, 5), dtype=bool)
    blocked[1, 1:4] = True
    return ArrayPredicate(blocked, name="ring")


def detour_first(predicate, position, parent, own, opposite):
    """Steers the forward side round the long way."""
    return {(2, 0): 100.0, (2, 2): 4.0}.get(position, 0.0)


def late_shortcut(predicate, position, parent, own, opposite):
    """Keeps the backward side off the short route until the forward side is done."""
    return 6.0 if position == (3, 0) else 0.0


class RefineRecorder(BidirectionalAStarSearcher):
    """Records every child offered to a side in only-refine mode."""

    def _reset(self):
        super()._reset()
        self.refine_offers = []

    def _offer(self, side, other, child):
        if side.state is not SideState.REFINE:
            return super()._offer(side, other, child)
        known = set(side.closed.positions())
        outcome = super()._offer(side, other, child)
        added = set(side.closed.positions()) - known
        self.refine_offers.append((child.position, outcome, added))
        return outcome


def solve(predicate, starts, targets, strategy, heuristic='manhattan', secondary='manhattan',
          config=None):
    engine = LatticeSearchEngine(predicate, starts, targets, config=config)
    return engine.solve(strategy, heuristic, secondary)


class TestReferenceScenarios:
    """Known boards with known optimal lengths."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_open_grid(self, strategy):
        board = open_board(11, 11)
        result = solve(board, [(0, 0)], [(10, 10)], strategy)
        assert result.path_length == 20
        assert result.termination_reason == "found"
        assert_valid_path(result, board)

    def test_open_grid_astar_manhattan(self):
        result = find_path(open_board(11, 11), [(0, 0)], [(10, 10)])
        assert result.strategy is SearchStrategy.ASTAR
        assert result.path_length == 20
        assert result.heuristic == 'manhattan'
        assert result.secondary_heuristic is None

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_single_slit(self, strategy):
        """The only optimal paths run through the gap."""
        board = slit_board(11, 11)
        result = solve(board, [(0, 0)], [(10, 10)], strategy)
        assert result.path_length == 20
        assert (5, 5) in result.path
        assert_valid_path(result, board)

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_everything_blocked(self, strategy):
        result = solve(blocked_everywhere, [(0, 0)], [(1, 1)], strategy)
        assert math.isinf(result.path_length)
        assert result.path is None
        assert not result.found
        assert result.termination_reason == "no_endpoints"

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_start_is_target(self, strategy):
        result = solve(open_board(7, 7), [(3, 3)], [(3, 3)], strategy)
        assert result.path_length == 0
        assert result.path == [(3, 3)]

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_target_walled_off(self, strategy):
        blocked = np.zeros((7, 7), dtype=bool)
        blocked[4, 3:6] = True
        blocked[6, 3:6] = True
        blocked[5, 3] = True
        blocked[5, 5] = True
        board = ArrayPredicate(blocked)
        result = solve(board, [(0, 0)], [(4, 5)], strategy)
        assert math.isinf(result.path_length)
        assert result.path is None
        assert result.termination_reason == "exhausted"


class TestOptimality:
    """Every strategy agrees with breadth-first search."""

    @pytest.mark.parametrize("seed", range(6))
    @pytest.mark.parametrize("heuristic,secondary", HEURISTIC_PAIRS)
    @pytest.mark.parametrize("strategy", [SearchStrategy.ASTAR,
                                          SearchStrategy.BIDIRECTIONAL_ASTAR])
    def test_graph_search_matches_bfs(self, strategy, heuristic, secondary, seed):
        start, target = (0, 0), (13, 11)
        board = random_board(14, 12, 0.3, seed=seed, keep_free=[start, target])
        expected = breadth_first_length(board, [start], [target])
        result = solve(board, [start], [target], strategy, heuristic, secondary)
        assert result.path_length == expected
        if result.found:
            assert_valid_path(result, board)

    @pytest.mark.parametrize("seed", range(4))
    @pytest.mark.parametrize("strategy", [SearchStrategy.DFID, SearchStrategy.ASTAR_ID])
    def test_iterative_deepening_matches_bfs(self, strategy, seed):
        start, target = (0, 0), (7, 6)
        board = random_board(8, 7, 0.25, seed=seed, keep_free=[start, target])
        expected = breadth_first_length(board, [start], [target])
        result = solve(board, [start], [target], strategy)
        assert result.path_length == expected
        if result.found:
            assert_valid_path(result, board)

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_multiple_endpoints(self, strategy):
        board = double_slit_board(12, 12)
        starts = [(0, 0), (11, 11)]
        targets = [(6, 8), (0, 11)]
        expected = breadth_first_length(board, starts, targets)
        result = solve(board, starts, targets, strategy)
        assert result.path_length == expected
        assert_valid_path(result, board)

    @pytest.mark.parametrize("strategy", [SearchStrategy.ASTAR,
                                          SearchStrategy.BIDIRECTIONAL_ASTAR,
                                          SearchStrategy.ASTAR_ID])
    def test_pruning_heuristic_keeps_optimal_length(self, strategy):
        """Pruning the pocket does not cut off the way around it."""
        result = solve(pocket_predicate, [(-3, 0)], [(10, 0)], strategy,
                       'boundary_pruning', 'boundary_pruning')
        assert breadth_first_length(pocket_predicate, [(-3, 0)], [(10, 0)]) == 19
        assert result.path_length == 19
        assert_valid_path(result, pocket_predicate)

    def test_pruning_heuristic_prunes_pocket(self):
        heuristic = BoundaryPruningHeuristic()
        result = find_path(pocket_predicate, [(-3, 0)], [(10, 0)], heuristic=heuristic)
        assert result.path_length == 19
        assert heuristic.prune_count > 0
        assert result.heuristic_stats['forward_pruned'] == heuristic.prune_count
        assert not any(0 < x < 4 and -2 < y < 2 for x, y in result.forward_explored)


class TestDeterminism:
    """Identical inputs give identical outputs."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_repeatable(self, strategy):
        board = random_board(10, 10, 0.25, seed=7, keep_free=[(0, 0), (9, 9)])
        first = solve(board, [(0, 0)], [(9, 9)], strategy)
        second = solve(board, [(0, 0)], [(9, 9)], strategy)
        assert first.path == second.path
        assert first.total_expansions == second.total_expansions
        assert [p.bound for p in first.phases] == [p.bound for p in second.phases]


class TestIterativeDeepening:
    """Test pass structure of DFID and A*-ID."""

    def test_dfid_bounds_step_by_one(self):
        result = solve(open_board(6, 6), [(0, 0)], [(5, 5)], SearchStrategy.DFID)
        assert [p.bound for p in result.phases] == list(range(11))
        assert all(p.label == "depth" for p in result.phases)
        assert result.heuristic == "zero"

    def test_dfid_ignores_heuristic(self):
        result = solve(open_board(6, 6), [(0, 0)], [(5, 5)], 'dfid', heuristic='euclidean')
        assert result.heuristic == "zero"
        assert result.path_length == 10

    def test_dfid_without_heuristic(self):
        engine = LatticeSearchEngine(open_board(4, 4), [(0, 0)], [(3, 3)])
        assert engine.solve('dfid').path_length == 6

    def test_astar_id_bounds_increase(self):
        board = slit_board(11, 11)
        result = solve(board, [(0, 0)], [(10, 10)], SearchStrategy.ASTAR_ID)
        bounds = [p.bound for p in result.phases]
        assert bounds == sorted(bounds)
        assert len(set(bounds)) == len(bounds)
        assert bounds[-1] == 20
        bests = [p.best_length for p in result.phases]
        assert all(math.isinf(b) for b in bests[:-1])
        assert bests[-1] == 20

    def test_manhattan_on_open_board_needs_one_pass(self):
        """A perfect heuristic finds the target within the first bound."""
        result = solve(open_board(8, 8), [(0, 0)], [(7, 7)], SearchStrategy.ASTAR_ID)
        assert len(result.phases) == 2
        assert result.phases[-1].bound == 14

    def test_rejects_graph_strategies(self):
        with pytest.raises(ValueError):
            IterativeDeepeningSearcher(open_board(3, 3), strategy=SearchStrategy.ASTAR)


class TestBidirectional:
    """Test the meet-in-the-middle search."""

    def test_phases(self):
        board = slit_board(21, 21)
        result = solve(board, [(0, 0)], [(20, 20)], SearchStrategy.BIDIRECTIONAL_ASTAR)
        labels = [p.label for p in result.phases]
        assert labels[0] == "search"
        assert set(labels) <= {"search", "refine"}
        assert len(labels) <= 2
        assert result.path_length == 40
        bests = [p.best_length for p in result.phases]
        assert bests == sorted(bests, reverse=True)

    def test_both_sides_expand(self):
        result = solve(open_board(15, 15), [(0, 0)], [(14, 14)],
                       SearchStrategy.BIDIRECTIONAL_ASTAR, 'zero', 'zero')
        assert result.forward_expansions > 0
        assert result.backward_expansions > 0
        assert len(result.backward_explored) > 0
        assert result.secondary_heuristic == "zero"

    def test_secondary_defaults_to_zero(self):
        engine = LatticeSearchEngine(open_board(5, 5), [(0, 0)], [(4, 4)])
        result = engine.solve('bdas', 'manhattan')
        assert result.secondary_heuristic == "zero"
        assert result.path_length == 8

    def test_factory(self):
        searcher = create_bidirectional_searcher(open_board(5, 5))
        result = searcher.search([(0, 0)], [(4, 0)], ManhattanHeuristic(), ManhattanHeuristic())
        assert result.path_length == 4
        assert result.path == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]

    def test_refine_phase_improves_best_length(self):
        """A detour meeting found first is replaced while the backward side refines."""
        searcher = RefineRecorder(ring_board())
        result = searcher.search([(0, 0)], [(4, 0)], CallableHeuristic(detour_first),
                                 CallableHeuristic(late_shortcut))

        assert result.termination_reason == "found"
        assert result.path_length == 4
        assert result.path == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]

        search, refine = result.phases
        assert (search.label, refine.label) == ("search", "refine")
        assert search.best_length == 8
        assert refine.best_length == 4
        assert refine.best_length < search.best_length
        assert (search.forward_expansions, search.backward_expansions) == (5, 5)
        assert (refine.forward_expansions, refine.backward_expansions) == (0, 2)

    def test_refine_mode_admits_no_new_positions(self):
        searcher = RefineRecorder(ring_board())
        result = searcher.search([(0, 0)], [(4, 0)], CallableHeuristic(detour_first),
                                 CallableHeuristic(late_shortcut))

        assert searcher.refine_offers == [
            ((0, 2), Admission.REJECTED, set()),
            ((2, 0), Admission.REJECTED, set()),
        ]
        assert set(result.backward_explored) == {
            (4, 0), (3, 0), (4, 1), (4, 2), (3, 2), (2, 2), (1, 2)
        }


class TestTunnelCollapsing:
    """Test corridor walking."""

    @pytest.fixture
    def corridor(self):
        blocked = np.ones((3, 20), dtype=bool)
        blocked[1, :] = False
        return ArrayPredicate(blocked, name="corridor")

    def test_same_path_with_and_without_collapsing(self, corridor):
        plain = solve(corridor, [(0, 1)], [(19, 1)], SearchStrategy.ASTAR)
        collapsed = solve(corridor, [(0, 1)], [(19, 1)], SearchStrategy.ASTAR,
                          config=SearchConfig(collapse_tunnels=True))
        assert plain.path == collapsed.path == [(x, 1) for x in range(20)]
        assert plain.heuristic_stats['corridor_steps'] == 0
        assert collapsed.heuristic_stats['corridor_steps'] == 18

    def test_tunnel_length_cap(self, corridor):
        config = SearchConfig(collapse_tunnels=True, max_tunnel_length=5)
        result = solve(corridor, [(0, 1)], [(19, 1)], SearchStrategy.ASTAR, config=config)
        assert result.path_length == 19
        assert 0 < result.heuristic_stats['corridor_steps'] <= 18

    @pytest.mark.parametrize("strategy", [SearchStrategy.ASTAR,
                                          SearchStrategy.BIDIRECTIONAL_ASTAR])
    def test_collapsing_keeps_optimal_length(self, strategy):
        config = SearchConfig(collapse_tunnels=True)
        for seed in range(4):
            board = random_board(14, 14, 0.35, seed=seed, keep_free=[(0, 0), (13, 13)])
            expected = breadth_first_length(board, [(0, 0)], [(13, 13)])
            result = solve(board, [(0, 0)], [(13, 13)], strategy, config=config)
            assert result.path_length == expected


class TestBudgets:
    """Test expansion and time limits."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_expansion_limit(self, strategy):
        config = SearchConfig(max_expansions=3)
        result = solve(open_board(30, 30), [(0, 0)], [(29, 29)], strategy, config=config)
        assert result.termination_reason == "expansion_limit"
        assert not result.found
        assert result.total_expansions <= 3

    def test_time_limit(self):
        config = SearchConfig(max_seconds=1e-9)
        result = solve(open_board(50, 50), [(0, 0)], [(49, 49)], SearchStrategy.ASTAR,
                       'zero', config=config)
        assert result.termination_reason == "time_limit"

    def test_factory_budget(self):
        searcher = create_astar_searcher(open_board(30, 30), max_expansions=2)
        assert isinstance(searcher, AStarSearcher)
        result = searcher.search([(0, 0)], [(29, 29)], ManhattanHeuristic())
        assert result.termination_reason == "expansion_limit"
        assert result.forward_expansions == 2

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_exact_budget_still_finishes(self, strategy):
        """A run that needs exactly its budget proves optimality before stopping."""
        board = open_board(6, 6)
        unlimited = solve(board, [(0, 0)], [(5, 5)], strategy)
        needed = unlimited.total_expansions

        exact = solve(board, [(0, 0)], [(5, 5)], strategy,
                      config=SearchConfig(max_expansions=needed))
        assert exact.termination_reason == "found"
        assert exact.path_length == 10

        short = solve(board, [(0, 0)], [(5, 5)], strategy,
                      config=SearchConfig(max_expansions=needed - 1))
        assert short.termination_reason == "expansion_limit"


class TestEngineInputs:
    """Test endpoint scrubbing and argument checks."""

    def test_blocked_start_removed(self, caplog):
        board = slit_board(11, 11)
        with caplog.at_level(logging.WARNING):
            engine = LatticeSearchEngine(board, [(4, 5), (0, 0), (0, 0)], [(10, 10)])
        assert engine.starts == ((0, 0),)
        assert "Obstacle detected on [4, 5]. Removing start location." in caplog.text

    def test_all_targets_blocked(self):
        board = slit_board(11, 11)
        result = solve(board, [(0, 0)], [(4, 5)], SearchStrategy.ASTAR)
        assert result.termination_reason == "no_endpoints"
        assert result.targets == ()

    def test_missing_heuristic(self):
        engine = LatticeSearchEngine(open_board(5, 5), [(0, 0)], [(4, 4)])
        with pytest.raises(ValueError, match="requires a primary heuristic"):
            engine.solve('astar')

    def test_unknown_strategy(self):
        engine = LatticeSearchEngine(open_board(5, 5), [(0, 0)], [(4, 4)])
        with pytest.raises(ValueError):
            engine.solve('greedy', 'manhattan')

    def test_custom_function_heuristic(self):
        def half_manhattan(predicate, position, parent, own, opposite):
            return min(abs(position[0] - x) + abs(position[1] - y) for x, y in opposite) / 2

        result = find_path(open_board(9, 9), [(0, 0)], [(8, 8)], heuristic=half_manhattan)
        assert result.path_length == 16

    def test_summary_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="lattice_search.search.engine"):
            find_path(open_board(5, 5), [(0, 0)], [(4, 4)])
        assert "Search completed: path length 8" in caplog.text

    def test_inconsistent_heuristic_warning(self, caplog):
        engine = LatticeSearchEngine(ring_board(), [(0, 0)], [(4, 0)])
        with caplog.at_level(logging.WARNING, logger="lattice_search.search.engine"):
            result = engine.solve('bidirectional_astar', detour_first, late_shortcut)
        assert "Heuristic detour_first is not consistent" in caplog.text
        assert "Heuristic late_shortcut is not consistent" in caplog.text
        assert result.path_length == 4

    def test_no_warning_for_consistent_pair(self, caplog):
        engine = LatticeSearchEngine(open_board(5, 5), [(0, 0)], [(4, 4)])
        with caplog.at_level(logging.WARNING, logger="lattice_search.search.engine"):
            engine.solve('bidirectional_astar', 'manhattan', 'zero')
        assert "not consistent" not in caplog.text


class TestSearchCounters:
    """Test node, predicate call and frontier counters in the result statistics."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_counters_reported(self, strategy):
        result = solve(open_board(6, 6), [(0, 0)], [(5, 5)], strategy)
        stats = result.heuristic_stats
        assert stats['nodes_created'] > result.total_expansions
        assert stats['predicate_calls'] >= result.total_expansions
        assert stats['frontier_peak'] >= 1

    def test_counters_restart_with_each_search(self):
        searcher = AStarSearcher(open_board(6, 6))
        first = searcher.search([(0, 0)], [(5, 5)], ManhattanHeuristic())
        second = searcher.search([(0, 0)], [(5, 5)], ManhattanHeuristic())
        for key in ('nodes_created', 'predicate_calls', 'frontier_peak'):
            assert first.heuristic_stats[key] == second.heuristic_stats[key]
