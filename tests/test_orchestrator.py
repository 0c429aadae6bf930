# -*- coding: utf-8 -*-
"""
测试单元：算法协调器 (v2.0)

此测试验证 Orchestrator 的调度逻辑：
1.  显式指定算法时只运行该算法；未知算法名抛出 ValueError。
2.  auto 模式下依次运行三种算法，取最高分，同分时取先运行者；
    整数规划失败时被排除而不是让整个调用失败。
3.  空输入直接返回空结果，不调用任何算法。
"""

import os
import sys
import time
import unittest
from unittest.mock import AsyncMock, Mock, patch

# 将项目根目录添加到sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from qfen_core import orchestrator
from qfen_core.lp_solver import LPSolution, SolverError
from qfen_core.orchestrator import AUTO_SUFFIX, Orchestrator
from qfen_core.scoring import create_algorithm_result
from qfen_core.validator import validate_partition
from qfen_data.models import DEFAULT_OPTIONS
from tests.datasets import (
    DIVERSE_DATASET,
    LARGE_DATASET,
    MINIMUM_DATASET,
    SMALL_DATASET,
    assert_exact_cover,
    assert_families_together,
)


def _fake_result(subsets, name):
    return create_algorithm_result(subsets, DEFAULT_OPTIONS, name, time.perf_counter())


class TestOrchestrator(unittest.TestCase):
    """
    测试 Orchestrator 的功能。
    """

    def setUp(self):
        self.failing_solver = Mock()
        self.failing_solver.solve.return_value = LPSolution(status='Infeasible')

    def test_explicit_greedy(self):
        outcome = Orchestrator().solve(SMALL_DATASET, {'algorithm': 'greedy'})
        self.assertEqual(outcome.algorithm_used, 'Greedy Packing')

    def test_explicit_clustering_with_camel_case_options(self):
        outcome = Orchestrator(random_state=0).solve(SMALL_DATASET, {'algorithm': 'clustering',
                                                                     'maxSubsetSize': 4})
        self.assertEqual(outcome.algorithm_used, 'K-means Clustering')
        assert_families_together(self, SMALL_DATASET, outcome.result.subsets)

    def test_unknown_algorithm_raises(self):
        with self.assertRaises(ValueError):
            Orchestrator().solve(SMALL_DATASET, {'algorithm': 'simulated-annealing'})

    def test_explicit_lp_failure_propagates(self):
        with self.assertRaises(SolverError):
            Orchestrator(lp_solver=self.failing_solver).solve(SMALL_DATASET, {'algorithm': 'external-lp'})

    def test_auto_excludes_failed_lp(self):
        """整数规划失败时，auto 模式仍从另外两种算法中选出结果。"""
        # --- Arrange ---
        orch = Orchestrator(random_state=1, lp_solver=self.failing_solver)

        # --- Act ---
        best, results = orch.compare_algorithms(SMALL_DATASET)
        outcome = Orchestrator(random_state=1, lp_solver=self.failing_solver).solve(SMALL_DATASET)

        # --- Assert ---
        self.assertEqual([r.algorithm_used for r in results], ['Greedy Packing', 'K-means Clustering'])
        self.assertEqual(best.result.score, max(r.result.score for r in results))
        self.assertTrue(outcome.algorithm_used.endswith(AUTO_SUFFIX))
        self.failing_solver.solve.assert_called()

    @patch('qfen_core.orchestrator.solve_external_lp', new_callable=AsyncMock)
    @patch('qfen_core.orchestrator.solve_clustering')
    @patch('qfen_core.orchestrator.solve_greedy')
    def test_auto_tie_goes_to_earlier_algorithm(self, mock_greedy, mock_clustering, mock_lp):
        """三种算法同分时选择最先运行的贪心算法。"""
        subsets = [SMALL_DATASET[:4], SMALL_DATASET[4:]]
        mock_greedy.return_value = _fake_result(subsets, 'Greedy Packing')
        mock_clustering.return_value = _fake_result(subsets, 'K-means Clustering')
        mock_lp.return_value = _fake_result(subsets, 'Mixed Integer Programming (HiGHS)')

        outcome = Orchestrator().solve(SMALL_DATASET)

        self.assertEqual(outcome.algorithm_used, 'Greedy Packing' + AUTO_SUFFIX)
        mock_greedy.assert_called_once()
        mock_clustering.assert_called_once()
        mock_lp.assert_awaited_once()

    @patch('qfen_core.orchestrator.solve_external_lp', new_callable=AsyncMock)
    @patch('qfen_core.orchestrator.solve_clustering')
    @patch('qfen_core.orchestrator.solve_greedy')
    def test_auto_picks_highest_score(self, mock_greedy, mock_clustering, mock_lp):
        mock_greedy.return_value = _fake_result([SMALL_DATASET[:4], SMALL_DATASET[4:]], 'Greedy Packing')
        better = [[SMALL_DATASET[i] for i in (2, 3, 1, 7)], [SMALL_DATASET[i] for i in (4, 5, 6, 0)]]
        mock_clustering.return_value = _fake_result(better, 'K-means Clustering')
        mock_lp.side_effect = SolverError("infeasible")

        outcome = Orchestrator().solve(SMALL_DATASET)

        self.assertEqual(outcome.algorithm_used, 'K-means Clustering' + AUTO_SUFFIX)

    @patch('qfen_core.orchestrator.solve_greedy')
    def test_empty_input_short_circuits(self, mock_greedy):
        outcome = Orchestrator().solve([])

        mock_greedy.assert_not_called()
        self.assertEqual(outcome.result.score, 0.0)
        self.assertEqual(outcome.result.subsets, [])
        self.assertEqual(outcome.result.metadata.average_subset_size, 0.0)

    def test_minimum_dataset_all_algorithms(self):
        """2 人名单: 每种算法都得到 1 个 2 人分组。"""
        best, results = Orchestrator(random_state=0).compare_algorithms(MINIMUM_DATASET)

        self.assertEqual(len(results), 3)
        for result in results:
            self.assertEqual([len(s) for s in result.result.subsets], [2])
        self.assertEqual(best.algorithm_used, 'Greedy Packing')

    def test_small_dataset_auto_with_real_solver(self):
        outcome = orchestrator.solve(SMALL_DATASET, random_state=0)
        subsets = outcome.result.subsets

        assert_exact_cover(self, SMALL_DATASET, subsets)
        assert_families_together(self, SMALL_DATASET, subsets)
        self.assertTrue(2 <= len(subsets) <= 4)

    def test_diverse_dataset_is_valid(self):
        outcome = Orchestrator(random_state=3, lp_solver=self.failing_solver).solve(DIVERSE_DATASET)
        self.assertTrue(validate_partition(DIVERSE_DATASET, outcome.result.subsets).valid)

    def test_large_dataset_without_lp(self):
        """168 人: 贪心与聚类都给出 25 到 28 个分组，且不拆分监护家庭。"""
        for algorithm in ('greedy', 'clustering'):
            with self.subTest(algorithm=algorithm):
                outcome = Orchestrator(random_state=9).solve(LARGE_DATASET, {'algorithm': algorithm})
                subsets = outcome.result.subsets
                self.assertTrue(25 <= len(subsets) <= 28)
                assert_exact_cover(self, LARGE_DATASET, subsets)
                assert_families_together(self, LARGE_DATASET, subsets)


if __name__ == '__main__':
    unittest.main()
