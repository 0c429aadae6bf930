# -*- coding: utf-8 -*-
"""
算法协调器模块 (v2.0 - 异步调度)。

协调器本身很薄：按配置选择一个算法运行，或者在 `auto` 模式下依次运行
贪心装箱、聚类 + 约束修复、整数规划三种算法，返回得分最高的结果（同分时
取先运行者）。

只有整数规划算法会挂起（求解器在工作线程中运行），因此协调器对外提供
协程接口 `solve_async`，同时提供用 `asyncio.run` 包装的同步接口 `solve`。
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from sklearn.utils import check_random_state

from qfen_data.models import ALGORITHMS, AlgorithmResult, Competitor
from qfen_core.cluster_engine import solve_clustering
from qfen_core.greedy_packer import solve_greedy
from qfen_core.lp_solver import SolverError, solve_external_lp
from qfen_core.options import describe_options, validate_and_sanitize_options
from qfen_core.scoring import empty_algorithm_result

AUTO_SUFFIX = ' (auto-selected)'


class Orchestrator:
    """
    协调各个分组算法以完成一次分组。
    """

    def __init__(self, random_state=None, lp_solver=None):
        """
        Args:
            random_state: 聚类算法使用的随机源 (None / int / RandomState)。
            lp_solver: 整数规划求解器，None 时使用默认的 `MilpSolver`。
        """
        self.random_state = check_random_state(random_state)
        self.lp_solver = lp_solver

    async def _run(self, name: str, competitors: List[Competitor], options) -> AlgorithmResult:
        if name == 'greedy':
            return solve_greedy(competitors, options)
        if name == 'clustering':
            return solve_clustering(competitors, options, random_state=self.random_state)
        if name == 'external-lp':
            return await solve_external_lp(competitors, options, solver=self.lp_solver)
        raise ValueError(f"未知的分组算法: {name}")

    async def compare_algorithms_async(self, competitors: List[Competitor],
                                       options=None) -> Tuple[Optional[AlgorithmResult], List[AlgorithmResult]]:
        """
        依次运行全部算法。

        Returns:
            (得分最高的结果, 所有成功运行的结果列表)。整数规划失败时只记录
            警告，其结果不参与比较。
        """
        opts = validate_and_sanitize_options(options, len(competitors))
        results: List[AlgorithmResult] = []
        for name in ('greedy', 'clustering', 'external-lp'):
            try:
                result = await self._run(name, competitors, opts)
            except SolverError as e:
                logging.warning(f"算法 {name} 运行失败，已从比较中排除: {e}")
                continue
            logging.info(f"算法 {result.algorithm_used} 得分 {result.result.score:.4f}, "
                         f"耗时 {result.execution_time:.3f}s")
            results.append(result)

        best = None
        for result in results:
            # 严格大于：同分时保留先运行的算法
            if best is None or result.result.score > best.result.score:
                best = result
        return best, results

    def compare_algorithms(self, competitors: List[Competitor],
                           options=None) -> Tuple[Optional[AlgorithmResult], List[AlgorithmResult]]:
        return asyncio.run(self.compare_algorithms_async(competitors, options))

    async def solve_async(self, competitors: List[Competitor], options=None) -> AlgorithmResult:
        """
        按 `options.algorithm` 运行分组算法。

        Raises:
            ValueError: 算法名未知。
            SolverError: 显式指定 `external-lp` 且求解失败。
        """
        opts = validate_and_sanitize_options(options, len(competitors))
        if opts.algorithm not in ALGORITHMS:
            raise ValueError(f"未知的分组算法: {opts.algorithm}")

        logging.info(f"开始分组: {len(competitors)} 名参赛者, 算法 {opts.algorithm}, {describe_options(opts)}")
        if not competitors:
            return empty_algorithm_result(opts, opts.algorithm)

        if opts.algorithm != 'auto':
            return await self._run(opts.algorithm, competitors, opts)

        best, results = await self.compare_algorithms_async(competitors, opts)
        if best is None:
            raise SolverError("没有任何分组算法成功运行。")
        logging.info(f"自动选择了 {best.algorithm_used} (候选 {len(results)} 个)。")
        return AlgorithmResult(
            result=best.result,
            execution_time=best.execution_time,
            algorithm_used=best.algorithm_used + AUTO_SUFFIX,
        )

    def solve(self, competitors: List[Competitor], options=None) -> AlgorithmResult:
        """同步版本的 `solve_async`，不能在已运行的事件循环中调用。"""
        return asyncio.run(self.solve_async(competitors, options))


def solve(competitors: List[Competitor], options=None, random_state=None) -> AlgorithmResult:
    return Orchestrator(random_state=random_state).solve(competitors, options)


async def solve_async(competitors: List[Competitor], options=None, random_state=None) -> AlgorithmResult:
    return await Orchestrator(random_state=random_state).solve_async(competitors, options)


def compare_algorithms(competitors: List[Competitor], options=None,
                       random_state=None) -> Tuple[Optional[AlgorithmResult], List[AlgorithmResult]]:
    return Orchestrator(random_state=random_state).compare_algorithms(competitors, options)
