# -*- coding: utf-8 -*-
"""
混合整数规划求解模块 (v1.1 - HiGHS 作为可替换的外部求解器)。

把分组问题表达为 0-1 整数规划模型：
- 变量 `x_i_j` = 1 表示家庭 i 被分配到槽位 j；
- 变量 `y_j` = 1 表示槽位 j 被启用（带 -0.1 的小惩罚，抑制开过多分组）；
- 约束: 每个家庭恰好分配一次；每个槽位人数不超过最大组大小；
  槽位只要有家庭就必须启用；启用的槽位人数不少于最小组大小。

模型本身与求解器无关 (`LPModel`)。默认使用 `scipy.optimize.milp`（内部
调用 HiGHS）求解，求解调用通过 `asyncio.to_thread` 放到工作线程中执行，
这是整个系统中唯一的挂起点。
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp

from qfen_data.models import AlgorithmResult, Competitor, Family, PartitionOptions
from qfen_core.family_grouper import create_guardian_families
from qfen_core.options import get_slot_count, validate_and_sanitize_options
from qfen_core.scoring import create_algorithm_result, empty_algorithm_result
from qfen_core.validator import validate_partition

ALGORITHM_NAME = 'Mixed Integer Programming (HiGHS)'

STATUS_OPTIMAL = 'Optimal'
STATUS_TIME_LIMIT = 'Time limit reached'
STATUS_INFEASIBLE = 'Infeasible'
STATUS_UNBOUNDED = 'Unbounded'
STATUS_ERROR = 'Error'

# scipy.optimize.milp 的状态码
_MILP_STATUS = {
    0: STATUS_OPTIMAL,
    1: STATUS_TIME_LIMIT,
    2: STATUS_INFEASIBLE,
    3: STATUS_UNBOUNDED,
}


class SolverError(RuntimeError):
    """外部求解器失败，或其解不满足分组约束。"""


@dataclass
class LPVariable:
    name: str
    lower: float = 0.0
    upper: float = 1.0
    type: str = 'binary'
    cost: float = 0.0


@dataclass
class LPConstraint:
    name: str
    lower: float
    upper: float
    entries: List[Tuple[str, float]] = field(default_factory=list)


@dataclass
class LPSolution:
    status: str
    values: Dict[str, float] = field(default_factory=dict)

    @property
    def is_optimal(self) -> bool:
        return self.status == STATUS_OPTIMAL


def _format_number(value: float) -> str:
    return f"{value:g}"


def _format_terms(entries: List[Tuple[str, float]]) -> str:
    terms = []
    for name, coefficient in entries:
        sign = '+' if coefficient >= 0 else ''
        terms.append(f"{sign}{_format_number(coefficient)} {name}")
    return ' '.join(terms)


@dataclass
class LPModel:
    """
    与具体求解器无关的线性模型：变量、目标系数和带上下界的约束行。
    """
    sense: str = 'maximize'
    variables: List[LPVariable] = field(default_factory=list)
    constraints: List[LPConstraint] = field(default_factory=list)

    def variable_index(self) -> Dict[str, int]:
        return {variable.name: i for i, variable in enumerate(self.variables)}

    def to_lp_format(self) -> str:
        """
        渲染为 CPLEX LP 文本格式，用于调试输出。

        上下界都有限且不相等的约束会拆成两行，上界行以 `_upper` 结尾。
        """
        lines = ['Maximize' if self.sense == 'maximize' else 'Minimize']
        objective = [(v.name, v.cost) for v in self.variables if v.cost != 0]
        lines.append(f"obj: {_format_terms(objective)}")
        lines.append('')
        lines.append('Subject To')

        for constraint in self.constraints:
            terms = _format_terms(constraint.entries)
            if constraint.lower == constraint.upper:
                lines.append(f"{constraint.name}: {terms} = {_format_number(constraint.lower)}")
                continue
            has_lower = constraint.lower > -math.inf
            has_upper = constraint.upper < math.inf
            if has_lower and has_upper:
                lines.append(f"{constraint.name}: {terms} >= {_format_number(constraint.lower)}")
                lines.append(f"{constraint.name}_upper: {terms} <= {_format_number(constraint.upper)}")
            elif has_lower:
                lines.append(f"{constraint.name}: {terms} >= {_format_number(constraint.lower)}")
            elif has_upper:
                lines.append(f"{constraint.name}: {terms} <= {_format_number(constraint.upper)}")
            else:
                lines.append(f"{constraint.name}: {terms}")

        lines.append('')
        lines.append('Bounds')
        binaries = []
        for variable in self.variables:
            if variable.type == 'binary':
                binaries.append(variable.name)
            elif variable.lower != 0 or variable.upper != math.inf:
                lines.append(f"{_format_number(variable.lower)} <= {variable.name} <= "
                             f"{_format_number(variable.upper)}")
        if binaries:
            lines.append('')
            lines.append('Binary')
            lines.append(' '.join(binaries))
        lines.append('')
        lines.append('End')
        return '\n'.join(lines) + '\n'


def calculate_objective_coefficient(family: Family, options: PartitionOptions) -> float:
    """
    家庭-槽位分配变量的目标系数（与槽位无关）。

    基础分 10；家庭人数等于首选组大小 +5，小于首选组大小 +3；
    家庭内性别混合 +2×性别权重；家庭内年龄组单一 +2×年龄权重；
    器材: 聚合模式下单一器材 +2×器材权重，分散模式下多种器材 +1×器材权重。
    """
    size = len(family)
    coefficient = 10.0

    if size == options.preferred_subset_size:
        coefficient += 5
    elif size <= options.preferred_subset_size:
        coefficient += 3

    if len({c.gender for c in family}) > 1:
        coefficient += 2 * options.gender_weight

    if len({c.age_category for c in family}) == 1:
        coefficient += 2 * options.age_category_weight

    equipment_count = len({c.equipment_class for c in family})
    if options.group_by_equipment_class and equipment_count == 1:
        coefficient += 2 * options.equipment_class_weight
    elif not options.group_by_equipment_class and equipment_count > 1:
        coefficient += 1 * options.equipment_class_weight

    return coefficient


def build_partition_model(families: List[Family], options: PartitionOptions) -> LPModel:
    """
    为给定家庭构建分组模型。

    槽位数 J = min(最大组数, ceil(总人数 / 最小组大小))。
    """
    total = sum(len(family) for family in families)
    slot_count = get_slot_count(total, options)
    model = LPModel(sense='maximize')

    for i, family in enumerate(families):
        cost = calculate_objective_coefficient(family, options)
        for j in range(slot_count):
            model.variables.append(LPVariable(name=f"x_{i}_{j}", cost=cost))

    for i in range(len(families)):
        model.constraints.append(LPConstraint(
            name=f"assign_family_{i}", lower=1, upper=1,
            entries=[(f"x_{i}_{j}", 1) for j in range(slot_count)],
        ))

    for j in range(slot_count):
        model.constraints.append(LPConstraint(
            name=f"max_size_subset_{j}", lower=0, upper=options.max_subset_size,
            entries=[(f"x_{i}_{j}", len(family)) for i, family in enumerate(families)],
        ))

    for j in range(slot_count):
        indicator = f"y_{j}"
        model.variables.append(LPVariable(name=indicator, cost=-0.1))
        model.constraints.append(LPConstraint(
            name=f"link_subset_{j}", lower=-math.inf, upper=0,
            entries=[(indicator, -options.max_subset_size)]
                    + [(f"x_{i}_{j}", 1) for i in range(len(families))],
        ))
        model.constraints.append(LPConstraint(
            name=f"min_size_subset_{j}", lower=0, upper=math.inf,
            entries=[(indicator, -options.min_subset_size)]
                    + [(f"x_{i}_{j}", len(family)) for i, family in enumerate(families)],
        ))

    return model


class MilpSolver:
    """
    基于 `scipy.optimize.milp` (HiGHS) 的求解器。

    任何提供 `solve(model) -> LPSolution` 方法的对象都可以替代它。
    """

    def __init__(self, time_limit: Optional[float] = 30.0):
        self.time_limit = time_limit

    def _to_arrays(self, model: LPModel):
        index = model.variable_index()
        n = len(model.variables)

        c = np.array([variable.cost for variable in model.variables], dtype=float)
        if model.sense == 'maximize':
            # milp 只做最小化
            c = -c

        integrality = np.array([0 if v.type == 'continuous' else 1 for v in model.variables])
        bounds = Bounds(
            lb=np.array([v.lower for v in model.variables], dtype=float),
            ub=np.array([v.upper for v in model.variables], dtype=float),
        )

        matrix = np.zeros((len(model.constraints), n), dtype=float)
        for row, constraint in enumerate(model.constraints):
            for name, coefficient in constraint.entries:
                matrix[row, index[name]] += coefficient
        lower = np.array([constraint.lower for constraint in model.constraints], dtype=float)
        upper = np.array([constraint.upper for constraint in model.constraints], dtype=float)
        return c, integrality, bounds, LinearConstraint(matrix, lower, upper)

    def solve(self, model: LPModel) -> LPSolution:
        if not model.variables:
            return LPSolution(status=STATUS_OPTIMAL)

        c, integrality, bounds, constraints = self._to_arrays(model)
        solver_options = {'disp': False}
        if self.time_limit is not None:
            solver_options['time_limit'] = self.time_limit

        try:
            result = milp(c, integrality=integrality, bounds=bounds,
                          constraints=constraints, options=solver_options)
        except ValueError as e:
            logging.error(f"HiGHS 求解器拒绝了模型: {e}")
            return LPSolution(status=STATUS_ERROR)

        status = _MILP_STATUS.get(result.status, STATUS_ERROR)
        logging.info(f"HiGHS 求解结束: {status} ({result.message})")
        if result.x is None:
            return LPSolution(status=status)
        values = {variable.name: float(value) for variable, value in zip(model.variables, result.x)}
        return LPSolution(status=status, values=values)


def decode_assignment(families: List[Family], slot_count: int, solution: LPSolution) -> List[List[Competitor]]:
    """把 0-1 解还原为分组；取值 > 0.5 视为 1，每个家庭只取第一个命中的槽位。"""
    subsets: List[List[Competitor]] = [[] for _ in range(slot_count)]
    for i, family in enumerate(families):
        for j in range(slot_count):
            if solution.values.get(f"x_{i}_{j}", 0.0) > 0.5:
                subsets[j].extend(family)
                break
    return [subset for subset in subsets if subset]


async def solve_external_lp(competitors: List[Competitor], options=None, solver=None) -> AlgorithmResult:
    """
    使用整数规划模型对参赛者分组。

    Args:
        competitors: 参赛者列表。
        options: 分组配置。
        solver: 提供 `solve(model)` 的求解器，默认为 `MilpSolver()`。

    Raises:
        SolverError: 求解状态不是 Optimal，或解不满足覆盖、组大小、监护约束。
    """
    start_time = time.perf_counter()
    opts = validate_and_sanitize_options(options, len(competitors))
    if not competitors:
        return empty_algorithm_result(opts, ALGORITHM_NAME)

    solver = solver or MilpSolver()
    families = create_guardian_families(competitors)
    model = build_partition_model(families, opts)
    slot_count = get_slot_count(len(competitors), opts)

    if len(families) <= 5:
        logging.debug(f"整数规划模型: {len(model.variables)} 个变量, {len(model.constraints)} 个约束")
    if len(families) <= 3:
        logging.debug(f"生成的 LP 模型:\n{model.to_lp_format()}")

    solution = await asyncio.to_thread(solver.solve, model)
    if solution is None:
        raise SolverError("求解器没有返回任何结果。")
    if solution.status != STATUS_OPTIMAL:
        raise SolverError(f"求解失败，状态: {solution.status}")

    subsets = decode_assignment(families, slot_count, solution)
    validation = validate_partition(competitors, subsets, opts)
    if not validation.valid:
        raise SolverError(f"求解结果不满足约束: {'; '.join(validation.errors)}")

    return create_algorithm_result(subsets, opts, ALGORITHM_NAME, start_time)
