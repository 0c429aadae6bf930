# -*- coding: utf-8 -*-
"""
评分引擎模块。

三种分组算法共用同一个评分函数。对每个大小为 s 的分组计算四个子分数：

- 组大小: max(0, 10 - 2 * |s - 首选大小|)
- 性别: 10 * (人数为偶数的性别的人数之和) / s
- 年龄组: 10 * (人数最多的年龄组人数) / s
- 器材: 聚合模式为 10 * (人数最多的器材类别人数) / s；
        分散模式为 10 * (不同器材类别数) / min(s, 3)

整体得分为各子分数在所有分组上的算术平均，性别、年龄、器材三项再乘以
各自的权重，四项之和即总分。评分只依赖分组内容的多重集合，与分组顺序、
组内成员顺序无关。
"""

import time
from collections import Counter
from typing import List, Sequence, Tuple

from qfen_data.models import (
    AlgorithmResult,
    Competitor,
    PartitionMetadata,
    PartitionOptions,
    PartitionResult,
    ScoreBreakdown,
)


def subset_sub_scores(subset: Sequence[Competitor], options: PartitionOptions) -> Tuple[float, float, float, float]:
    """
    计算单个分组未加权的四个子分数。

    Returns:
        (组大小分, 性别分, 年龄组分, 器材分)；空分组全部为 0。
    """
    size = len(subset)
    if size == 0:
        return 0.0, 0.0, 0.0, 0.0

    size_score = max(0.0, 10.0 - abs(size - options.preferred_subset_size) * 2.0)

    gender_counts = Counter(c.gender for c in subset)
    even_members = sum(count for count in gender_counts.values() if count % 2 == 0)
    gender_score = even_members / size * 10.0

    age_counts = Counter(c.age_category for c in subset)
    age_score = max(age_counts.values()) / size * 10.0

    equipment_counts = Counter(c.equipment_class for c in subset)
    if options.group_by_equipment_class:
        equipment_score = max(equipment_counts.values()) / size * 10.0
    else:
        # 最多按 3 个类别计算多样性
        equipment_score = len(equipment_counts) / min(size, 3) * 10.0

    return size_score, gender_score, age_score, equipment_score


def calculate_subset_score(subset: Sequence[Competitor], options: PartitionOptions) -> float:
    """单个分组的加权总分，供贪心算法做前瞻比较。"""
    size_score, gender_score, age_score, equipment_score = subset_sub_scores(subset, options)
    return (size_score
            + gender_score * options.gender_weight
            + age_score * options.age_category_weight
            + equipment_score * options.equipment_class_weight)


def calculate_score(subsets: List[List[Competitor]], options: PartitionOptions) -> Tuple[float, ScoreBreakdown]:
    """
    计算整个分组方案的总分及明细。

    没有任何分组时返回 0 分和全零明细。
    """
    total_subsets = len(subsets)
    if total_subsets == 0:
        return 0.0, ScoreBreakdown()

    sums = [0.0, 0.0, 0.0, 0.0]
    for subset in subsets:
        for i, value in enumerate(subset_sub_scores(subset, options)):
            sums[i] += value

    breakdown = ScoreBreakdown(
        size_score=sums[0] / total_subsets,
        gender_score=sums[1] / total_subsets * options.gender_weight,
        age_category_score=sums[2] / total_subsets * options.age_category_weight,
        equipment_class_score=sums[3] / total_subsets * options.equipment_class_weight,
    )
    return breakdown.total, breakdown


def create_partition_result(subsets: List[List[Competitor]], options: PartitionOptions) -> PartitionResult:
    """为分组方案计算得分并附带统计信息。"""
    total_competitors = sum(len(subset) for subset in subsets)
    score, breakdown = calculate_score(subsets, options)
    average_size = total_competitors / len(subsets) if subsets else 0.0

    return PartitionResult(
        subsets=subsets,
        score=score,
        metadata=PartitionMetadata(
            total_competitors=total_competitors,
            total_subsets=len(subsets),
            average_subset_size=average_size,
            score_breakdown=breakdown,
        ),
    )


def create_algorithm_result(subsets: List[List[Competitor]], options: PartitionOptions,
                            algorithm_name: str, start_time: float) -> AlgorithmResult:
    """把分组方案包装为带耗时（秒）与算法名的运行结果。"""
    return AlgorithmResult(
        result=create_partition_result(subsets, options),
        execution_time=time.perf_counter() - start_time,
        algorithm_used=algorithm_name,
    )


def empty_algorithm_result(options: PartitionOptions, algorithm_name: str) -> AlgorithmResult:
    """空输入的统一结果：没有分组、0 分、耗时为 0。"""
    return AlgorithmResult(
        result=create_partition_result([], options),
        execution_time=0.0,
        algorithm_used=algorithm_name,
    )
