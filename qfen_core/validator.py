# -*- coding: utf-8 -*-
"""
输入与结果校验模块。

校验器只报告问题，不抛出异常：所有问题以人类可读的错误消息收集到
`ValidationResult.errors` 中。分组算法假定输入已经通过 `validate_competitors`。
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence

from qfen_data.file_handler import normalize_record
from qfen_data.models import (
    MAX_COMPETITORS,
    MAX_FAMILY_SIZE,
    Competitor,
    ValidationResult,
    is_valid_age_group,
    is_valid_equipment_class,
    is_valid_gender,
)
from qfen_core.options import validate_and_sanitize_options


def _as_record(item) -> Optional[dict]:
    if isinstance(item, Competitor):
        return {
            'id': item.id,
            'equipment_class': item.equipment_class,
            'age_category': item.age_category,
            'gender': item.gender,
            'guardian_id': item.guardian_id,
        }
    if isinstance(item, dict):
        return normalize_record(item)
    return None


def is_valid_record(record: Optional[dict]) -> bool:
    """检查单条记录的字段类型与取值。"""
    if not record:
        return False

    competitor_id = record.get('id')
    if not isinstance(competitor_id, str) or not competitor_id.strip():
        return False
    if not is_valid_equipment_class(record.get('equipment_class')):
        return False
    if not is_valid_age_group(record.get('age_category')):
        return False
    if not is_valid_gender(record.get('gender')):
        return False

    guardian_id = record.get('guardian_id')
    if guardian_id is not None and (not isinstance(guardian_id, str) or not guardian_id.strip()):
        return False
    return True


def find_guardian_cycles(guardian_of: Dict[str, Optional[str]]) -> List[str]:
    """
    查找监护关系中的环，返回每个环上首次被发现的参赛者 id。

    使用显式栈做迭代式深度优先遍历：`visited` 记录已处理完的节点，
    `in_progress` 记录当前路径上的节点。沿监护关系前进时再次遇到
    `in_progress` 中的节点即说明存在环。
    """
    visited = set()
    cycles = []
    for start in guardian_of:
        if start in visited:
            continue
        path: List[str] = []
        in_progress = set()
        node = start
        while node is not None and node in guardian_of and node not in visited:
            if node in in_progress:
                cycles.append(node)
                break
            in_progress.add(node)
            path.append(node)
            node = guardian_of[node]
        visited.update(path)
    return cycles


def validate_competitors(raw) -> ValidationResult:
    """
    校验原始参赛者数据（字典或 `Competitor` 组成的列表）。

    检查项：列表类型、非空、人数上限、单条记录、重复 id、监护人存在性、
    监护关系环、家庭人数上限。
    """
    result = ValidationResult()

    if not isinstance(raw, (list, tuple)):
        result.errors.append("参赛者数据必须是列表")
        return result
    if not raw:
        result.errors.append("至少需要一名参赛者")
        return result
    if len(raw) > MAX_COMPETITORS:
        result.errors.append(f"参赛者人数 {len(raw)} 超过上限 {MAX_COMPETITORS}")

    records = []
    seen_ids = set()
    for index, item in enumerate(raw):
        record = _as_record(item)
        if not is_valid_record(record):
            result.errors.append(f"第 {index} 条参赛者记录无效")
            continue
        if record['id'] in seen_ids:
            result.errors.append(f"参赛者 id 重复: {record['id']}")
        else:
            seen_ids.add(record['id'])
        records.append(record)

    for record in records:
        guardian_id = record.get('guardian_id')
        if guardian_id and guardian_id not in seen_ids:
            result.errors.append(f"参赛者 {record['id']} 的监护人 {guardian_id} 不存在")

    guardian_of = {record['id']: record.get('guardian_id') for record in records}
    for competitor_id in find_guardian_cycles(guardian_of):
        result.errors.append(f"检测到涉及参赛者 {competitor_id} 的监护关系环")

    dependents = Counter(record['guardian_id'] for record in records if record.get('guardian_id'))
    for guardian_id, count in dependents.items():
        if count + 1 > MAX_FAMILY_SIZE:
            result.errors.append(f"监护人 {guardian_id} 的家庭人数 {count + 1} 超过上限 {MAX_FAMILY_SIZE}")

    return result


def validate_guardian_constraints(competitors: Sequence[Competitor],
                                  subsets: List[List[Competitor]]) -> ValidationResult:
    """检查每名有监护人的参赛者是否与其监护人在同一分组。"""
    result = ValidationResult()
    subset_of: Dict[str, int] = {}
    for index, subset in enumerate(subsets):
        for competitor in subset:
            subset_of[competitor.id] = index

    for competitor in competitors:
        if not competitor.guardian_id:
            continue
        own = subset_of.get(competitor.id)
        guardian = subset_of.get(competitor.guardian_id)
        if own is None:
            result.errors.append(f"参赛者 {competitor.id} 未被分配到任何分组")
        elif guardian is None:
            result.errors.append(f"参赛者 {competitor.id} 的监护人 {competitor.guardian_id} 不在任何分组中")
        elif own != guardian:
            result.errors.append(f"参赛者 {competitor.id} 与监护人 {competitor.guardian_id} "
                                 f"不在同一分组 ({own} vs {guardian})")
    return result


def validate_partition(competitors: Sequence[Competitor], subsets: List[List[Competitor]],
                       options=None) -> ValidationResult:
    """
    检查分组方案：每人恰好分配一次、组大小上下限、组数上限以及监护约束。
    """
    opts = validate_and_sanitize_options(options, len(competitors))
    result = ValidationResult()

    assigned = set()
    for subset in subsets:
        for competitor in subset:
            if competitor.id in assigned:
                result.errors.append(f"参赛者 {competitor.id} 被分配到多个分组")
            assigned.add(competitor.id)
    if len(assigned) != len(competitors):
        result.errors.append(f"并非所有参赛者都已分配: {len(assigned)}/{len(competitors)}")

    for index, subset in enumerate(subsets):
        size = len(subset)
        if size < opts.min_subset_size:
            result.errors.append(f"分组 {index} 人数过少: {size} < {opts.min_subset_size}")
        if size > opts.max_subset_size:
            result.errors.append(f"分组 {index} 人数过多: {size} > {opts.max_subset_size}")

    if len(subsets) > opts.max_subsets:
        result.errors.append(f"分组数量过多: {len(subsets)} > {opts.max_subsets}")

    result.errors.extend(validate_guardian_constraints(competitors, subsets).errors)
    return result
