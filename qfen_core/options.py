# -*- coding: utf-8 -*-
"""
分组配置清洗模块。

`validate_and_sanitize_options` 是一个纯函数：把用户提供的配置（字典、
`PartitionOptions` 或 None）与默认值合并，校正不合理的取值，返回一个新的
不可变 `PartitionOptions`。此过程从不抛出异常，所有问题都以校正方式处理。
"""

import logging
import math
from dataclasses import asdict, fields, replace
from typing import Any, Dict, Optional, Tuple, Union

from qfen_data.models import (
    DEFAULT_OPTIONS,
    PartitionOptions,
    SMALL_EVENT_MAX_SUBSET_SIZE,
    SMALL_EVENT_THRESHOLD,
)

# 原始配置中常见的 camelCase 键名
_OPTION_ALIASES = {
    'groupByEquipmentClass': 'group_by_equipment_class',
    'maxSubsets': 'max_subsets',
    'minSubsetSize': 'min_subset_size',
    'maxSubsetSize': 'max_subset_size',
    'preferredSubsetSize': 'preferred_subset_size',
    'genderWeight': 'gender_weight',
    'ageCategoryWeight': 'age_category_weight',
    'equipmentClassWeight': 'equipment_class_weight',
}

_OPTION_FIELDS = {f.name for f in fields(PartitionOptions)}

OptionsLike = Union[PartitionOptions, Dict[str, Any], None]


def _normalize_option_keys(options: Dict[str, Any]) -> Dict[str, Any]:
    normalized = {}
    for key, value in options.items():
        name = _OPTION_ALIASES.get(key, key)
        if name not in _OPTION_FIELDS:
            logging.warning(f"忽略未知的配置项: {key}")
            continue
        if value is None:
            continue
        normalized[name] = value
    return normalized


def merge_with_defaults(options: OptionsLike) -> PartitionOptions:
    """将用户配置与默认配置合并，不做任何校正。"""
    if options is None:
        return DEFAULT_OPTIONS
    if isinstance(options, PartitionOptions):
        return options
    return replace(DEFAULT_OPTIONS, **_normalize_option_keys(options))


def validate_and_sanitize_options(options: OptionsLike, competitor_count: int) -> PartitionOptions:
    """
    合并默认值并校正分组配置。

    校正规则（按顺序）：
    1. 最小/最大组大小颠倒时交换。
    2. 最小组大小至少为 2。
    3. 最大组大小不小于最小组大小。
    4. 首选组大小被夹在 [最小, 最大] 之间。
    5. 参赛人数不超过 112 时，最大组大小不超过 4。

    Args:
        options: 用户配置。
        competitor_count: 本次参与分组的人数。

    Returns:
        一个新的、所有字段都已校正的 `PartitionOptions`。
    """
    merged = asdict(merge_with_defaults(options))

    min_size = int(merged['min_subset_size'])
    max_size = int(merged['max_subset_size'])
    preferred = int(merged['preferred_subset_size'])

    if min_size > max_size:
        min_size, max_size = max_size, min_size
    if min_size < 2:
        min_size = 2
    if max_size < min_size:
        max_size = min_size
    preferred = min(max(preferred, min_size), max_size)

    if competitor_count <= SMALL_EVENT_THRESHOLD:
        max_size = min(max_size, SMALL_EVENT_MAX_SUBSET_SIZE)

    merged.update(
        min_subset_size=min_size,
        max_subset_size=max_size,
        preferred_subset_size=preferred,
        max_subsets=max(1, int(merged['max_subsets'])),
        group_by_equipment_class=bool(merged['group_by_equipment_class']),
        gender_weight=float(merged['gender_weight']),
        age_category_weight=float(merged['age_category_weight']),
        equipment_class_weight=float(merged['equipment_class_weight']),
    )
    return PartitionOptions(**merged)


def round_half_up(value: float) -> int:
    """四舍五入（.5 向上取整），与 Python 内置的银行家舍入不同。"""
    return int(math.floor(value + 0.5))


def calculate_optimal_subset_count(competitor_count: int,
                                   options: PartitionOptions) -> Tuple[int, int, int, int]:
    """
    根据人数与配置计算分组数量的范围。

    Returns:
        (最少组数, 最多组数, 首选组数, 推荐组数)
    """
    min_subsets = math.ceil(competitor_count / options.max_subset_size)
    max_subsets = min(options.max_subsets, competitor_count // options.min_subset_size)
    preferred_subsets = round_half_up(competitor_count / options.preferred_subset_size)
    recommended = max(min_subsets, min(max_subsets, preferred_subsets))
    return min_subsets, max_subsets, preferred_subsets, recommended


def get_slot_count(competitor_count: int, options: PartitionOptions) -> int:
    """贪心装箱与线性规划模型使用的分组槽位数。"""
    return max(1, min(options.max_subsets, math.ceil(competitor_count / options.min_subset_size)))


def describe_options(options: Optional[PartitionOptions]) -> str:
    if options is None:
        return "<默认配置>"
    return (f"组大小 [{options.min_subset_size}, {options.max_subset_size}] 首选 {options.preferred_subset_size}, "
            f"最多 {options.max_subsets} 组, 器材{'聚合' if options.group_by_equipment_class else '分散'}")
