# -*- coding: utf-8 -*-
"""
文件读写模块 (v1.1 - 兼容驼峰字段名)。

负责从磁盘读取参赛者名单并把分组结果写回磁盘。支持两种输入格式：
- `.json`: 由对象组成的列表，字段名可以是 snake_case，也可以是
  原始数据常用的 camelCase（如 `equipmentClass`、`guardianId`）。
- `.csv`: 带表头的逗号分隔文件，字段规则同上。

此模块只做格式转换，不做业务校验；字段值是否合法由
`qfen_core.validator` 负责。
"""

import csv
import json
import logging
import os
from typing import Any, Dict, List

from qfen_data.models import Competitor, PartitionResult

# 原始数据中的 camelCase 字段名 -> 模型字段名
_FIELD_ALIASES = {
    'id': 'id',
    'equipmentClass': 'equipment_class',
    'equipment_class': 'equipment_class',
    'ageCategory': 'age_category',
    'age_category': 'age_category',
    'gender': 'gender',
    'guardianId': 'guardian_id',
    'guardian_id': 'guardian_id',
}


def normalize_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    将一条原始记录的字段名统一为模型字段名，未知字段会被丢弃。

    空字符串形式的 guardian_id（CSV 中常见）会被视为 None。
    """
    normalized = {}
    for key, value in record.items():
        target = _FIELD_ALIASES.get(key)
        if target is None:
            logging.debug(f"忽略未知字段: {key}")
            continue
        if isinstance(value, str):
            value = value.strip()
        normalized[target] = value

    if not normalized.get('guardian_id'):
        normalized['guardian_id'] = None
    return normalized


def competitor_from_dict(record: Dict[str, Any]) -> Competitor:
    """由一条原始记录构建 `Competitor`。缺少必填字段时抛出 ValueError。"""
    normalized = normalize_record(record)
    missing = [name for name in ('id', 'equipment_class', 'age_category', 'gender') if name not in normalized]
    if missing:
        raise ValueError(f"记录缺少必填字段 {missing}: {record}")
    return Competitor(**normalized)


def competitor_to_dict(competitor: Competitor) -> Dict[str, Any]:
    data = {
        'id': competitor.id,
        'equipmentClass': competitor.equipment_class,
        'ageCategory': competitor.age_category,
        'gender': competitor.gender,
    }
    if competitor.guardian_id:
        data['guardianId'] = competitor.guardian_id
    return data


def load_raw_records(file_path: str) -> List[Dict[str, Any]]:
    """
    读取原始记录列表（未做字段名转换）。

    Raises:
        ValueError: 文件扩展名不受支持，或 JSON 顶层不是列表。
    """
    norm_path = os.path.normpath(file_path)
    file_ext = os.path.splitext(norm_path)[1].lower()

    if file_ext == '.json':
        with open(norm_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"JSON 文件的顶层必须是列表: {norm_path}")
        return data
    if file_ext == '.csv':
        with open(norm_path, 'r', encoding='utf-8', newline='') as f:
            return [dict(row) for row in csv.DictReader(f)]

    raise ValueError(f"不支持的文件类型 '{file_ext}': {norm_path}")


def load_competitors(file_path: str) -> List[Competitor]:
    """读取参赛者名单文件并转换为 `Competitor` 列表。"""
    records = load_raw_records(file_path)
    competitors = [competitor_from_dict(record) for record in records]
    logging.info(f"已从 {file_path} 读取 {len(competitors)} 名参赛者。")
    return competitors


def save_partition_result(result: PartitionResult, file_path: str) -> None:
    """
    将分组结果保存为格式化的 JSON 文件。

    除了分组中的 id 列表，还会写出每个分组的完整参赛者信息，
    方便人工核对。
    """
    payload = result.to_dict()
    payload['subsets'] = [[competitor_to_dict(c) for c in subset] for subset in result.subsets]

    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, ensure_ascii=False, indent=4)
    logging.info(f"分组结果已保存到 {file_path}")
