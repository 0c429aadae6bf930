# -*- coding: utf-8 -*-
"""
特征编码引擎模块。

把参赛者（以及由参赛者组成的家庭）编码为数值特征向量，并提供聚类所需的
距离计算。特征向量由四段组成：

    [ 性别 one-hot | 年龄组 one-hot | 器材类别 one-hot | 是否有监护人 ]

各段的取值范围不是全局固定的词表，而是"当前这一批参赛者中实际出现过的值"，
按首次出现的顺序排列。段边界记录在 `FeatureSegments` 中，加权距离据此对
不同段使用不同的权重（监护标志位不加权）。
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from qfen_data.models import Competitor, Family, PartitionOptions


def _unique_in_order(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


@dataclass(frozen=True)
class FeatureSegments:
    """特征向量中各段的起始下标。"""
    gender_start: int
    age_start: int
    equipment_start: int
    guardian_index: int

    @property
    def length(self) -> int:
        return self.guardian_index + 1


class FeatureEncoder:
    """
    封装了参赛者特征编码的全部逻辑。

    使用前需先调用 `fit` 记录本批次的取值范围；之后对同一批次内的任意
    参赛者或家庭编码，得到的向量长度一致。
    """

    def __init__(self):
        self.genders: List[str] = []
        self.age_categories: List[str] = []
        self.equipment_classes: List[str] = []
        self.segments: Optional[FeatureSegments] = None

    def fit(self, batch: List[Competitor]) -> 'FeatureEncoder':
        """记录本批次出现的性别、年龄组和器材类别，并计算段边界。"""
        self.genders = _unique_in_order(c.gender for c in batch)
        self.age_categories = _unique_in_order(c.age_category for c in batch)
        self.equipment_classes = _unique_in_order(c.equipment_class for c in batch)

        age_start = len(self.genders)
        equipment_start = age_start + len(self.age_categories)
        self.segments = FeatureSegments(
            gender_start=0,
            age_start=age_start,
            equipment_start=equipment_start,
            guardian_index=equipment_start + len(self.equipment_classes),
        )
        return self

    def _check_fitted(self):
        if self.segments is None:
            raise RuntimeError("FeatureEncoder 尚未 fit，无法编码。")

    def encode(self, competitor: Competitor) -> np.ndarray:
        """将单个参赛者编码为 one-hot + 监护标志位 的向量。"""
        self._check_fitted()
        features = np.zeros(self.segments.length, dtype=float)
        for offset, values, value in (
            (self.segments.gender_start, self.genders, competitor.gender),
            (self.segments.age_start, self.age_categories, competitor.age_category),
            (self.segments.equipment_start, self.equipment_classes, competitor.equipment_class),
        ):
            if value in values:
                features[offset + values.index(value)] = 1.0
        features[self.segments.guardian_index] = 1.0 if competitor.guardian_id else 0.0
        return features

    def encode_family(self, family: Family) -> np.ndarray:
        """家庭的特征向量是其成员向量的逐坐标平均。"""
        return np.mean([self.encode(member) for member in family], axis=0)

    def transform_families(self, families: List[Family]) -> np.ndarray:
        """返回形状为 (家庭数, 特征长度) 的特征矩阵。"""
        self._check_fitted()
        if not families:
            return np.zeros((0, self.segments.length), dtype=float)
        return np.vstack([self.encode_family(family) for family in families])


def encode_competitor(competitor: Competitor, batch: List[Competitor]) -> np.ndarray:
    """以 `batch` 为取值范围编码单个参赛者。"""
    return FeatureEncoder().fit(batch).encode(competitor)


def segment_weight_vector(options: PartitionOptions, segments: FeatureSegments) -> np.ndarray:
    """按段展开的逐坐标权重：性别段、年龄段、器材段分别使用对应权重，监护标志位为 1。"""
    weights = np.ones(segments.length, dtype=float)
    weights[segments.gender_start:segments.age_start] = options.gender_weight
    weights[segments.age_start:segments.equipment_start] = options.age_category_weight
    weights[segments.equipment_start:segments.guardian_index] = options.equipment_class_weight
    return weights


def calculate_distance(features1: np.ndarray, features2: np.ndarray) -> float:
    """两个特征向量之间的欧氏距离。"""
    return float(np.linalg.norm(np.asarray(features1, dtype=float) - np.asarray(features2, dtype=float)))


def calculate_weighted_distance(features1: np.ndarray, features2: np.ndarray,
                                options: PartitionOptions, segments: FeatureSegments) -> float:
    """每个坐标的差值先乘以所在段的权重，再取欧氏范数。"""
    diff = np.asarray(features1, dtype=float) - np.asarray(features2, dtype=float)
    return float(np.linalg.norm(diff * segment_weight_vector(options, segments)))
