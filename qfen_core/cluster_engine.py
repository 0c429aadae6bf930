# -*- coding: utf-8 -*-
"""
聚类引擎模块 (v3.2 - 家庭感知的 K-Means)。

以"家庭"而不是单个参赛者为样本执行 K-Means：
1.  **选择 K**: 由人数与组大小约束推导出 [最少组数, 最多组数]，把首选组数
    夹在其中，并且不超过家庭数量。
2.  **初始化**: 使用 scikit-learn 的 `kmeans_plusplus`（每轮只抽一个候选），
    首个中心均匀随机选取，其余中心按到最近中心的平方距离成比例抽样。
3.  **分配 / 更新**: 每个家庭加入加权距离最近的中心（并列时取下标最小者），
    中心移动到成员的均值；所有坐标的移动都不超过 1e-6 时收敛，最多 100 轮。
    未收敛时直接使用当前分配，不视为失败。

聚类结果交给 `ConstraintRepair` 修复为满足约束的分组。
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from scipy.spatial.distance import cdist
from sklearn.cluster import kmeans_plusplus
from sklearn.utils import check_random_state

from qfen_data.models import AlgorithmResult, Competitor, Family, PartitionOptions
from qfen_core.constraint_repair import ConstraintRepair
from qfen_core.family_grouper import create_guardian_families
from qfen_core.feature_encoder import FeatureEncoder, segment_weight_vector
from qfen_core.options import calculate_optimal_subset_count, validate_and_sanitize_options
from qfen_core.scoring import create_algorithm_result, empty_algorithm_result

ALGORITHM_NAME = 'K-means Clustering'


@dataclass
class FamilyFeatures:
    family: Family
    features: np.ndarray
    cluster_id: int = -1

    @property
    def size(self) -> int:
        return len(self.family)


@dataclass
class ClusterCenter:
    id: int
    features: np.ndarray
    members: List[FamilyFeatures] = field(default_factory=list)

    @property
    def size(self) -> int:
        return sum(member.size for member in self.members)

    def families(self) -> List[Family]:
        return [member.family for member in self.members]


class ClusterEngine:
    """
    封装了家庭级别 K-Means 聚类的全部状态与步骤。
    """

    MAX_ITERATIONS = 100
    TOLERANCE = 1e-6

    def __init__(self, options: PartitionOptions, random_state=None):
        self.options = options
        self.random_state = check_random_state(random_state)
        self.encoder = FeatureEncoder()
        self.iterations_run = 0
        self.converged = False

    def choose_cluster_count(self, total_competitors: int, family_count: int) -> int:
        """
        K = clamp(首选组数, 最少组数, 最多组数)，且不超过家庭数，至少为 1。

        最少组数大于最多组数时以最多组数为准，超出组大小上限的部分交给约束修复。
        """
        min_k, max_k, preferred_k, _ = calculate_optimal_subset_count(total_competitors, self.options)
        k = min(max_k, max(min_k, min(preferred_k, family_count)))
        return max(1, min(k, family_count))

    def build_family_features(self, families: List[Family], competitors: List[Competitor]) -> List[FamilyFeatures]:
        self.encoder.fit(competitors)
        matrix = self.encoder.transform_families(families)
        return [FamilyFeatures(family=family, features=matrix[i]) for i, family in enumerate(families)]

    def initialize_centers(self, family_features: List[FamilyFeatures], k: int) -> List[ClusterCenter]:
        """K-Means++ 初始化：距离使用未加权的特征。"""
        matrix = np.vstack([ff.features for ff in family_features])
        centers, _ = kmeans_plusplus(matrix, n_clusters=k, random_state=self.random_state, n_local_trials=1)
        return [ClusterCenter(id=i, features=np.array(center, dtype=float)) for i, center in enumerate(centers)]

    def assign_to_clusters(self, family_features: List[FamilyFeatures], centers: List[ClusterCenter],
                           weights: np.ndarray) -> None:
        for center in centers:
            center.members = []

        matrix = np.vstack([ff.features for ff in family_features]) * weights
        center_matrix = np.vstack([center.features for center in centers]) * weights
        # argmin 在并列时返回第一个下标，即编号最小的中心
        nearest = np.argmin(cdist(matrix, center_matrix, metric='euclidean'), axis=1)

        for ff, cluster_id in zip(family_features, nearest):
            ff.cluster_id = int(cluster_id)
            centers[ff.cluster_id].members.append(ff)

    def update_cluster_centers(self, centers: List[ClusterCenter]) -> bool:
        """把每个非空中心移动到成员均值，返回是否有中心发生了移动。"""
        changed = False
        for center in centers:
            if not center.members:
                continue
            new_features = np.mean([member.features for member in center.members], axis=0)
            if np.any(np.abs(center.features - new_features) > self.TOLERANCE):
                changed = True
            center.features = new_features
        return changed

    def fit(self, competitors: List[Competitor], families: Optional[List[Family]] = None) -> List[ClusterCenter]:
        """
        对参赛者执行家庭级别的聚类，返回原始簇（可能包含空簇）。
        """
        if families is None:
            families = create_guardian_families(competitors)
        if not families:
            return []

        family_features = self.build_family_features(families, competitors)
        weights = segment_weight_vector(self.options, self.encoder.segments)
        k = self.choose_cluster_count(len(competitors), len(families))
        logging.info(f"开始家庭级 K-Means 聚类: {len(competitors)} 名参赛者, {len(families)} 个家庭, K={k}")

        centers = self.initialize_centers(family_features, k)
        self.converged = False
        self.iterations_run = 0
        for iteration in range(self.MAX_ITERATIONS):
            self.iterations_run = iteration + 1
            self.assign_to_clusters(family_features, centers, weights)
            if not self.update_cluster_centers(centers):
                self.converged = True
                break

        if self.converged:
            logging.info(f"K-Means 在第 {self.iterations_run} 轮收敛。")
        else:
            logging.warning(f"K-Means 在 {self.MAX_ITERATIONS} 轮内未收敛，使用当前分配结果。")
        return centers


def solve_clustering(competitors: List[Competitor], options=None, random_state=None) -> AlgorithmResult:
    """
    使用 家庭级 K-Means + 约束修复 对参赛者分组。

    Args:
        competitors: 参赛者列表（已通过校验）。
        options: 分组配置（字典、`PartitionOptions` 或 None）。
        random_state: 随机源，None / int / `numpy.random.RandomState`。
    """
    start_time = time.perf_counter()
    opts = validate_and_sanitize_options(options, len(competitors))
    if not competitors:
        return empty_algorithm_result(opts, ALGORITHM_NAME)

    random_state = check_random_state(random_state)
    families = create_guardian_families(competitors)
    engine = ClusterEngine(opts, random_state=random_state)
    centers = engine.fit(competitors, families)

    repair = ConstraintRepair(opts, random_state=random_state)
    subsets = repair.repair_to_subsets([center.families() for center in centers])
    logging.info(f"聚类分组完成: {len(subsets)} 个分组。")
    return create_algorithm_result(subsets, opts, ALGORITHM_NAME, start_time)
