# -*- coding: utf-8 -*-
"""
约束修复模块 (v2.1 - 分阶段所有权)。

把聚类得到的原始簇（成员为完整家庭）修复为满足组大小与组数量约束的分组。
修复由若干个相互独立的阶段组成，每个阶段接收上一阶段的输出列表并返回
一个新列表，便于单独测试：

1.  **classify**: 大小合法的簇直接保留；过大的簇待拆分；过小的簇整体解散，
    其家庭进入待分配队列 (backlog)。
2.  **split**: 打乱过大簇中的家庭顺序后依次装桶，桶满即关闭。
3.  **redistribute**: 把 backlog 中的家庭放入仍有空位的分组；放不下时
    新开分组；已达组数上限且无处可放时，强制放入当前最小的分组。
4.  **enforce_group_ceiling**: 组数超过上限时合并最合适的一对分组。
5.  **rebalance**: 组数恰好等于上限但仍有大小违规时，按家庭大小降序重新装箱。
6.  **cleanup**: 反复把最小的过小分组并入其他分组。

任何阶段都以完整家庭为单位移动成员，绝不拆分家庭。强制放置可能导致
分组大小越界，这是启发式算法已知的、可接受的结果，只记录警告，不抛出异常。
"""

import logging
from typing import List, Optional, Tuple

from sklearn.utils import check_random_state

from qfen_data.models import Competitor, Family, PartitionOptions

# 修复过程中的分组：由完整家庭组成
FamilyGroup = List[Family]


def group_size(group: FamilyGroup) -> int:
    """分组中的参赛者人数。"""
    return sum(len(family) for family in group)


def group_members(group: FamilyGroup) -> List[Competitor]:
    return [competitor for family in group for competitor in family]


def _smallest_index(groups: List[FamilyGroup], exclude: Optional[int] = None) -> int:
    """返回人数最少的分组下标（并列时取靠前者），没有候选时返回 -1。"""
    best_index, best_size = -1, None
    for i, group in enumerate(groups):
        if i == exclude:
            continue
        size = group_size(group)
        if best_size is None or size < best_size:
            best_index, best_size = i, size
    return best_index


class ConstraintRepair:
    """
    封装了把原始簇修复为合法分组的全部逻辑。
    """

    def __init__(self, options: PartitionOptions, random_state=None):
        self.options = options
        self.random_state = check_random_state(random_state)
        self.forced_placements = 0

    # --- 阶段 1: 分类 ---
    def classify(self, clusters: List[FamilyGroup]) -> Tuple[List[FamilyGroup], List[FamilyGroup], List[Family]]:
        """
        Returns:
            (合法分组, 过大的簇, 待分配家庭)
        """
        valid, oversized, backlog = [], [], []
        for cluster in clusters:
            if not cluster:
                continue
            size = group_size(cluster)
            if size > self.options.max_subset_size:
                oversized.append(list(cluster))
            elif size < self.options.min_subset_size:
                backlog.extend(cluster)
            else:
                valid.append(list(cluster))
        logging.debug(f"簇分类完成: 合法 {len(valid)}, 过大 {len(oversized)}, 待分配家庭 {len(backlog)}")
        return valid, oversized, backlog

    # --- 阶段 2: 拆分 ---
    def split(self, oversized: List[FamilyGroup]) -> Tuple[List[FamilyGroup], List[Family]]:
        """
        拆分过大的簇。

        家庭顺序先被随机打乱，再依次装入当前桶；放入下一个家庭会超过最大组
        大小时关闭当前桶（达到最小组大小则保留，否则其家庭进入 backlog），
        并以该家庭开启新桶。

        Returns:
            (拆分出的合法分组, 待分配家庭)
        """
        groups: List[FamilyGroup] = []
        backlog: List[Family] = []
        for cluster in oversized:
            order = self.random_state.permutation(len(cluster))
            bucket: FamilyGroup = []
            bucket_size = 0
            for index in order:
                family = cluster[index]
                if bucket and bucket_size + len(family) > self.options.max_subset_size:
                    self._flush_bucket(bucket, bucket_size, groups, backlog)
                    bucket, bucket_size = [], 0
                bucket.append(family)
                bucket_size += len(family)
            if bucket:
                self._flush_bucket(bucket, bucket_size, groups, backlog)
        return groups, backlog

    def _flush_bucket(self, bucket: FamilyGroup, bucket_size: int,
                      groups: List[FamilyGroup], backlog: List[Family]) -> None:
        if bucket_size >= self.options.min_subset_size:
            groups.append(bucket)
        else:
            backlog.extend(bucket)

    # --- 阶段 3: 重新分配 ---
    def redistribute(self, groups: List[FamilyGroup], backlog: List[Family]) -> List[FamilyGroup]:
        """
        把 backlog 中的家庭全部放入分组。

        每一轮先让每个仍有空位的分组各接收一个放得下的家庭；一轮下来一个都
        没放进去时，若组数未达上限则新开分组并填充到首选大小，否则把队首家庭
        强制放入当前最小的分组。
        """
        groups = [list(group) for group in groups]
        backlog = list(backlog)
        max_size = self.options.max_subset_size

        while backlog:
            placed = False
            for group in groups:
                if not backlog:
                    break
                current_size = group_size(group)
                for i in range(len(backlog) - 1, -1, -1):
                    if current_size + len(backlog[i]) <= max_size:
                        group.append(backlog.pop(i))
                        placed = True
                        # 每个分组每轮只接收一个家庭，保持均衡
                        break
            if placed:
                continue

            if len(groups) < self.options.max_subsets:
                groups.append(self._open_group(backlog))
                continue

            family = backlog.pop(0)
            target = _smallest_index(groups)
            groups[target].append(family)
            self.forced_placements += 1
            logging.warning(f"组数已达上限 {self.options.max_subsets}，家庭 {family[0].id} "
                            f"被强制放入人数最少的分组 (现 {group_size(groups[target])} 人)。")
        return groups

    def _open_group(self, backlog: List[Family]) -> FamilyGroup:
        """从 backlog 队首取家庭组成新分组，直到达到首选大小或下一个家庭放不下。"""
        new_group: FamilyGroup = [backlog.pop(0)]
        new_size = len(new_group[0])
        while backlog and new_size < self.options.preferred_subset_size:
            if new_size + len(backlog[0]) > self.options.max_subset_size:
                break
            family = backlog.pop(0)
            new_group.append(family)
            new_size += len(family)
        return new_group

    # --- 阶段 4: 组数上限 ---
    def enforce_group_ceiling(self, groups: List[FamilyGroup]) -> List[FamilyGroup]:
        """
        组数超过上限时反复合并一对分组。

        合并优先级：合并后不超过最大组大小的优先（其中合并后越小越好），
        其次是只超出 1 人的，最后才是其余组合。
        """
        groups = [list(group) for group in groups]
        max_size = self.options.max_subset_size

        while len(groups) > self.options.max_subsets:
            best_pair, best_key = None, None
            for i in range(len(groups) - 1):
                for j in range(i + 1, len(groups)):
                    combined = group_size(groups[i]) + group_size(groups[j])
                    if combined <= max_size:
                        tier = 2
                    elif combined <= max_size + 1:
                        tier = 1
                    else:
                        tier = 0
                    key = (tier, -combined)
                    if best_key is None or key > best_key:
                        best_pair, best_key = (i, j), key
            i, j = best_pair
            groups[i].extend(groups.pop(j))
            logging.debug(f"组数超过上限，合并分组 {i} 与 {j}。")
        return groups

    # --- 阶段 5: 全局重平衡 ---
    def needs_rebalance(self, groups: List[FamilyGroup]) -> bool:
        if len(groups) != self.options.max_subsets:
            return False
        return any(not self.options.min_subset_size <= group_size(g) <= self.options.max_subset_size
                   for g in groups)

    def rebalance(self, groups: List[FamilyGroup]) -> List[FamilyGroup]:
        """
        组数恰好等于上限且存在大小违规时，从零开始重新装箱。

        目标大小 = 总人数 // 组数上限。家庭按大小降序依次放入"放入后不超过
        最大组大小、且最接近目标大小"的已开分组；都放不下时，在未达上限的
        情况下新开分组，否则强制放入最小的分组。
        """
        if not self.needs_rebalance(groups):
            return [list(group) for group in groups]

        families = [family for group in groups for family in group]
        total = sum(len(family) for family in families)
        target_size = total // self.options.max_subsets
        logging.info(f"组数已达上限且存在大小违规，按目标大小 {target_size} 全局重平衡。")

        rebuilt: List[FamilyGroup] = []
        for family in sorted(families, key=len, reverse=True):
            best_index, best_distance = -1, None
            for i, group in enumerate(rebuilt):
                new_size = group_size(group) + len(family)
                if new_size > self.options.max_subset_size:
                    continue
                distance = abs(new_size - target_size)
                if best_distance is None or distance < best_distance:
                    best_index, best_distance = i, distance

            if best_index == -1 and len(rebuilt) < self.options.max_subsets:
                rebuilt.append([])
                best_index = len(rebuilt) - 1
            if best_index == -1:
                best_index = _smallest_index(rebuilt)
                self.forced_placements += 1
                logging.warning(f"重平衡时家庭 {family[0].id} 无处可放，强制放入人数最少的分组。")
            rebuilt[best_index].append(family)
        return rebuilt

    # --- 阶段 6: 最终清理 ---
    def cleanup(self, groups: List[FamilyGroup]) -> List[FamilyGroup]:
        """
        反复把人数最少的过小分组并入另一个分组。

        优先并入"合并后不超过最大组大小"的分组中人数最少的那个；没有这样的
        分组时并入全局人数最少的其他分组（可能超出最大组大小）。只剩一个
        分组时停止。
        """
        groups = [list(group) for group in groups]
        min_size, max_size = self.options.min_subset_size, self.options.max_subset_size

        while len(groups) > 1:
            undersized = [i for i, group in enumerate(groups) if group_size(group) < min_size]
            if not undersized:
                break
            source = min(undersized, key=lambda i: group_size(groups[i]))
            source_size = group_size(groups[source])

            target, target_size = -1, None
            for i, group in enumerate(groups):
                if i == source:
                    continue
                size = group_size(group)
                if size + source_size <= max_size and (target_size is None or size < target_size):
                    target, target_size = i, size
            if target == -1:
                target = _smallest_index(groups, exclude=source)
                logging.warning(f"过小的分组 ({source_size} 人) 找不到不超限的合并对象，"
                                f"并入人数最少的分组 (可能超出最大组大小)。")

            groups[target].extend(groups[source])
            del groups[source]
        return groups

    def repair(self, clusters: List[FamilyGroup]) -> List[FamilyGroup]:
        """依次执行全部修复阶段，返回由完整家庭组成的分组列表。"""
        valid, oversized, backlog = self.classify(clusters)
        split_groups, split_backlog = self.split(oversized)
        groups = self.redistribute(valid + split_groups, backlog + split_backlog)
        groups = self.enforce_group_ceiling(groups)
        groups = self.rebalance(groups)
        groups = self.cleanup(groups)

        if self.forced_placements:
            logging.warning(f"约束修复共发生 {self.forced_placements} 次强制放置，结果可能存在大小违规。")
        return [group for group in groups if group]

    def repair_to_subsets(self, clusters: List[FamilyGroup]) -> List[List[Competitor]]:
        return [group_members(group) for group in self.repair(clusters)]
