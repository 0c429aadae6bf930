# -*- coding: utf-8 -*-
"""
贪心装箱模块。

构造式的替代算法：从左到右逐个填充分组。对当前分组，尝试每一个放得下
的未分配家庭，计算"加入该家庭后此分组的单组得分"，选择得分最高者（并列时
取 backlog 中靠前者）加入；没有家庭放得下时关闭当前分组，转向下一个。

所有分组槽位用完后仍未放置的家庭，逐个放入"接近首选大小 + 剩余空间"
综合得分最高的分组；都放不下时，在仍有空槽位的情况下启用新分组，否则
强制放入当前最小的分组。与约束修复相同，强制放置只记录警告。
"""

import logging
import time
from typing import List

from qfen_data.models import AlgorithmResult, Competitor, Family, PartitionOptions
from qfen_core.constraint_repair import FamilyGroup, group_members, group_size
from qfen_core.family_grouper import create_guardian_families
from qfen_core.options import get_slot_count, validate_and_sanitize_options
from qfen_core.scoring import calculate_subset_score, create_algorithm_result, empty_algorithm_result

ALGORITHM_NAME = 'Greedy Packing'


class GreedyPacker:
    """
    以单组得分为前瞻依据的贪心装箱器。
    """

    def __init__(self, options: PartitionOptions):
        self.options = options
        self.forced_placements = 0

    def _best_fitting_family(self, group: FamilyGroup, backlog: List[Family]) -> int:
        """返回加入后单组得分最高的家庭下标；没有放得下的家庭时返回 -1。"""
        current_members = group_members(group)
        current_size = len(current_members)
        best_index, best_score = -1, None
        for i, family in enumerate(backlog):
            if current_size + len(family) > self.options.max_subset_size:
                continue
            score = calculate_subset_score(current_members + list(family), self.options)
            if best_score is None or score > best_score:
                best_index, best_score = i, score
        return best_index

    def _place_leftover(self, family: Family, groups: List[FamilyGroup], opened: int) -> int:
        """
        为主循环之后剩余的家庭选择分组，返回更新后的已启用分组数。
        """
        best_index, best_score = -1, None
        for i in range(opened):
            current_size = group_size(groups[i])
            available = self.options.max_subset_size - current_size
            if available < len(family):
                continue
            new_size = current_size + len(family)
            score = (1000 - abs(new_size - self.options.preferred_subset_size)) + available
            if best_score is None or score > best_score:
                best_index, best_score = i, score

        # pack() 只在槽位全部启用后才留下剩余家庭，此时 opened == len(groups)，
        # 该分支仅在单独调用本方法时生效
        if best_index == -1 and opened < len(groups):
            best_index = opened
            opened += 1
        if best_index == -1:
            best_index = min(range(opened), key=lambda i: group_size(groups[i]))
            self.forced_placements += 1
            logging.warning(f"家庭 {family[0].id} 无处可放且没有空槽位，被强制放入人数最少的分组。")

        groups[best_index].append(family)
        return opened

    def pack(self, families: List[Family], total_competitors: int) -> List[FamilyGroup]:
        """
        把家庭装入分组，返回非空分组列表（每个分组由完整家庭组成）。
        """
        slot_count = get_slot_count(total_competitors, self.options)
        groups: List[FamilyGroup] = [[] for _ in range(slot_count)]
        backlog = list(families)

        current = 0
        while backlog and current < slot_count:
            group = groups[current]
            while backlog:
                index = self._best_fitting_family(group, backlog)
                if index == -1:
                    break
                group.append(backlog.pop(index))
            current += 1

        opened = current
        if backlog:
            logging.info(f"所有槽位已填充，仍有 {len(backlog)} 个家庭待放置。")
        while backlog:
            opened = self._place_leftover(backlog.pop(0), groups, opened)

        return [group for group in groups if group]


def solve_greedy(competitors: List[Competitor], options=None) -> AlgorithmResult:
    """
    使用贪心装箱对参赛者分组。结果是确定性的，不依赖随机源。
    """
    start_time = time.perf_counter()
    opts = validate_and_sanitize_options(options, len(competitors))
    if not competitors:
        return empty_algorithm_result(opts, ALGORITHM_NAME)

    families = create_guardian_families(competitors)
    packer = GreedyPacker(opts)
    groups = packer.pack(families, len(competitors))
    subsets = [group_members(group) for group in groups]
    logging.info(f"贪心装箱完成: {len(subsets)} 个分组, 强制放置 {packer.forced_placements} 次。")
    return create_algorithm_result(subsets, opts, ALGORITHM_NAME, start_time)
