# -*- coding: utf-8 -*-
"""
监护家庭划分模块。

把参赛者按监护关系折叠为不可拆分的"家庭"单元：
- 有被监护人、自身没有监护人的参赛者，与其所有被监护人组成一个家庭，自身在前；
- 有监护人的参赛者并入其监护人的家庭，在自己的位置上被跳过；
- 两者皆无的参赛者单独成为一个家庭。

监护关系只有一层（校验器保证没有监护链和环），因此这里只做一次线性扫描，
不做递归。
"""

from collections import defaultdict
from typing import Dict, List

from qfen_data.models import Competitor, Family


def create_guardian_families(competitors: List[Competitor]) -> List[Family]:
    """
    将参赛者划分为家庭列表，家庭顺序与其首个成员在输入中的位置一致。

    Args:
        competitors: 参赛者列表。

    Returns:
        家庭列表；所有家庭的并集等于输入，任意两个家庭互不相交。
    """
    present_ids = {c.id for c in competitors}
    dependents: Dict[str, List[Competitor]] = defaultdict(list)
    for competitor in competitors:
        if competitor.guardian_id in present_ids:
            dependents[competitor.guardian_id].append(competitor)

    families: List[Family] = []
    for competitor in competitors:
        if competitor.guardian_id in present_ids:
            # 已随监护人一起处理
            continue
        if competitor.id in dependents:
            families.append((competitor, *dependents[competitor.id]))
        else:
            families.append((competitor,))
    return families


def get_guardian_groups(competitors: List[Competitor]) -> Dict[str, List[Competitor]]:
    """
    以监护人 id 为键，返回 被监护人 + 监护人 的列表（监护人追加在末尾）。
    """
    by_id = {c.id: c for c in competitors}
    groups: Dict[str, List[Competitor]] = {}
    for competitor in competitors:
        if not competitor.guardian_id:
            continue
        group = groups.setdefault(competitor.guardian_id, [])
        group.append(competitor)
        guardian = by_id.get(competitor.guardian_id)
        if guardian is not None and guardian not in group:
            group.append(guardian)
    return groups


def flatten_families(families: List[Family]) -> List[Competitor]:
    """把一组家庭展开为参赛者列表，保持家庭内部顺序。"""
    return [competitor for family in families for competitor in family]
