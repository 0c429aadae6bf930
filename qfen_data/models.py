# -*- coding: utf-8 -*-
"""
数据模型定义模块 (v1.3 - 不可变配置结构)。

此版本将分组配置从松散的字典合并改为显式的不可变数据类
`PartitionOptions`。所有字段在清洗 (sanitize) 之后都是必填的，
算法层只消费清洗后的配置，不再自行合并默认值。

模型一览：
- `Competitor`: 参赛者，创建后不可修改。
- `Family`: 监护人及其被监护人组成的不可拆分单元（元组，监护人在前）。
- `PartitionOptions`: 与算法无关的分组参数。
- `ScoreBreakdown` / `PartitionMetadata` / `PartitionResult`: 分组结果及评分明细。
- `AlgorithmResult`: 单个算法的运行结果（含耗时与算法名）。
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# --- 固定类别词表 ---
EQUIPMENT_CLASSES: Tuple[str, ...] = (
    'HB', 'LB', 'TR', 'BHR', 'BBR', 'FSR', 'BBC', 'BL', 'BU', 'FSC', 'FU',
)

# 按年龄从小到大排列
AGE_GROUPS: Tuple[str, ...] = ('C', 'J', 'YA', 'A', 'V', 'S')

GENDERS: Tuple[str, ...] = ('F', 'M')

EQUIPMENT_CLASS_DESCRIPTIONS: Dict[str, str] = {
    'HB': 'Heavy Bow',
    'LB': 'Light Bow',
    'TR': 'Traditional Recurve',
    'BHR': 'Barebow Heavy Recurve',
    'BBR': 'Barebow Basic Recurve',
    'FSR': 'Freestyle Recurve',
    'BBC': 'Barebow Compound',
    'BL': 'Barebow Longbow',
    'BU': 'Barebow Unlimited',
    'FSC': 'Freestyle Compound',
    'FU': 'Freestyle Unlimited',
}

AGE_GROUP_DESCRIPTIONS: Dict[str, str] = {
    'C': 'Children',
    'J': 'Juniors',
    'YA': 'Young Adults',
    'A': 'Adults',
    'V': 'Veterans',
    'S': 'Seniors',
}

GENDER_DESCRIPTIONS: Dict[str, str] = {
    'F': 'Female',
    'M': 'Male',
}

ALGORITHMS: Tuple[str, ...] = ('greedy', 'clustering', 'external-lp', 'auto')

# 系统支持的最大参赛人数
MAX_COMPETITORS = 168
# 监护家庭的最大人数（1 名监护人 + 2 名被监护人）
MAX_FAMILY_SIZE = 3
# 参赛人数不超过此阈值时，每组最多 4 人
SMALL_EVENT_THRESHOLD = 112
SMALL_EVENT_MAX_SUBSET_SIZE = 4


def is_valid_equipment_class(value) -> bool:
    return value in EQUIPMENT_CLASSES


def is_valid_age_group(value) -> bool:
    return value in AGE_GROUPS


def is_valid_gender(value) -> bool:
    return value in GENDERS


def get_age_group_order(age_group: str) -> int:
    """返回年龄组的序号，数字越小越年轻。"""
    return AGE_GROUPS.index(age_group)


def compare_age_groups(a: str, b: str) -> int:
    """比较两个年龄组：负数表示 a 更年轻，0 表示相同，正数表示 a 更年长。"""
    return get_age_group_order(a) - get_age_group_order(b)


@dataclass(frozen=True)
class Competitor:
    """
    参赛者。

    Attributes:
        id: 唯一标识。
        equipment_class: 器材类别，取自 `EQUIPMENT_CLASSES`。
        age_category: 年龄组，取自 `AGE_GROUPS`。
        gender: 性别，取自 `GENDERS`。
        guardian_id: 监护人的 id；没有监护人时为 None。
    """
    id: str
    equipment_class: str
    age_category: str
    gender: str
    guardian_id: Optional[str] = None

    def __repr__(self):
        guardian = f", guardian='{self.guardian_id}'" if self.guardian_id else ""
        return (f"<Competitor(id='{self.id}', {self.equipment_class}/{self.age_category}/"
                f"{self.gender}{guardian})>")


# 家庭：监护人在前，随后是其被监护人；单独的参赛者是只有一个成员的家庭
Family = Tuple[Competitor, ...]


@dataclass(frozen=True)
class PartitionOptions:
    """
    清洗后的分组配置。

    由 `qfen_core.options.validate_and_sanitize_options` 生成，
    所有字段均已填充并通过校正。
    """
    algorithm: str = 'auto'
    group_by_equipment_class: bool = True
    max_subsets: int = 28
    min_subset_size: int = 2
    max_subset_size: int = 6
    preferred_subset_size: int = 4
    gender_weight: float = 1.0
    age_category_weight: float = 1.0
    equipment_class_weight: float = 1.0


DEFAULT_OPTIONS = PartitionOptions()


@dataclass(frozen=True)
class ScoreBreakdown:
    """四个维度的平均得分（性别、年龄、器材维度已乘以对应权重）。"""
    size_score: float = 0.0
    gender_score: float = 0.0
    age_category_score: float = 0.0
    equipment_class_score: float = 0.0

    @property
    def total(self) -> float:
        return self.size_score + self.gender_score + self.age_category_score + self.equipment_class_score

    def to_dict(self) -> Dict[str, float]:
        return {
            'size': self.size_score,
            'gender': self.gender_score,
            'age': self.age_category_score,
            'equipment': self.equipment_class_score,
        }


@dataclass(frozen=True)
class PartitionMetadata:
    total_competitors: int
    total_subsets: int
    average_subset_size: float
    score_breakdown: ScoreBreakdown


@dataclass
class PartitionResult:
    """
    一次分组的完整结果。

    `subsets` 中每个元素是一个分组（参赛者列表）。
    """
    subsets: List[List[Competitor]]
    score: float
    metadata: PartitionMetadata

    @property
    def breakdown(self) -> ScoreBreakdown:
        return self.metadata.score_breakdown

    def to_dict(self) -> dict:
        return {
            'groups': [[c.id for c in subset] for subset in self.subsets],
            'score': self.score,
            'breakdown': self.breakdown.to_dict(),
            'metadata': {
                'totalCompetitors': self.metadata.total_competitors,
                'totalSubsets': self.metadata.total_subsets,
                'averageSubsetSize': self.metadata.average_subset_size,
            },
        }


@dataclass
class AlgorithmResult:
    result: PartitionResult
    execution_time: float
    algorithm_used: str


@dataclass
class ValidationResult:
    """校验结果：`valid` 为 True 当且仅当 `errors` 为空。"""
    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors
