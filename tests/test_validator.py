# -*- coding: utf-8 -*-
"""
测试单元：输入与结果校验。
"""

import os
import sys
import unittest

# 将项目根目录添加到sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from qfen_core.validator import (
    find_guardian_cycles,
    validate_competitors,
    validate_guardian_constraints,
    validate_partition,
)
from qfen_data.models import PartitionOptions
from tests.datasets import LARGE_DATASET, SMALL_DATASET, to_records


class TestValidateCompetitors(unittest.TestCase):
    """测试 validate_competitors。"""

    def test_valid_records_and_objects(self):
        self.assertTrue(validate_competitors(to_records(SMALL_DATASET)).valid)
        self.assertTrue(validate_competitors(SMALL_DATASET).valid)
        self.assertTrue(validate_competitors(LARGE_DATASET).valid)

    def test_not_a_list(self):
        result = validate_competitors({'id': '001'})
        self.assertEqual(result.errors, ["参赛者数据必须是列表"])

    def test_empty_list(self):
        result = validate_competitors([])
        self.assertFalse(result.valid)
        self.assertEqual(len(result.errors), 1)

    def test_too_many_competitors(self):
        records = to_records(LARGE_DATASET)
        records.append({'id': '999', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'M'})

        result = validate_competitors(records)

        self.assertEqual(len(result.errors), 1)
        self.assertIn("169", result.errors[0])

    def test_invalid_records(self):
        """无效的类别、空 id、空白监护人 id 以及非字典记录都会被逐条报告。"""
        # --- Arrange ---
        records = [
            {'id': '001', 'equipmentClass': 'XX', 'ageCategory': 'A', 'gender': 'M'},
            {'id': '  ', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'M'},
            {'id': '003', 'equipmentClass': 'HB', 'ageCategory': 'Z', 'gender': 'M'},
            {'id': '004', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'X'},
            {'id': '005', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'F', 'guardianId': 5},
            'not a record',
            {'id': '007', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'F'},
        ]

        # --- Act ---
        result = validate_competitors(records)

        # --- Assert ---
        self.assertEqual(len(result.errors), 6)
        self.assertTrue(all("无效" in e for e in result.errors))

    def test_duplicate_ids(self):
        records = to_records(SMALL_DATASET[:2])
        records.append(dict(records[0]))

        result = validate_competitors(records)

        self.assertEqual(result.errors, ["参赛者 id 重复: 001"])

    def test_missing_guardian(self):
        records = [{'id': '001', 'equipmentClass': 'HB', 'ageCategory': 'C', 'gender': 'M', 'guardianId': '999'}]
        result = validate_competitors(records)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("999", result.errors[0])

    def test_guardian_cycle(self):
        records = [
            {'id': 'a', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'M', 'guardianId': 'b'},
            {'id': 'b', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'F', 'guardianId': 'a'},
        ]
        result = validate_competitors(records)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("环", result.errors[0])

    def test_family_too_large(self):
        records = [{'id': 'g', 'equipmentClass': 'HB', 'ageCategory': 'A', 'gender': 'F'}]
        records += [{'id': f"c{i}", 'equipmentClass': 'HB', 'ageCategory': 'C', 'gender': 'M', 'guardianId': 'g'}
                    for i in range(3)]

        result = validate_competitors(records)

        self.assertEqual(len(result.errors), 1)
        self.assertIn("g", result.errors[0])


class TestGuardianCycles(unittest.TestCase):
    """测试迭代式环检测。"""

    def test_self_reference(self):
        self.assertEqual(find_guardian_cycles({'a': 'a'}), ['a'])

    def test_chain_without_cycle(self):
        self.assertEqual(find_guardian_cycles({'a': 'b', 'b': 'c', 'c': None}), [])

    def test_long_chain_does_not_recurse(self):
        """很长的监护链不会触发递归深度限制。"""
        chain = {f"n{i}": f"n{i + 1}" for i in range(5000)}
        chain['n5000'] = 'n0'
        self.assertEqual(len(find_guardian_cycles(chain)), 1)


class TestValidatePartition(unittest.TestCase):
    """测试 validate_partition 与 validate_guardian_constraints。"""

    def test_valid_partition(self):
        subsets = [[SMALL_DATASET[i] for i in (2, 3, 1, 7)], [SMALL_DATASET[i] for i in (4, 5, 6, 0)]]
        self.assertTrue(validate_partition(SMALL_DATASET, subsets).valid)

    def test_separated_guardian(self):
        subsets = [SMALL_DATASET[:3], SMALL_DATASET[3:6], SMALL_DATASET[6:]]

        result = validate_guardian_constraints(SMALL_DATASET, subsets)

        self.assertEqual(len(result.errors), 2)
        self.assertIn("004", result.errors[0])
        self.assertIn("007", result.errors[1])

    def test_size_count_and_coverage_violations(self):
        # --- Arrange ---
        options = PartitionOptions(max_subsets=1)
        subsets = [SMALL_DATASET[:1], SMALL_DATASET[:1] + SMALL_DATASET[1:2]]

        # --- Act ---
        errors = validate_partition(SMALL_DATASET, subsets, options).errors

        # --- Assert ---
        self.assertTrue(any("多个分组" in e for e in errors))
        self.assertTrue(any("并非所有参赛者" in e for e in errors))
        self.assertTrue(any("人数过少" in e for e in errors))
        self.assertTrue(any("分组数量过多" in e for e in errors))


if __name__ == '__main__':
    unittest.main()
