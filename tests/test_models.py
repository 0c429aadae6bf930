# -*- coding: utf-8 -*-
"""
测试单元：数据模型中的类别词表与辅助函数。
"""

import os
import sys
import unittest

# 将项目根目录添加到sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from qfen_data.models import (
    AGE_GROUPS,
    compare_age_groups,
    get_age_group_order,
    is_valid_age_group,
    is_valid_equipment_class,
    is_valid_gender,
)


class TestModels(unittest.TestCase):
    """测试 models 模块中的辅助函数。"""

    def test_age_group_order_follows_vocabulary(self):
        self.assertEqual(get_age_group_order('C'), 0)
        self.assertEqual(get_age_group_order('S'), len(AGE_GROUPS) - 1)
        self.assertEqual([get_age_group_order(a) for a in AGE_GROUPS], list(range(len(AGE_GROUPS))))

    def test_compare_age_groups(self):
        self.assertLess(compare_age_groups('J', 'A'), 0)
        self.assertEqual(compare_age_groups('YA', 'YA'), 0)
        self.assertGreater(compare_age_groups('S', 'V'), 0)
        self.assertEqual(sorted(['V', 'C', 'A', 'J'], key=get_age_group_order), ['C', 'J', 'A', 'V'])

    def test_unknown_age_group_raises(self):
        with self.assertRaises(ValueError):
            get_age_group_order('X')

    def test_vocabulary_checks(self):
        self.assertTrue(is_valid_equipment_class('BBR'))
        self.assertFalse(is_valid_equipment_class('bbr'))
        self.assertTrue(is_valid_age_group('YA'))
        self.assertFalse(is_valid_age_group(None))
        self.assertTrue(is_valid_gender('F'))
        self.assertFalse(is_valid_gender('X'))


if __name__ == '__main__':
    unittest.main()
