# -*- coding: utf-8 -*-
"""
测试单元：命令行入口。

日志配置被 mock 掉，避免在测试中创建日志文件。
"""

import json
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

# 将项目根目录添加到sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import main
from tests.datasets import SMALL_DATASET, to_records


@patch('main.setup_logging')
class TestMain(unittest.TestCase):
    """测试 main.main 的返回码与输出文件。"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.test_dir, "config.json")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _write_competitors(self, records):
        file_path = os.path.join(self.test_dir, "competitors.json")
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(records, f)
        return file_path

    def test_greedy_run_writes_output(self, mock_setup_logging):
        # --- Arrange ---
        input_path = self._write_competitors(to_records(SMALL_DATASET))
        output_path = os.path.join(self.test_dir, "result.json")

        # --- Act ---
        exit_code = main.main([input_path, "--algorithm", "greedy", "--config", self.config_path,
                               "--output", output_path])

        # --- Assert ---
        self.assertEqual(exit_code, 0)
        mock_setup_logging.assert_called_once()
        with open(output_path, 'r', encoding='utf-8') as f:
            saved = json.load(f)
        self.assertEqual(saved['metadata']['totalCompetitors'], 8)

    def test_invalid_input_returns_error_code(self, mock_setup_logging):
        records = to_records(SMALL_DATASET)
        records[0]['gender'] = 'X'
        input_path = self._write_competitors(records)

        with self.assertLogs(level='ERROR'):
            exit_code = main.main([input_path, "--config", self.config_path])

        self.assertEqual(exit_code, 1)

    def test_missing_file_returns_error_code(self, mock_setup_logging):
        exit_code = main.main([os.path.join(self.test_dir, "absent.json"), "--config", self.config_path])
        self.assertEqual(exit_code, 1)

    def test_algorithm_from_config_file(self, mock_setup_logging):
        input_path = self._write_competitors(to_records(SMALL_DATASET))
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump({'algorithm': 'clustering'}, f)

        with patch('builtins.print') as mock_print:
            exit_code = main.main([input_path, "--config", self.config_path, "--seed", "4"])

        self.assertEqual(exit_code, 0)
        self.assertIn('K-means Clustering', mock_print.call_args_list[0].args[0])


if __name__ == '__main__':
    unittest.main()
