# -*- coding: utf-8 -*-
"""
测试单元：日志系统配置。
"""

import logging
import os
import shutil
import sys
import tempfile
import unittest

# 将项目根目录添加到sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from qfen_utils.logger_config import setup_logging


class TestLoggerConfig(unittest.TestCase):
    """测试 setup_logging。"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.root_logger = logging.getLogger()
        self.saved_handlers = list(self.root_logger.handlers)
        self.saved_level = self.root_logger.level

    def tearDown(self):
        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
            handler.close()
        for handler in self.saved_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.saved_level)
        shutil.rmtree(self.test_dir)

    def test_creates_log_dir_and_file(self):
        log_dir = os.path.join(self.test_dir, 'logs')

        setup_logging(log_dir=log_dir)

        self.assertTrue(os.path.isfile(os.path.join(log_dir, 'qfen_app.log')))

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(log_dir=self.test_dir, level=logging.DEBUG)
        setup_logging(log_dir=self.test_dir, level=logging.DEBUG)

        self.assertEqual(len(self.root_logger.handlers), 2)
        self.assertEqual(self.root_logger.level, logging.DEBUG)


if __name__ == '__main__':
    unittest.main()
