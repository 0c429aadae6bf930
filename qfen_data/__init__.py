# -*- coding: utf-8 -*-
"""
数据层 (Data) 包。提供数据模型定义以及参赛者名单、分组结果的文件读写。
"""

# 导入模块以使其能被 autosummary 发现
from . import file_handler
from . import models
