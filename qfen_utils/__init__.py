# -*- coding: utf-8 -*-
"""
工具 (Utils) 包。包含日志系统配置与配置文件管理。
"""

# 导入模块以使其能被 autosummary 发现
from . import config_manager
from . import logger_config
