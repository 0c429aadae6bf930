# -*- coding: utf-8 -*-
"""
日志系统配置模块 (v1.1)。

直接配置根记录器 (root logger)：先清空其上已存在的 handlers，
再显式添加 `StreamHandler` 和 `RotatingFileHandler`。重复调用是幂等的，
算法模块内部只通过 `logging.info` 等函数写日志，从不自行配置日志。
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s'


def setup_logging(log_dir: str = "logs", level: int = logging.INFO) -> None:
    """
    配置全局的根日志记录器 (root logger)。

    Args:
        log_dir: 日志文件所在目录，不存在时自动创建。
        level: 根记录器的最低日志级别。
    """
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_file = os.path.join(log_dir, "qfen_app.log")

    log_format = logging.Formatter(LOG_FORMAT)

    # 控制台 Handler
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(log_format)

    # 文件 Handler (循环写入)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5*1024*1024, # 5 MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 关闭并移除已有的 handlers，重复调用时不会遗留打开的日志文件
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(stream_handler)
    root_logger.addHandler(file_handler)

    # HiGHS 求解器相关的第三方日志保持安静
    logging.getLogger("scipy").setLevel(logging.WARNING)
    logging.getLogger("sklearn").setLevel(logging.WARNING)

    logging.info("日志系统已配置，日志将同步输出到控制台和文件。")
