# -*- coding: utf-8 -*-
"""
配置管理模块。

提供保存和加载分组配置的通用函数。此模块使用一个简单的、
人类可读的 JSON 文件 (`config.json`) 作为持久化存储。

加载出的字典并不直接交给算法，而是先经过
`qfen_core.options.validate_and_sanitize_options` 与默认值合并并校正。
"""

import json
import logging
import os

# 默认配置文件路径（项目根目录）
CONFIG_FILE_PATH = "config.json"


def save_config(config_data: dict, config_path: str = CONFIG_FILE_PATH) -> None:
    """
    将配置字典序列化并保存到 JSON 文件中。

    Args:
        config_data: 一个包含分组配置的字典。
        config_path: 目标文件路径。
    """
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            # ensure_ascii=False 确保中文字符能被正确写入
            json.dump(config_data, f, ensure_ascii=False, indent=4)
        logging.info(f"配置已成功保存到 {config_path}")
    except IOError as e:
        logging.error(f"无法写入配置文件 {config_path}: {e}")


def load_config(config_path: str = CONFIG_FILE_PATH) -> dict:
    """
    从 JSON 文件中加载配置并返回一个字典。

    如果配置文件不存在、为空、顶层不是对象或包含无效的JSON，
    将记录日志并返回一个空字典，由调用方使用默认配置。

    Returns:
        一个包含从文件中加载的配置数据的字典。如果失败，则返回一个空字典。
    """
    if not os.path.exists(config_path):
        logging.info(f"配置文件 {config_path} 不存在，将使用默认配置。")
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
            if config_data is None:
                return {}
            if not isinstance(config_data, dict):
                logging.error(f"配置文件 {config_path} 的顶层必须是对象，已忽略。")
                return {}
            logging.info(f"配置已从 {config_path} 加载。")
            return config_data
    except (json.JSONDecodeError, IOError) as e:
        logging.error(f"无法读取或解析配置文件 {config_path}: {e}")
        return {}
