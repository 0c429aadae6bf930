# -*- coding: utf-8 -*-
"""
Qfen (齐分) 命令行主入口 (v1.0)。

读取参赛者名单，校验后运行分组算法，打印分组摘要，并可选地把结果写入
JSON 文件。
"""

import argparse
import logging
import sys
from typing import List, Optional

from qfen_core import validator
from qfen_core.lp_solver import SolverError
from qfen_core.orchestrator import Orchestrator
from qfen_data import file_handler
from qfen_data.models import ALGORITHMS
from qfen_utils.config_manager import CONFIG_FILE_PATH, load_config
from qfen_utils.logger_config import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Qfen 参赛者分组工具",
                                 formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    ap.add_argument("competitors", help="参赛者名单文件 (.json 或 .csv)")
    ap.add_argument("--algorithm", choices=ALGORITHMS, default=None,
                    help="分组算法，不指定时使用配置文件中的值 (默认 auto)")
    ap.add_argument("--config", default=CONFIG_FILE_PATH, help="分组配置文件 (JSON)")
    ap.add_argument("--seed", type=int, default=None, help="随机种子，用于复现聚类结果")
    ap.add_argument("--output", default=None, help="将分组结果写入此 JSON 文件")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行主函数。

    执行顺序如下：
    1.  **设置日志系统**。
    2.  **读取并校验名单**: 校验失败时逐条记录错误并返回 1。
    3.  **加载配置并运行分组**。
    4.  **输出结果**: 打印每个分组，并按需保存为 JSON。
    """
    args = parse_args(argv)

    # --- 步骤 1: 在程序最开始就设置好日志系统 ---
    setup_logging()
    logging.info("Qfen 分组工具启动...")

    # --- 步骤 2: 读取并校验参赛者名单 ---
    try:
        records = file_handler.load_raw_records(args.competitors)
    except (OSError, ValueError) as e:
        logging.error(f"无法读取参赛者名单: {e}")
        return 1

    validation = validator.validate_competitors(records)
    if not validation.valid:
        for error in validation.errors:
            logging.error(error)
        return 1
    competitors = [file_handler.competitor_from_dict(record) for record in records]

    # --- 步骤 3: 加载配置并运行分组 ---
    options = load_config(args.config)
    if args.algorithm:
        options['algorithm'] = args.algorithm

    orchestrator = Orchestrator(random_state=args.seed)
    try:
        outcome = orchestrator.solve(competitors, options)
    except (SolverError, ValueError) as e:
        logging.error(f"分组失败: {e}")
        return 1

    # --- 步骤 4: 输出结果 ---
    result = outcome.result
    print(f"算法: {outcome.algorithm_used}  耗时: {outcome.execution_time:.3f}s")
    print(f"总分: {result.score:.2f}  分组数: {result.metadata.total_subsets}  "
          f"平均人数: {result.metadata.average_subset_size:.2f}")
    for index, subset in enumerate(result.subsets, start=1):
        print(f"  第 {index:>2} 组 ({len(subset)} 人): {', '.join(c.id for c in subset)}")

    if args.output:
        file_handler.save_partition_result(result, args.output)
    return 0


# 当该脚本作为主程序直接执行时，调用 main() 函数。
if __name__ == '__main__':
    sys.exit(main())
