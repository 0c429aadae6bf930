# -*- coding: utf-8 -*-
"""
算法层 (Core) 包。包含家庭划分、特征编码、三种分组算法、约束修复、评分与协调器。
"""

# 导入模块以使其能被 autosummary 发现
from . import cluster_engine
from . import constraint_repair
from . import family_grouper
from . import feature_encoder
from . import greedy_packer
from . import lp_solver
from . import options
from . import orchestrator
from . import scoring
from . import validator
