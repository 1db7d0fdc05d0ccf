# -*- coding: utf-8 -*-
"""
ENSRANK
=======

ENSemble representativeness RANKing.

- 由多源数据集构建集合参考序列 (mean / median)
- 六种代表性指标: mean, var, slope, KGE, TSS, KLD
- 按指标排序, 或合并为一张宽表
"""

from . import errors
from . import density
from . import ensemble
from . import metrics
from . import registry
from . import ranking
from . import workflows

from .ensemble import as_table, build_ensemble
from .errors import InvalidConfiguration, InvalidInput, NumericIndeterminate
from .ranking import rank_repres

__version__ = "1.0.0"

__all__ = [
    "errors",
    "density",
    "ensemble",
    "metrics",
    "registry",
    "ranking",
    "workflows",
    "as_table",
    "build_ensemble",
    "rank_repres",
    "InvalidConfiguration",
    "InvalidInput",
    "NumericIndeterminate",
]
