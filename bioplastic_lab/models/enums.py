"""笔记本相关枚举定义 - 角色、可靠性状态、检索模式等。"""

import enum


class UserRole(str, enum.Enum):
    """用户角色枚举。"""
    ADMIN = "admin"
    STUDENT = "student"
    INSTRUCTOR = "instructor"


class MeasurementKind(str, enum.Enum):
    """重复实验测量量的种类。"""
    TIME = "time"                # 加热时间（分钟）
    TEMP = "temp"                # 最高温度（°C）


class ReliabilityStatus(str, enum.Enum):
    """可重复性判定的三档结果（外加不适用）。"""
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"
    NOT_APPLICABLE = "na"


class ReliabilityMetric(str, enum.Enum):
    """判定所用指标：双样本用差异百分比，三个及以上用变异系数。"""
    DIFF_PCT = "Dif%"
    CV_PCT = "CV%"


class SearchMode(str, enum.Enum):
    """检索模式。"""
    AUTO = "auto"                # 三位以内纯数字按实验号，否则按编码
    CODE = "code"                # 按练习编码精确查找
    EXP = "exp"                  # 按实验号查找全部练习


class HeatingLight(str, enum.Enum):
    """加热信号灯。"""
    GREEN = "green"              # 在目标容差范围内
    YELLOW = "yellow"            # 接近边界，需要记录观察
    RED = "red"                  # 超出规格，建议复查或重做
