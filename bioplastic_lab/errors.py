"""笔记本领域错误分类。

所有错误都是本地、可恢复的：最坏情况是一次无操作加上一条提示信息。
查找不到记录不算错误，调用方拿到的是 ``None`` 或空列表。
"""


class NotebookError(Exception):
    """笔记本错误基类。"""


class ValidationFailed(NotebookError, ValueError):
    """表单字段缺失或取值非法，未发生任何状态变更。"""


class DuplicateEmail(ValidationFailed):
    """注册时邮箱（忽略大小写）已存在。"""

    def __init__(self, email: str) -> None:
        super().__init__(f"邮箱已注册: {email}")
        self.email = email


class PermissionDenied(NotebookError):
    """权限谓词拒绝，调用方不得继续执行变更。"""


class AuthenticationFailed(NotebookError):
    """登录失败：用户不存在、已停用或密码错误。"""
