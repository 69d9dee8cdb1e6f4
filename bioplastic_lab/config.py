"""应用配置管理。

使用 Pydantic Settings 统一读取环境变量，便于在本地/实验室机器之间切换。
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """核心配置项。

    - ``database_url``：默认使用本地 SQLite，键值数据全部存放在一张表中。
    - ``default_admin_*``：首次启动时写入的默认管理员账号。
    - ``heating_target_seconds`` / ``heating_tolerance``：加热信号灯的目标与容差。
    """

    database_url: str = Field(
        default="sqlite:///./storage/biolab.db", description="SQLAlchemy 数据库 URL"
    )
    default_admin_email: str = Field(
        default="admin@biolab.local", description="默认管理员邮箱"
    )
    default_admin_password: str = Field(
        default="admin123", description="默认管理员密码（仅演示用途）"
    )
    default_admin_name: str = Field(default="Admin", description="默认管理员姓名")
    heating_target_seconds: int = Field(
        default=600, description="加热目标时长（秒），0 表示不设目标"
    )
    heating_tolerance: float = Field(default=0.1, description="加热时长容差比例")
    log_level: str = Field(default="INFO", description="日志级别")

    model_config = {
        "env_prefix": "BIOLAB_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """缓存后的全局配置实例。"""

    return Settings()
