"""清空笔记本数据（实验、练习、审计），保留用户账号与编号序列。"""
import sys
from pathlib import Path

# 添加项目根目录到 path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bioplastic_lab.db import Base, engine, session_scope
from bioplastic_lab.models import KeyValueEntry
from bioplastic_lab.services.store import StorageKeys

# 计数器与审计序列保留，删除后编号也不会复用
KEEP_KEYS = {StorageKeys.USERS, StorageKeys.EXPERIMENT_COUNTER, StorageKeys.AUDIT_SEQ}


def clear_keys(db, include_session: bool = False) -> list:
    """删除笔记本数据键，返回实际删除的键名。"""
    keep = set(KEEP_KEYS)
    if not include_session:
        keep.add(StorageKeys.SESSION)

    cleared = []
    for key in StorageKeys.ALL:
        if key in keep:
            print(f"  保留 {key}")
            continue
        deleted = db.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
        print(f"  删除 {key}: {deleted} 条")
        if deleted:
            cleared.append(key)
    return cleared


def reset(include_session: bool = False):
    print("=" * 50)
    print("清空实验室笔记本数据")
    print("=" * 50)

    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        clear_keys(db, include_session)

    print("\n" + "=" * 50)
    print("清理完成！")
    print("=" * 50)


if __name__ == "__main__":
    reset(include_session="--logout" in sys.argv)
