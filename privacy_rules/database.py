"""
数据库初始化和连接管理
"""
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session as SQLAlchemySession
from contextlib import contextmanager
from typing import Generator

from .models.base import Base
from .models import DataPrivacyRule  # noqa: F401  注册表结构
from .utils.logger import get_logger

logger = get_logger(__name__)


class Database:
    """数据库管理类"""

    def __init__(self, db_url: str = None):
        """
        初始化数据库连接

        Args:
            db_url: 数据库URL，如果为None则从环境变量读取
        """
        if db_url is None:
            project_root = Path(__file__).resolve().parent.parent
            default_db_path = project_root / "data" / "privacy_rules.db"

            db_path = os.getenv("CONFIG_DB_PATH", str(default_db_path))
            # 确保data目录存在
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
            db_url = f"sqlite:///{db_path}"

        engine_options = {"pool_pre_ping": True}

        # SQLite连接会在请求线程间共享
        if db_url.startswith("sqlite"):
            engine_options["connect_args"] = {"check_same_thread": False}

        self.engine = create_engine(db_url, **engine_options)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False
        )

    def create_tables(self):
        """创建所有表"""
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def get_session(self) -> Generator[SQLAlchemySession, None, None]:
        """
        获取数据库会话的上下文管理器

        Yields:
            SQLAlchemy会话对象
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# 全局数据库实例
_db_instance = None


def get_database() -> Database:
    """获取全局数据库实例"""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
    return _db_instance


def init_database():
    """初始化数据库（创建所有表）"""
    db = get_database()
    db.create_tables()
    logger.info("数据库初始化完成")


if __name__ == "__main__":
    # 直接运行此脚本时初始化数据库
    init_database()
