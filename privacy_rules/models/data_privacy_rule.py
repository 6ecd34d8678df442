"""
数据隐私规则模型
"""
from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from .base import Base, TimestampMixin


class DataPrivacyRule(Base, TimestampMixin):
    """数据隐私规则表，每个项目一组有序规则"""
    __tablename__ = "data_privacy_rules"
    __table_args__ = (
        UniqueConstraint("project_id", "rule_id", name="uq_data_privacy_rules_project_rule"),
    )

    pk = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(64), nullable=False, index=True)
    rule_id = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False)  # 在规则列表中的顺序
    action = Column(String(32), nullable=False)
    data = Column(String(64), nullable=False)
    source = Column(Text, nullable=False)  # from 表达式

    def __repr__(self):
        return f"<DataPrivacyRule(project_id={self.project_id}, rule_id={self.rule_id}, action={self.action})>"
