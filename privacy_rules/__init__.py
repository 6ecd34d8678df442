"""
数据隐私规则服务
"""
