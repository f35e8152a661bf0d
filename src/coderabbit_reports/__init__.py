# coderabbit_reports/__init__.py
"""
CodeRabbit Reports - 开发者活动报告生成与历史存储

- CodeRabbit Reports API 客户端（超时、错误归一化）
- 可插拔报告存储（本地 / SQLAlchemy / Convex / Supabase）
- 报告生成编排（状态跟踪、生命周期持久化）
- FastAPI 接口与命令行工具
"""

__version__ = "0.1.0"
__author__ = "CodeRabbit Reports Team"
