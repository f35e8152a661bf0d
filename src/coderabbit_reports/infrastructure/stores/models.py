from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ReportModel(Base):
    __tablename__ = "coderabbit_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)

    from_date: Mapped[str] = mapped_column(String(255))
    to_date: Mapped[str] = mapped_column(String(255))
    prompt_template: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    custom_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    group_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    subgroup_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    org_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    parameters_json: Mapped[str] = mapped_column(Text, default="[]")
    results_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # epoch milliseconds
    created_at: Mapped[int] = mapped_column(BigInteger, index=True)

    def set_parameters(self, parameters: List[Dict[str, Any]]) -> None:
        self.parameters_json = json.dumps(parameters or [], ensure_ascii=False)

    def get_parameters(self) -> List[Dict[str, Any]]:
        try:
            return json.loads(self.parameters_json or "[]")
        except Exception:
            return []

    def set_results(self, results: Optional[List[Dict[str, Any]]]) -> None:
        self.results_json = json.dumps(results, ensure_ascii=False) if results else None

    def get_results(self) -> List[Dict[str, Any]]:
        try:
            return json.loads(self.results_json or "[]")
        except Exception:
            return []
