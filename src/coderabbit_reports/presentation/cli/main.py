"""
CLI 入口点

coderabbit-reports generate/list/show/delete/config
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from coderabbit_reports import __version__
from coderabbit_reports.application.workflows import ReportWorkflow
from coderabbit_reports.config.settings import Settings, StorageConfig
from coderabbit_reports.config.validated_settings import load_settings
from coderabbit_reports.core.errors import CodeRabbitError, ValidationError
from coderabbit_reports.domain.report import (
    FilterConfig,
    GroupBy,
    ListOptions,
    PromptTemplate,
    ReportRequest,
    ReportResult,
    ReportStatus,
    StoredReport,
)
from coderabbit_reports.infrastructure.api_clients.coderabbit_client import create_coderabbit_client
from coderabbit_reports.infrastructure.logging import configure_logging
from coderabbit_reports.infrastructure.stores.factory import build_report_store


def parse_filter(raw: str) -> FilterConfig:
    """PARAM:OP:v1,v2 -> FilterConfig"""
    parts = raw.split(":", 2)
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"filter must look like PARAM:OP:v1,v2, got '{raw}'")
    parameter, operator, values = parts
    try:
        return FilterConfig(
            parameter=parameter.upper(),
            operator=operator.upper(),
            values=[v.strip() for v in values.split(",") if v.strip()],
        )
    except ValidationError as e:
        raise argparse.ArgumentTypeError(e.message)


def create_parser() -> argparse.ArgumentParser:
    """创建 CLI 参数解析器"""
    parser = argparse.ArgumentParser(
        prog="coderabbit-reports",
        description="CodeRabbit Reports - 开发者活动报告生成",
    )
    parser.add_argument("--config", "-c", help="YAML 配置文件路径")
    parser.add_argument("--db-url", help="SQLAlchemy 数据库 URL（启用报告历史）")
    parser.add_argument("--version", "-v", action="store_true", help="显示版本")

    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    # generate 命令
    gen = subparsers.add_parser("generate", help="生成报告")
    gen.add_argument("--from", dest="from_date", required=True, help="开始日期 YYYY-MM-DD")
    gen.add_argument("--to", dest="to_date", required=True, help="结束日期 YYYY-MM-DD")
    prompt_group = gen.add_mutually_exclusive_group()
    prompt_group.add_argument(
        "--template",
        choices=[t.value for t in PromptTemplate],
        help="报告模板",
    )
    prompt_group.add_argument("--prompt", help="自定义提示词")
    gen.add_argument("--group-by", choices=[g.value for g in GroupBy], help="分组维度")
    gen.add_argument("--subgroup-by", choices=[g.value for g in GroupBy], help="二级分组维度")
    gen.add_argument("--org-id", help="组织 ID")
    gen.add_argument(
        "--filter",
        dest="filters",
        action="append",
        type=parse_filter,
        default=[],
        metavar="PARAM:OP:v1,v2",
        help="过滤条件，可重复",
    )

    # list 命令
    lst = subparsers.add_parser("list", help="列出历史报告")
    lst.add_argument("--limit", type=int, help="最多返回条数")
    lst.add_argument("--offset", type=int, default=0, help="跳过条数")
    lst.add_argument("--status", choices=[s.value for s in ReportStatus], help="按状态过滤")

    # show 命令
    show = subparsers.add_parser("show", help="查看单个报告")
    show.add_argument("report_id", help="报告 ID")

    # delete 命令
    delete = subparsers.add_parser("delete", help="删除报告")
    delete.add_argument("report_id", help="报告 ID")

    # config 命令
    subparsers.add_parser("config", help="显示当前配置（不含 API key）")

    return parser


def _load(parsed: argparse.Namespace) -> Settings:
    settings = load_settings(parsed.config)
    if parsed.db_url:
        settings.storage = StorageConfig(backend="sqlalchemy", db_url=parsed.db_url)
    return settings


def _render_results(results: List[ReportResult]) -> str:
    blocks = []
    for result in results:
        blocks.append(f"## {result.group}\n\n{result.report}" if result.group else result.report)
    return "\n\n".join(blocks)


def _summary_line(report: StoredReport) -> str:
    label = report.prompt_template or ("Custom" if report.prompt else "-")
    return f"{report.id}  {report.status.value:<9}  {report.from_date}..{report.to_date}  {label}"


async def _generate(parsed: argparse.Namespace, settings: Settings) -> int:
    request = ReportRequest(
        from_date=parsed.from_date,
        to_date=parsed.to_date,
        prompt=parsed.prompt,
        prompt_template=parsed.template,
        group_by=parsed.group_by,
        subgroup_by=parsed.subgroup_by,
        parameters=parsed.filters,
        org_id=parsed.org_id,
    )
    store = build_report_store(settings.storage)
    client = create_coderabbit_client(settings.client)
    try:
        workflow = ReportWorkflow(client, storage=store)
        report_id = await workflow.generate_report(request)
    finally:
        await client.close()
        if store is not None and hasattr(store, "close"):
            store.close()

    if workflow.error:
        print(f"Error: {workflow.error}", file=sys.stderr)
        if report_id:
            print(f"Recorded as failed report {report_id}", file=sys.stderr)
        return 1

    print(_render_results(workflow.last_results))
    if report_id:
        print(f"Saved report {report_id}", file=sys.stderr)
    return 0


def _history(parsed: argparse.Namespace, settings: Settings) -> int:
    store = build_report_store(settings.storage)
    if store is None:
        print("Error: no report storage configured (use --db-url or storage.backend)", file=sys.stderr)
        return 1
    try:
        if parsed.command == "list":
            page = store.list(ListOptions(limit=parsed.limit, offset=parsed.offset, status=parsed.status))
            for report in page.reports:
                print(_summary_line(report))
            print(f"{len(page.reports)} of {page.total} report(s)")
            return 0

        if parsed.command == "show":
            report = store.get(parsed.report_id)
            if report is None:
                print(f"Error: Report not found: {parsed.report_id}", file=sys.stderr)
                return 1
            print(_summary_line(report))
            if report.error:
                print(f"Error: {report.error}")
            if report.results:
                print()
                print(_render_results(report.results))
            return 0

        store.delete(parsed.report_id)
        print(f"Deleted {parsed.report_id}")
        return 0
    finally:
        if hasattr(store, "close"):
            store.close()


def _show_config(settings: Settings) -> int:
    print(
        json.dumps(
            {
                "is_configured": settings.client.is_configured,
                "base_url": settings.client.base_url,
                "timeout_ms": settings.client.timeout_ms,
                "storage": settings.storage.backend,
            },
            indent=2,
        )
    )
    return 0


def run_cli(args: Optional[list] = None) -> int:
    """
    运行 CLI

    Args:
        args: 命令行参数（默认使用 sys.argv）

    Returns:
        退出码
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"coderabbit-reports v{__version__}")
        return 0

    if not parsed.command:
        parser.print_help()
        return 0

    try:
        settings = _load(parsed)
        configure_logging(settings.logging)

        if parsed.command == "generate":
            return asyncio.run(_generate(parsed, settings))
        if parsed.command == "config":
            return _show_config(settings)
        return _history(parsed, settings)

    except CodeRabbitError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
