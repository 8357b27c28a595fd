"""Command line entry point: SLA reports from a CSV export or a live Jira query."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from jira_sla.analytics.sla.csv_ingest import CSVFormatError, parse_sla_csv
from jira_sla.core.config import SETTINGS
from jira_sla.core.jira_client import JiraAPI, JiraFetchError
from jira_sla.core.mappers import parse_dt, report_to_dict
from jira_sla.core.service import SLAService
from jira_sla.core.sla_config import SLAConfig, load_sla_config

logger = logging.getLogger(__name__)


def _jira_credentials(args: argparse.Namespace) -> tuple[str, str, str]:
    server = args.server or os.environ.get("JIRA_SERVER")
    email = args.email or os.environ.get("JIRA_EMAIL")
    token = os.environ.get("JIRA_API_TOKEN") or os.environ.get("JIRA_TOKEN")
    if not (server and email and token):
        raise SystemExit("Jira credentials missing: set JIRA_SERVER, JIRA_EMAIL and JIRA_API_TOKEN")
    return server, email, token


def _now(args: argparse.Namespace) -> datetime | None:
    if not args.now:
        return None
    parsed = parse_dt(args.now)
    if parsed is None:
        raise SystemExit(f"Invalid --now value: {args.now}")
    return parsed


def _emit(payload: dict[str, Any], output: str | None) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding=SETTINGS.output_encoding)
        logger.info("Report written to %s", output)
    else:
        sys.stdout.write(text + "\n")


def cmd_csv(args: argparse.Namespace, config: SLAConfig) -> None:
    content = Path(args.path).read_text(encoding=args.encoding)
    try:
        report = parse_sla_csv(content, config, exclude_rejected=args.exclude_rejected)
    except CSVFormatError as exc:
        raise SystemExit(str(exc)) from exc
    _emit(report_to_dict(report), args.output)


def cmd_jira(args: argparse.Namespace, config: SLAConfig) -> None:
    server, email, token = _jira_credentials(args)

    def progress(message: str, done: int | None, total: int | None) -> None:
        if done is None or total is None:
            logger.info(message)
        elif done == total:
            logger.info("%s: %d/%d", message, done, total)

    try:
        service = SLAService(JiraAPI(server, email, token), config)
        if args.jql:
            report = service.report_for_jql(
                args.jql, now=_now(args), exclude_rejected=args.exclude_rejected, progress=progress
            )
        else:
            report = service.report_for_project(
                args.project,
                created_since=parse_dt(args.since) if args.since else None,
                now=_now(args),
                exclude_rejected=args.exclude_rejected,
                progress=progress,
            )
    except JiraFetchError as exc:
        raise SystemExit(f"Jira request failed: {exc}") from exc
    _emit(report_to_dict(report, include_changelog=args.changelog), args.output)


def cmd_projects(args: argparse.Namespace, config: SLAConfig) -> None:
    server, email, token = _jira_credentials(args)
    try:
        api = JiraAPI(server, email, token)
        if not api.test_connection():
            raise SystemExit(f"Cannot connect to {api.server} with the given credentials")
        projects = api.get_projects()
    except JiraFetchError as exc:
        raise SystemExit(str(exc)) from exc
    _emit({"server": api.server, "projects": projects}, args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jira-sla", description=__doc__)
    parser.add_argument("--config", help="Project SLA configuration (YAML or JSON)")
    parser.add_argument("--output", "-o", help="Write the JSON report here instead of stdout")
    parser.add_argument("--exclude-rejected", action="store_true", help="Leave rejected issues out of statistics")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    csv_p = sub.add_parser("csv", help="Report from a tracker CSV export")
    csv_p.add_argument("path")
    csv_p.add_argument("--encoding", default="utf-8-sig")

    jira_p = sub.add_parser("jira", help="Report from a Jira query (reconstructs changelogs)")
    target = jira_p.add_mutually_exclusive_group(required=True)
    target.add_argument("--jql")
    target.add_argument("--project")
    jira_p.add_argument("--since", help="Only issues created on/after this date (with --project)")
    jira_p.add_argument("--server")
    jira_p.add_argument("--email")
    jira_p.add_argument("--now", help="Evaluation instant (ISO-8601); defaults to the current time")
    jira_p.add_argument("--changelog", action="store_true", help="Echo each issue's changelog in the output")

    projects_p = sub.add_parser("projects", help="Check the connection and list visible projects")
    projects_p.add_argument("--server")
    projects_p.add_argument("--email")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    config = load_sla_config(args.config)
    commands = {"csv": cmd_csv, "jira": cmd_jira, "projects": cmd_projects}
    commands[args.command](args, config)


if __name__ == "__main__":
    main()
