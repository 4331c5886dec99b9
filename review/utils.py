# review/utils.py
"""
Utility helpers: CSV loading, report generation, and console output.

- Reads the inventory export as a header + rows table.
- Saves JSON, CSV, HTML, and XLSX reports.
- Uses Rich for colorful, wrapped tables in the terminal.
"""

from datetime import datetime, timezone
from html import escape
from typing import Dict, List, Optional, Sequence
import csv
import json
import os
import re

from openpyxl import Workbook
from openpyxl.styles import Font
from rich.console import Console
from rich.table import Table
from rich.text import Text

from review.config import (
    CRITICAL_PRIORITY,
    DETAIL_HEADERS,
    ISSUES_HEADERS,
    ISSUES_SHEET,
    NAME_FIELD,
    SERVICE_FIELD,
)
from review.models import Report
from review.errors import ParseError

_console = Console()

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")


def load_csv_table(path: str) -> List[List[str]]:
    """
    Load a CSV file and return its rows, header first.

    Blank lines are skipped. Raises FileNotFoundError if the file is missing and
    ParseError if the table is empty, ragged, or lacks the Service/Name columns.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input CSV file not found: {path}.")
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as fh:
            table = [row for row in csv.reader(fh) if any(cell.strip() for cell in row)]
    except (UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"Invalid CSV in {path}: {e}") from e

    if not table:
        raise ParseError(f"Invalid CSV in {path}: no header row")
    header = table[0]
    missing = [col for col in (SERVICE_FIELD, NAME_FIELD) if col not in header]
    if missing:
        raise ParseError(f"Invalid CSV in {path}: missing column(s) {', '.join(missing)}")
    for lineno, row in enumerate(table[1:], start=2):
        if len(row) != len(header):
            raise ParseError(
                f"Invalid CSV in {path}: row {lineno} has {len(row)} fields, expected {len(header)}"
            )
    return table


def ensure_reports_dir(path: str = "reports") -> str:
    os.makedirs(path, exist_ok=True)
    return path


def strip_markup(text: str) -> str:
    """
    Remove HTML tags for plain-text sinks. <br> becomes a line break.
    """
    text = _TAG.sub("", _BR.sub("\n", text or ""))
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def issues_rows(report: Report, links: bool = True) -> List[List[str]]:
    """
    Overview rows in report order. With links, the last cell is an HTML anchor
    to the detail table; otherwise it is the detail sheet name.
    """
    rows: List[List[str]] = []
    for no, entry in enumerate(report, start=1):
        group = entry.group
        if links:
            link = f'<a href="{entry.table.resource_link}">View Resources</a>'
            recommendation = group.recommendation
        else:
            link = f"Issue {no}"
            recommendation = strip_markup(group.recommendation)
        rows.append([str(no), group.issue, group.comment, recommendation, str(group.priority), link])
    return rows


def report_to_dict(report: Report, language: str, now: str) -> dict:
    return {
        "scan_time": now,
        "language": language,
        "summary": {
            "issues_count": len(report),
            "findings_count": report.resource_count,
            "skipped_count": len(report.diagnostics),
        },
        "issues": [
            {
                "no": no,
                "rule": entry.group.rule,
                "issue": entry.group.issue,
                "comment": entry.group.comment,
                "recommendation": strip_markup(entry.group.recommendation),
                "priority": entry.group.priority,
                "table_id": entry.table.table_id,
                "resources": [dict(zip(DETAIL_HEADERS, row)) for row in entry.table.rows],
            }
            for no, entry in enumerate(report, start=1)
        ],
        "diagnostics": [
            {"issue": d.issue, "resource_id": d.resource_id, "reason": d.reason}
            for d in report.diagnostics
        ],
    }


def build_workbook(report: Report) -> Workbook:
    """
    One "Issues" overview sheet plus an "Issue <n>" sheet per group. The overview's
    Resource Link cells point at A1 of the matching detail sheet.
    """
    wb = Workbook()
    issues_ws = wb.active
    issues_ws.title = ISSUES_SHEET
    issues_ws.append(ISSUES_HEADERS)
    for row in issues_rows(report, links=False):
        no = int(row[0])
        issues_ws.append([no, row[1], row[2], row[3], int(row[4]), row[5]])
        cell = issues_ws.cell(row=no + 1, column=len(ISSUES_HEADERS))
        cell.hyperlink = f"#'{row[5]}'!A1"
        cell.font = Font(color="0563C1", underline="single")

    for no, entry in enumerate(report, start=1):
        ws = wb.create_sheet(title=f"Issue {no}")
        ws.append(entry.table.headers)
        for detail_row in entry.table.rows:
            ws.append(list(detail_row))
    return wb


def _html_table(headers: Sequence[str], rows: List[List[str]], table_id: Optional[str] = None,
                raw_columns: Sequence[int] = ()) -> List[str]:
    out: List[str] = []
    id_attr = f" id='{escape(table_id)}'" if table_id else ""
    out.append(f"<table{id_attr}><thead><tr>" + "".join(f"<th>{escape(h)}</th>" for h in headers) + "</tr></thead><tbody>")
    for row in rows:
        cells = []
        for i, cell in enumerate(row):
            cells.append(f"<td>{cell if i in raw_columns else escape(str(cell))}</td>")
        out.append("<tr>" + "".join(cells) + "</tr>")
    out.append("</tbody></table>")
    return out


def render_html(report: Report, language: str, now: str, extra: Optional[dict] = None) -> str:
    html_rows: List[str] = []
    html_rows.append("<!doctype html>")
    html_rows.append(f"<html lang='{escape(language)}'><head><meta charset='utf-8'><title>Resource Review Report</title>")
    html_rows.append("<style>body{font-family:Arial,Helvetica,sans-serif;margin:20px}table{border-collapse:collapse;width:100%;font-size:14px;margin-bottom:24px}th,td{border-bottom:1px solid #ccc;padding:8px}th{background:rgba(0,0,0,0.1);text-align:left}tr:nth-child(even){background:#fafafa}</style>")
    html_rows.append("</head><body>")
    html_rows.append(f"<h2>Resource Review Report - {escape(now)} - language: {escape(language)}</h2>")
    html_rows.append(f"<p>Total issues: {len(report)} / affected resources: {report.resource_count}</p>")
    if extra:
        html_rows.append("<div><strong>Metadata:</strong><ul>")
        for k, v in extra.items():
            html_rows.append(f"<li>{escape(str(k))}: {escape(str(v))}</li>")
        html_rows.append("</ul></div>")

    html_rows.append(f"<h2>{ISSUES_SHEET}</h2>")
    # Recommendation markup and the resource link are rendered as HTML
    html_rows.extend(_html_table(ISSUES_HEADERS, issues_rows(report), table_id="issues", raw_columns=(3, 5)))

    html_rows.append("<div id='resources'>")
    for entry in report:
        html_rows.append(f"<h3>{escape(entry.table.issue_title)}</h3>")
        html_rows.extend(_html_table(entry.table.headers, [list(r) for r in entry.table.rows], table_id=entry.table.table_id))
    html_rows.append("</div>")

    if report.diagnostics:
        html_rows.append("<h2>Skipped records</h2><ul>")
        for d in report.diagnostics:
            html_rows.append(f"<li>{escape(d.issue)}: {escape(d.reason)}</li>")
        html_rows.append("</ul>")
    html_rows.append("</body></html>")
    return "\n".join(html_rows)


def save_report(report: Report, language: str, extra: dict = None, out_dir: str = "reports") -> Dict[str, str]:
    """
    Save JSON, CSV, HTML, and XLSX reports and return their paths.
    """
    out_dir = ensure_reports_dir(out_dir)
    now = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    data = report_to_dict(report, language, now)
    if extra:
        data["extra"] = extra

    base_ts = now.replace(":", "-")
    json_path = os.path.join(out_dir, f"review-{base_ts}.json")
    csv_path = os.path.join(out_dir, f"review-{base_ts}.csv")
    html_path = os.path.join(out_dir, f"review-{base_ts}.html")
    xlsx_path = os.path.join(out_dir, f"review-{base_ts}.xlsx")

    # JSON
    with open(json_path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)

    # CSV
    with open(csv_path, "w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(["No", "Issue", "Priority"] + DETAIL_HEADERS)
        for no, entry in enumerate(report, start=1):
            for row in entry.table.rows:
                writer.writerow([no, entry.group.issue, entry.group.priority] + list(row))

    # HTML
    with open(html_path, "w", encoding="utf-8") as fh:
        fh.write(render_html(report, language, now, extra))

    # XLSX
    build_workbook(report).save(xlsx_path)

    return {"json": json_path, "csv": csv_path, "html": html_path, "xlsx": xlsx_path}

# --- Console printing with color/wrapping ------------------------------------

def _rich_priority_text(priority: int) -> Text:
    """
    Return a Rich Text object styled by priority.
    """
    if priority <= CRITICAL_PRIORITY:
        return Text(str(priority), style="bold red")
    if priority == CRITICAL_PRIORITY + 1:
        return Text(str(priority), style="bold yellow")
    return Text(str(priority), style="green")


def print_summary_and_report_path(report: Report, report_paths: Dict[str, str], print_full_table: bool = False,
                                  console: Optional[Console] = None):
    """
    Print a compact summary table of issues and, optionally, every affected resource.
    """
    console = console or _console
    console.print("\nReview summary:")
    console.print(f"- Issues: {len(report)}")
    console.print(f"- Affected resources: {report.resource_count}")
    if report.diagnostics:
        console.print(f"- Skipped records: {len(report.diagnostics)}", style="yellow")
    if len(report):
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("No", justify="right")
        table.add_column("Issue", style="magenta", overflow="fold")
        table.add_column("Priority", justify="right")
        table.add_column("Resources", justify="right")
        for no, entry in enumerate(report, start=1):
            table.add_row(str(no), entry.group.issue, _rich_priority_text(entry.group.priority),
                          str(len(entry.table.rows)))
        console.print(table)
        if print_full_table:
            for no, entry in enumerate(report, start=1):
                detail = Table(title=f"Issue {no}: {entry.group.issue}", show_header=True, header_style="bold cyan")
                for header in entry.table.headers:
                    detail.add_column(header, overflow="fold")
                for row in entry.table.rows:
                    detail.add_row(*row)
                console.print(detail)
    console.print("\nSaved reports:")
    console.print(f"- JSON: {report_paths.get('json')}")
    console.print(f"- CSV:  {report_paths.get('csv')}")
    console.print(f"- HTML: {report_paths.get('html')}")
    console.print(f"- XLSX: {report_paths.get('xlsx')}\n")
