# File: snapshot_scout/report/__init__.py
"""snapshot_scout.report: JSON- и HTML-отчёты по результатам замеров."""

from snapshot_scout.report.html_report import render_html
from snapshot_scout.report.json_report import render_json, report_filename

__all__ = ["render_json", "render_html", "report_filename"]
