"""
Visual Regression Report - reg-cli Driver
==========================================

Screenshots from this run live in `screenshots/`, the ones from the previous
run in `previous_screenshots/`. reg-cli diffs them into `diff_screenshots/`
and writes an HTML report; everything is then bundled in
`screenshots_report/` for upload as a CI artifact.

Changed screenshots never fail the run (`--ignoreChange`): they are for a
human to review, not a reason to block merging.
"""

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..config import Settings
from ..errors import ReportError
from ..process import StepResult, make_step, run_step

logger = logging.getLogger(__name__)


class RegReport(BaseModel):
    """Summary written by `reg-cli -J`."""

    failed_items: List[str] = Field(default_factory=list, alias="failedItems")
    new_items: List[str] = Field(default_factory=list, alias="newItems")
    deleted_items: List[str] = Field(default_factory=list, alias="deletedItems")
    passed_items: List[str] = Field(default_factory=list, alias="passedItems")
    expected_dir: str = Field(default="", alias="expectedDir")
    actual_dir: str = Field(default="", alias="actualDir")
    diff_dir: str = Field(default="", alias="diffDir")

    model_config = {"populate_by_name": True}

    @property
    def has_changes(self) -> bool:
        return bool(self.failed_items or self.new_items or self.deleted_items)

    def summary(self) -> str:
        return (
            f"{len(self.passed_items)} unchanged, {len(self.failed_items)} changed, "
            f"{len(self.new_items)} new, {len(self.deleted_items)} deleted"
        )


def load_reg_report(path: Path) -> Optional[RegReport]:
    """Parse reg-cli's JSON output. Returns None if reg-cli did not write one."""
    if not path.exists():
        return None
    try:
        return RegReport.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (ValueError, ValidationError) as e:
        raise ReportError(f"Unreadable reg-cli summary {path}: {e}") from e


@dataclass
class RegDiff:
    """Exit status of reg-cli and its JSON summary, if one could be read."""
    result: StepResult
    report: Optional[RegReport] = None


def run_reg_cli(settings: Settings) -> RegDiff:
    """Diff current against previous screenshots. Never aborts the run."""
    report = settings.report
    # Absolute: a relative path would be looked up again from inside cwd
    reg_cli = settings.resolve(report.reg_cli).resolve()
    argv = [
        reg_cli,
        f"{report.screenshots_dir}/",
        f"{report.previous_dir}/",
        f"{report.diff_dir}/",
        "-R", f"./{report.report_file}",
        "-J", f"./{report.json_file}",
        "--ignoreChange",
    ]
    result = run_step(
        make_step("reg-cli", argv, cwd=settings.repo_root, allow_failure=True)
    )

    try:
        summary = load_reg_report(settings.resolve(report.json_file))
    except ReportError as e:
        logger.warning(f"Ignoring screenshot diff summary: {e}")
        return RegDiff(result=result)

    if summary is None:
        logger.warning("reg-cli wrote no JSON summary")
    elif summary.has_changes:
        logger.warning(f"Screenshots changed: {summary.summary()}")
    else:
        logger.info(f"Screenshots unchanged: {summary.summary()}")
    return RegDiff(result=result, report=summary)


def bundle_report(settings: Settings) -> Path:
    """
    Move the report and all screenshot directories into screenshots_report/.

    Like `mkdir` + `mv`: fails if the bundle directory already exists or an
    input is missing. The JSON summary is optional.
    """
    report = settings.report
    bundle = settings.resolve(report.report_dir)
    required = [report.report_file, report.screenshots_dir, report.previous_dir, report.diff_dir]

    try:
        bundle.mkdir(parents=False)
    except FileExistsError as e:
        raise ReportError(f"{bundle} already exists") from e
    except FileNotFoundError as e:
        raise ReportError(f"Cannot create {bundle}: parent directory missing") from e

    for relative in required:
        source = settings.resolve(relative)
        if not source.exists():
            raise ReportError(f"Cannot bundle {source}: no such file or directory")
        shutil.move(str(source), str(bundle / source.name))
        logger.debug(f"Moved {source} into {bundle}")

    summary = settings.resolve(report.json_file)
    if summary.exists():
        shutil.move(str(summary), str(bundle / summary.name))

    logger.info(f"Screenshot report bundled in {bundle}")
    return bundle
