from .reg_cli import RegDiff, RegReport, bundle_report, load_reg_report, run_reg_cli

__all__ = ["RegDiff", "RegReport", "bundle_report", "load_reg_report", "run_reg_cli"]
