"""
Process Runner - External Tool Invocation
==========================================

Every build, tunnel and diff tool is run as a named Step. A non-zero exit
aborts the CI run (like `set -e`) unless the step is marked allow_failure.
Tool output goes straight to the console so CI logs stay readable.
"""

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from ..errors import StepFailedError

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class Step:
    """An external command to run as one CI step."""
    name: str
    argv: Tuple[str, ...]
    cwd: Optional[Path] = None
    env: Optional[Dict[str, str]] = None
    allow_failure: bool = False

    # Values replaced with *** whenever the command line is logged
    secrets: Tuple[str, ...] = field(default=(), repr=False)

    def display(self) -> str:
        text = " ".join(shlex.quote(arg) for arg in self.argv)
        for secret in self.secrets:
            if secret:
                text = text.replace(secret, "***")
        return text


@dataclass
class StepResult:
    """Outcome of a finished step."""
    step: Step
    returncode: int
    duration_s: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def make_step(
    name: str,
    argv: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    allow_failure: bool = False,
    secrets: Sequence[str] = (),
) -> Step:
    return Step(
        name=name,
        argv=tuple(str(arg) for arg in argv),
        cwd=cwd,
        env=env,
        allow_failure=allow_failure,
        secrets=tuple(secrets),
    )


def run_step(step: Step) -> StepResult:
    """
    Run a step to completion.

    Raises StepFailedError on a non-zero exit or a missing executable,
    unless step.allow_failure is set.
    """
    where = f" (in {step.cwd})" if step.cwd else ""
    logger.info(f"==> {step.name}: {step.display()}{where}")
    started = time.monotonic()

    try:
        completed = subprocess.run(
            list(step.argv),
            cwd=str(step.cwd) if step.cwd else None,
            env=step.env,
            check=False,
        )
        returncode = completed.returncode
    except FileNotFoundError as e:
        logger.error(f"{step.name}: executable not found: {step.argv[0]}")
        if not step.allow_failure:
            raise StepFailedError(step.name, COMMAND_NOT_FOUND, str(e)) from e
        returncode = COMMAND_NOT_FOUND

    result = StepResult(step=step, returncode=returncode, duration_s=time.monotonic() - started)

    if result.ok:
        logger.info(f"<== {step.name} finished in {result.duration_s:.1f}s")
    elif step.allow_failure:
        logger.warning(f"<== {step.name} exited with {returncode} (ignored)")
    else:
        logger.error(f"<== {step.name} exited with {returncode} after {result.duration_s:.1f}s")
        raise StepFailedError(step.name, returncode)

    return result
