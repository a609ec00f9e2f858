from .runner import COMMAND_NOT_FOUND, Step, StepResult, make_step, run_step

__all__ = ["COMMAND_NOT_FOUND", "Step", "StepResult", "make_step", "run_step"]
