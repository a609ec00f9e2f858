from .pipeline import CIPipeline, PipelineSummary, StepOutcome

__all__ = ["CIPipeline", "PipelineSummary", "StepOutcome"]
