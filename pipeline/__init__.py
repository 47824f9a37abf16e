from pipeline.runner import Runner, run_once

__all__ = ["Runner", "run_once"]
