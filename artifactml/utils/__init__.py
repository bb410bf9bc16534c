from .logging_utils import log_stage_action, setup_logging

__all__ = ["log_stage_action", "setup_logging"]
