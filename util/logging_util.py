import logging
import sys
from typing import Optional

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

RESPONSE_PREVIEW_CHARS = 200


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.

    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

    return logger


def _preview(text: str, limit: int = RESPONSE_PREVIEW_CHARS) -> str:
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


def log_llm_interaction(logger: logging.Logger, tier: str, model_name: str, prompt: str,
                        response: str, duration_ms: Optional[float] = None):
    """
    Logs an LLM interaction with all relevant details.

    Args:
        logger: Logger instance to use
        tier: The inference tier the call was routed to ("cheap" or "capable")
        model_name: Name of the model used
        prompt: The rendered prompt that was sent
        response: Response from the LLM
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(f"LLM Request{duration_str} - Tier: {tier}, Model: {model_name}")
    logger.debug(f"  Prompt: {prompt}")
    logger.info(f"  Response: {_preview(response)}")


def log_state_transition(logger: logging.Logger, workflow: str, from_state: str, to_state: str):
    """
    Logs a workflow state machine transition.

    Args:
        logger: Logger instance to use
        workflow: Name of the workflow ("learner" or "scorer")
        from_state: The state that just ran
        to_state: The next state, or the terminal outcome
    """
    logger.info(f"[{workflow}] {from_state} -> {to_state}")
