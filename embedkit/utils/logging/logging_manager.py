"""Unified logging facade for the embedding engine."""

import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

try:
    import wandb

    HAS_WANDB = True
except ImportError:
    HAS_WANDB = False

# Environment variable to globally disable WandB metric logging
WANDB_DISABLED_ENV_VAR = "EMBEDKIT_WANDB_DISABLED"
# Environment variable enabling WandB metric logging when no explicit flag is passed
WANDB_ENABLED_ENV_VAR = "EMBEDKIT_ENABLE_WANDB"

_TRUTHY = ("true", "1", "yes")


class LoggingManager:
    """Logging manager that handles both standard logging and WandB metrics."""

    def __init__(
        self,
        name: str = "embedkit",
        level: int = logging.INFO,
        log_file: Optional[Union[str, Path]] = None,
        enable_wandb: Optional[bool] = None,
        wandb_project: Optional[str] = None,
        wandb_config: Optional[Dict[str, Any]] = None,
    ):
        """Initialize logging manager.

        Args:
            name: Logger name
            level: Logging level
            log_file: Optional log file path
            enable_wandb: Whether to enable WandB (reads the environment if None)
            wandb_project: WandB project name
            wandb_config: WandB configuration dictionary
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Console output lives on the package logger only; children propagate to it.
        package_logger = logging.getLogger(name.split(".")[0])
        if not package_logger.handlers:
            self._setup_console_handler(package_logger)

        if log_file and not any(
            isinstance(handler, logging.FileHandler) for handler in self.logger.handlers
        ):
            self._setup_file_handler(log_file)

        wandb_globally_disabled = (
            os.environ.get(WANDB_DISABLED_ENV_VAR, "").lower() in _TRUTHY
        )

        if wandb_globally_disabled:
            self.enable_wandb = False
        elif enable_wandb is not None:
            self.enable_wandb = enable_wandb
        else:
            self.enable_wandb = os.environ.get(WANDB_ENABLED_ENV_VAR, "").lower() in _TRUTHY
        self.wandb_initialized = False

        if self.enable_wandb and HAS_WANDB:
            self._setup_wandb(wandb_project, wandb_config)

    def _setup_console_handler(self, target: logging.Logger) -> None:
        """Set up console logging handler on ``target``."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)

        target.addHandler(console_handler)

    def _setup_file_handler(self, log_file: Union[str, Path]) -> None:
        """Set up file logging handler.

        Args:
            log_file: Path to log file
        """
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
        file_handler.setFormatter(formatter)

        self.logger.addHandler(file_handler)

    def _setup_wandb(
        self, project: Optional[str] = None, config: Optional[Dict[str, Any]] = None
    ) -> None:
        """Set up WandB logging, reusing an active run when one exists."""
        try:
            if wandb.run is not None:
                self.wandb_initialized = True
                self.logger.info(f"Reusing existing WandB run: {wandb.run.name}")
                return

            project_name = project or os.environ.get("EMBEDKIT_WANDB_PROJECT", "embedkit")
            wandb.init(project=project_name, config=config)

            self.wandb_initialized = True
            self.logger.info(f"WandB initialized for project: {project_name}")

        except Exception as e:
            self.logger.warning(f"Failed to initialize WandB: {e}")
            self.enable_wandb = False

    def _forward(self, payload: Dict[str, Any]) -> None:
        if self.enable_wandb and self.wandb_initialized and payload:
            try:
                wandb.log(payload)
            except Exception as e:
                self.logger.warning(f"Failed to log to WandB: {e}")

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message.

        Args:
            message: Log message (may contain % formatting)
            *args: Arguments for % formatting
            **kwargs: Additional key-value pairs for WandB
        """
        self.logger.info(message, *args)
        self._forward(kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args)
        self._forward(kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args)
        self._forward(kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.error(message, *args)
        self._forward(kwargs)

    def exception(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.exception(message, *args)
        self._forward(kwargs)

    def log_metrics(self, metrics: Dict[str, Any], step: Optional[int] = None) -> None:
        """Log metrics to both standard logging and WandB.

        Args:
            metrics: Dictionary of metrics to log
            step: Optional step number
        """
        metrics_str = ", ".join([f"{k}: {v}" for k, v in metrics.items()])
        step_str = f" (step {step})" if step is not None else ""
        self.logger.debug(f"Metrics{step_str}: {metrics_str}")

        if self.enable_wandb and self.wandb_initialized:
            try:
                wandb.log(metrics, step=step)
            except Exception as e:
                self.logger.warning(f"Failed to log metrics to WandB: {e}")

    def finish(self) -> None:
        """Clean up logging resources."""
        if self.enable_wandb and self.wandb_initialized:
            try:
                wandb.finish()
                self.wandb_initialized = False
            except Exception as e:
                self.logger.warning(f"Failed to finish WandB: {e}")


# Global logging manager instances cache
_logger_cache: Dict[str, LoggingManager] = {}


def get_logger(name: str = "embedkit", **kwargs: Any) -> LoggingManager:
    """Get or create logging manager for the given name.

    Args:
        name: Logger name
        **kwargs: Additional arguments for LoggingManager (only used on first call for each name)

    Returns:
        LoggingManager instance
    """
    if name not in _logger_cache:
        _logger_cache[name] = LoggingManager(name, **kwargs)

    return _logger_cache[name]


def setup_logging(
    name: str = "embedkit",
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    enable_wandb: Optional[bool] = None,
    wandb_project: Optional[str] = None,
    wandb_config: Optional[Dict[str, Any]] = None,
) -> LoggingManager:
    """Set up logging for ``name`` and register it in the logger cache.

    Returns:
        Configured LoggingManager instance
    """
    manager = LoggingManager(
        name=name,
        level=level,
        log_file=log_file,
        enable_wandb=enable_wandb,
        wandb_project=wandb_project,
        wandb_config=wandb_config,
    )
    _logger_cache[name] = manager
    return manager


@contextmanager
def timed_context(operation: str, logger: Optional[LoggingManager] = None) -> Iterator[None]:
    """Log how long the wrapped block took.

    The duration is logged at info level and recorded as a
    ``timing/<operation>`` metric.
    """
    manager = logger or get_logger("embedkit.timing")
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        manager.info("%s took %.6f seconds.", operation, elapsed)
        manager.log_metrics({f"timing/{operation}": elapsed})


__all__ = [
    "HAS_WANDB",
    "LoggingManager",
    "get_logger",
    "setup_logging",
    "timed_context",
]
