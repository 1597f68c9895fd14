"""
Observability module for tracking stage execution, metrics, and traces.
Provides structured logging, execution tracing, and metrics collection.
"""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass, asdict, field
from enum import Enum


class StageStatus(Enum):
    """Status of a stage execution."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StageExecution:
    """Represents a single stage execution."""
    stage_name: str
    start_time: float
    end_time: Optional[float] = None
    duration_seconds: Optional[float] = None
    status: StageStatus = StageStatus.SUCCESS
    retry_count: int = 0
    message: Optional[str] = None
    output_key: Optional[str] = None
    has_output: bool = False

    def finish(self, status: StageStatus = StageStatus.SUCCESS, message: Optional[str] = None):
        """Mark execution as finished."""
        self.end_time = time.time()
        self.duration_seconds = self.end_time - self.start_time
        self.status = status
        if message:
            self.message = message

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        result = asdict(self)
        result['status'] = self.status.value
        return result


@dataclass
class PipelineMetrics:
    """Metrics for one generation request."""
    pipeline_start_time: float
    pipeline_end_time: Optional[float] = None
    total_duration_seconds: Optional[float] = None
    total_stages_executed: int = 0
    successful_stages: int = 0
    failed_stages: int = 0
    degrade_retries: int = 0
    stage_executions: List[StageExecution] = field(default_factory=list)

    def add_execution(self, execution: StageExecution):
        self.stage_executions.append(execution)
        self.total_stages_executed += 1

        if execution.status == StageStatus.SUCCESS:
            self.successful_stages += 1
        elif execution.status == StageStatus.FAILED:
            self.failed_stages += 1

    def finish(self):
        """Mark pipeline as finished."""
        self.pipeline_end_time = time.time()
        self.total_duration_seconds = self.pipeline_end_time - self.pipeline_start_time

    def get_success_rate(self) -> float:
        """Calculate success rate (0.0 to 1.0)."""
        if self.total_stages_executed == 0:
            return 0.0
        return self.successful_stages / self.total_stages_executed

    def to_dict(self) -> Dict:
        return {
            'pipeline_start_time': self.pipeline_start_time,
            'pipeline_end_time': self.pipeline_end_time,
            'total_duration_seconds': self.total_duration_seconds,
            'total_stages_executed': self.total_stages_executed,
            'successful_stages': self.successful_stages,
            'failed_stages': self.failed_stages,
            'degrade_retries': self.degrade_retries,
            'success_rate': self.get_success_rate(),
            'stage_executions': [execution.to_dict() for execution in self.stage_executions]
        }


class ObservabilityLogger:
    """Tracks stage executions and metrics for one generation request."""

    def __init__(self, log_file: Optional[str] = None, trace_file: Optional[str] = None, console: bool = False):
        """
        Initialize observability logger.

        Args:
            log_file: Path to structured log file (optional; no file handler when omitted)
            trace_file: Path to trace history JSON file (optional)
            console: Also echo INFO records to the console
        """
        self.log_file = log_file
        self.trace_file = trace_file
        self.metrics: Optional[PipelineMetrics] = None
        self.current_execution: Optional[StageExecution] = None

        self.logger = logging.getLogger("deck_pipeline.observability")
        self.logger.setLevel(logging.DEBUG)

        # Remove existing handlers to avoid duplicates
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a')
            file_handler.setLevel(logging.DEBUG)

            # Structured format: timestamp | level | logger | message | data
            formatter = logging.Formatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(message)s | %(data)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s | %(levelname)s | %(message)s',
                datefmt='%H:%M:%S'
            ))
            self.logger.addHandler(console_handler)

    def _log(self, level: int, message: str, data: Dict):
        self.logger.log(level, message, extra={'data': json.dumps(data, default=str)})

    def start_pipeline(self, pipeline_name: str = "presentation_pipeline"):
        """Start tracking a new generation request."""
        self.metrics = PipelineMetrics(pipeline_start_time=time.time())
        self._log(logging.INFO, f"Pipeline started: {pipeline_name}", {
            'pipeline_name': pipeline_name,
            'start_time': datetime.now().isoformat(),
        })

    def start_stage(self, stage_name: str, output_key: Optional[str] = None, retry_count: int = 0) -> StageExecution:
        """
        Start tracking a stage execution.

        Args:
            stage_name: Name of the stage
            output_key: Name of the output the stage produces
            retry_count: Number of degrade retries so far (0 for the first attempt)

        Returns:
            StageExecution object
        """
        if self.current_execution and self.current_execution.end_time is None:
            self.current_execution.finish(StageStatus.SKIPPED, "Replaced by new execution")

        self.current_execution = StageExecution(
            stage_name=stage_name,
            start_time=time.time(),
            retry_count=retry_count,
            output_key=output_key,
        )
        self._log(logging.INFO, f"Stage started: {stage_name}", {
            'stage_name': stage_name,
            'output_key': output_key,
            'retry_count': retry_count,
        })
        return self.current_execution

    def finish_stage(
        self,
        status: StageStatus = StageStatus.SUCCESS,
        message: Optional[str] = None,
        has_output: bool = True,
    ):
        """
        Finish tracking the current stage execution.

        Args:
            status: Execution status
            message: Result or error message
            has_output: Whether the stage produced output
        """
        if not self.current_execution:
            self._log(logging.WARNING, "Attempted to finish stage but none is active", {})
            return

        execution = self.current_execution
        execution.finish(status, message)
        execution.has_output = has_output

        if self.metrics:
            self.metrics.add_execution(execution)

        log_data = {
            'stage_name': execution.stage_name,
            'duration_seconds': execution.duration_seconds,
            'status': status.value,
            'retry_count': execution.retry_count,
            'has_output': has_output,
        }
        if message:
            log_data['message'] = message

        if status == StageStatus.SUCCESS:
            self._log(logging.INFO, f"Stage completed: {execution.stage_name}", log_data)
        else:
            self._log(logging.WARNING, f"Stage finished with status {status.value}: {execution.stage_name}", log_data)

        self.current_execution = None

    def log_retry(self, stage_name: str, attempt: int, reason: str):
        """Log a degrade retry."""
        if self.metrics:
            self.metrics.degrade_retries += 1
        self._log(logging.INFO, f"Degrade retry: {stage_name} (attempt {attempt})", {
            'stage_name': stage_name,
            'attempt': attempt,
            'reason': reason,
            'timestamp': datetime.now().isoformat(),
        })

    def finish_pipeline(self, save_trace: bool = True) -> Optional[PipelineMetrics]:
        """
        Finish tracking the request.

        Args:
            save_trace: Whether to save trace history to JSON file

        Returns:
            PipelineMetrics object
        """
        if not self.metrics:
            self._log(logging.WARNING, "Attempted to finish pipeline but none was started", {})
            return None

        if self.current_execution and self.current_execution.end_time is None:
            self.current_execution.finish(StageStatus.SKIPPED, "Pipeline finished")
            self.metrics.add_execution(self.current_execution)
            self.current_execution = None

        self.metrics.finish()

        self._log(logging.INFO, "Pipeline completed", {
            'total_duration_seconds': self.metrics.total_duration_seconds,
            'total_stages_executed': self.metrics.total_stages_executed,
            'successful_stages': self.metrics.successful_stages,
            'failed_stages': self.metrics.failed_stages,
            'degrade_retries': self.metrics.degrade_retries,
            'success_rate': self.metrics.get_success_rate(),
        })

        if save_trace and self.trace_file:
            self.save_trace_history()

        return self.metrics

    def save_trace_history(self):
        """Save trace history to JSON file."""
        if not self.metrics or not self.trace_file:
            return

        trace_data = {
            'pipeline_metrics': self.metrics.to_dict(),
            'timestamp': datetime.now().isoformat(),
            'version': '1.0'
        }

        trace_path = Path(self.trace_file)
        trace_path.parent.mkdir(parents=True, exist_ok=True)

        with open(trace_path, 'w') as f:
            json.dump(trace_data, f, indent=2, default=str)

        self._log(logging.INFO, f"Trace history saved to {self.trace_file}", {'trace_file': self.trace_file})

    def print_metrics_summary(self):
        """Print a human-readable metrics summary."""
        if not self.metrics or self.metrics.total_duration_seconds is None:
            return

        print("\n" + "=" * 60)
        print("📊 PIPELINE METRICS SUMMARY")
        print("=" * 60)
        print(f"Total Duration: {self.metrics.total_duration_seconds:.2f} seconds")
        print(f"Stages Executed: {self.metrics.total_stages_executed}")
        print(f"Successful: {self.metrics.successful_stages} ✅")
        print(f"Failed: {self.metrics.failed_stages} ❌")
        print(f"Degrade Retries: {self.metrics.degrade_retries} 🔄")
        print(f"Success Rate: {self.metrics.get_success_rate() * 100:.1f}%")
        print("\nStage Execution Details:")
        print("-" * 60)

        for execution in self.metrics.stage_executions:
            status_icon = {
                StageStatus.SUCCESS: "✅",
                StageStatus.FAILED: "❌",
                StageStatus.SKIPPED: "⏭️"
            }.get(execution.status, "❓")

            retry_info = f" (retry {execution.retry_count})" if execution.retry_count > 0 else ""
            print(f"{status_icon} {execution.stage_name}{retry_info}: {execution.duration_seconds:.2f}s")
            if execution.message:
                prefix = "   Error: " if execution.status == StageStatus.FAILED else "   "
                print(f"{prefix}{execution.message}")

        print("=" * 60)
        if self.log_file:
            print(f"📝 Structured logs: {self.log_file}")
        if self.trace_file:
            print(f"📊 Trace history: {self.trace_file}")
        print("=" * 60 + "\n")
