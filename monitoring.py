"""
Logging setup, operation metrics and health checks for the SEO Dashboard
"""
import logging
import os
from typing import Dict, List, Any
from datetime import datetime
from threading import Lock

import psutil

from database import DatabaseManager


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """Console plus file logging; safe to call more than once"""

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(
        os.path.join(log_dir, 'dashboard.log'),
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(file_handler)

    error_handler = logging.FileHandler(
        os.path.join(log_dir, 'errors.log'),
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_handler)

    return root_logger


class MetricsCollector:
    """In-process counters for audits, relay calls and rank checks"""

    # Keep only the most recent durations for the average
    MAX_SAMPLES = 500

    def __init__(self):
        self.metrics_lock = Lock()
        self.started_at = datetime.now()
        self.audits_run = 0
        self.relay_calls = 0
        self.rank_checks = 0
        self.errors_count = 0
        self.response_times: List[float] = []

    def _record_time(self, response_time: float):
        self.response_times.append(response_time)
        if len(self.response_times) > self.MAX_SAMPLES:
            self.response_times.pop(0)

    def record_audit(self, response_time: float):
        with self.metrics_lock:
            self.audits_run += 1
            self._record_time(response_time)

    def record_relay_call(self, response_time: float):
        with self.metrics_lock:
            self.relay_calls += 1
            self._record_time(response_time)

    def record_rank_check(self, response_time: float):
        with self.metrics_lock:
            self.rank_checks += 1
            self._record_time(response_time)

    def record_error(self):
        with self.metrics_lock:
            self.errors_count += 1

    def get_metrics(self) -> Dict[str, Any]:
        with self.metrics_lock:
            total = self.audits_run + self.relay_calls + self.rank_checks
            avg_response_time = (
                sum(self.response_times) / len(self.response_times) if self.response_times else 0.0
            )
            success_rate = ((total - self.errors_count) / total * 100) if total > 0 else 100.0
            return {
                'uptime_seconds': (datetime.now() - self.started_at).total_seconds(),
                'audits_run': self.audits_run,
                'relay_calls': self.relay_calls,
                'rank_checks': self.rank_checks,
                'errors_count': self.errors_count,
                'success_rate': max(success_rate, 0.0),
                'avg_response_time': avg_response_time
            }


class HealthChecker:
    """Database reachability and process resource checks"""

    def __init__(self, metrics_collector: MetricsCollector, db_manager: DatabaseManager):
        self.metrics_collector = metrics_collector
        self.db_manager = db_manager

    def check_health(self) -> Dict[str, Any]:
        health_status = {
            'timestamp': datetime.now().isoformat(),
            'overall_status': 'healthy',
            'components': {
                'system': self._check_system_health(),
                'database': self._check_database_health(),
                'operations': self._check_operations_health()
            }
        }

        component_statuses = [comp['status'] for comp in health_status['components'].values()]
        if 'critical' in component_statuses:
            health_status['overall_status'] = 'critical'
        elif 'warning' in component_statuses:
            health_status['overall_status'] = 'warning'

        return health_status

    def _check_system_health(self) -> Dict[str, Any]:
        cpu_usage = psutil.cpu_percent(interval=None)
        memory_usage = psutil.virtual_memory().percent

        status = 'healthy'
        issues = []

        if memory_usage > 95:
            status = 'critical'
            issues.append(f"Memory usage critical: {memory_usage:.1f}%")
        elif memory_usage > 85:
            status = 'warning'
            issues.append(f"Memory usage high: {memory_usage:.1f}%")

        if cpu_usage > 90 and status != 'critical':
            status = 'warning'
            issues.append(f"CPU usage high: {cpu_usage:.1f}%")

        return {
            'status': status,
            'cpu_usage': cpu_usage,
            'memory_usage': memory_usage,
            'issues': issues
        }

    def _check_database_health(self) -> Dict[str, Any]:
        try:
            self.db_manager.check_connection()
        except Exception as e:
            logging.getLogger(__name__).error(f"Database health check failed: {e}")
            return {'status': 'critical', 'issues': [f"Database error: {e}"]}

        size_mb = 0.0
        if os.path.exists(self.db_manager.db_path):
            size_mb = os.path.getsize(self.db_manager.db_path) / (1024 * 1024)
        return {'status': 'healthy', 'size_mb': size_mb, 'issues': []}

    def _check_operations_health(self) -> Dict[str, Any]:
        metrics = self.metrics_collector.get_metrics()

        status = 'healthy'
        issues = []
        if metrics['success_rate'] < 80:
            status = 'warning'
            issues.append(f"Success rate low: {metrics['success_rate']:.1f}%")

        return {
            'status': status,
            'success_rate': metrics['success_rate'],
            'avg_response_time': metrics['avg_response_time'],
            'issues': issues
        }
