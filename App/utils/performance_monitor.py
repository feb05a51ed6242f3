"""
Performance monitoring utilities for the group assignment service.
Records operation counts and durations and logs slow operations with structured fields.
"""

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional

from flask import g, has_request_context

logger = logging.getLogger(__name__)


def _request_fields() -> Dict[str, Any]:
    if not has_request_context():
        return {}
    return {'request_id': getattr(g, 'request_id', None)}


class MetricsCollector:
    """In-process metrics for monitored operations"""

    def __init__(self):
        self.metrics = {}

    def record_operation(self, operation: str, duration: float, success: bool = True, **metadata):
        key = f"operation.{operation}"

        entry = self.metrics.setdefault(key, {
            'count': 0,
            'total_duration': 0.0,
            'success_count': 0,
            'error_count': 0,
            'avg_duration': 0.0,
            'last_executed': None,
        })
        entry['count'] += 1
        entry['total_duration'] += duration
        entry['avg_duration'] = entry['total_duration'] / entry['count']
        entry['last_executed'] = datetime.utcnow().isoformat()

        if success:
            entry['success_count'] += 1
        else:
            entry['error_count'] += 1
            if 'error' in metadata:
                entry['last_error'] = metadata['error']

    def get_metrics(self) -> Dict[str, Any]:
        return {key: dict(value) for key, value in self.metrics.items()}

    def get_operation_metrics(self, operation: str) -> Optional[Dict[str, Any]]:
        return self.metrics.get(f"operation.{operation}")

    def reset(self):
        self.metrics.clear()


metrics_collector = MetricsCollector()


def performance_monitor(operation_name: str, log_slow_threshold: float = 1.0):
    """
    Decorator to record duration/success metrics and log slow operations

    Args:
        operation_name: Name of the operation for metrics
        log_slow_threshold: Threshold in seconds above which the operation is logged as slow
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            success = True
            error_msg = None

            try:
                return func(*args, **kwargs)

            except Exception as e:
                success = False
                error_msg = str(e)
                logger.error(
                    f"Operation {operation_name} failed",
                    extra={
                        'event': 'operation_failed',
                        'operation': operation_name,
                        'error': error_msg,
                        'function': func.__name__,
                        **_request_fields(),
                    },
                )
                raise

            finally:
                duration = time.time() - start_time
                metadata = {'function': func.__name__}
                if error_msg:
                    metadata['error'] = error_msg
                metrics_collector.record_operation(operation_name, duration, success, **metadata)

                fields = {
                    'operation': operation_name,
                    'duration_seconds': round(duration, 3),
                    'function': func.__name__,
                    'success': success,
                    **_request_fields(),
                }
                if duration > log_slow_threshold:
                    logger.warning(
                        f"SLOW OPERATION: {operation_name}",
                        extra={'event': 'operation_slow', **fields},
                    )
                else:
                    logger.debug(
                        f"Operation completed: {operation_name}",
                        extra={'event': 'operation_completed', **fields},
                    )

        return wrapper
    return decorator


@contextmanager
def database_transaction_context(operation_name: str):
    """
    Commit on success, roll back and re-raise on failure

    Usage:
        with database_transaction_context("save_assignment"):
            db.session.add(record)
    """
    from App.database import db

    start_time = time.time()

    try:
        yield
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        duration = time.time() - start_time
        logger.error(
            f"Database transaction failed: {operation_name}",
            extra={
                'event': 'db_transaction_failed',
                'operation': operation_name,
                'error': str(e),
                'duration_seconds': round(duration, 3),
                **_request_fields(),
            },
        )
        metrics_collector.record_operation(
            f"db_transaction.{operation_name}", duration, success=False, error=str(e)
        )
        raise

    duration = time.time() - start_time
    metrics_collector.record_operation(f"db_transaction.{operation_name}", duration, success=True)
    logger.info(
        f"Database transaction committed: {operation_name}",
        extra={
            'event': 'db_transaction_committed',
            'operation': operation_name,
            'duration_seconds': round(duration, 3),
            **_request_fields(),
        },
    )


def get_performance_summary() -> Dict[str, Any]:
    """Summarise collected metrics per operation"""
    operations = []
    for key, data in metrics_collector.get_metrics().items():
        if not key.startswith('operation.'):
            continue
        count = data.get('count', 0)
        operations.append({
            'name': key[len('operation.'):],
            'count': count,
            'avg_duration': data.get('avg_duration', 0.0),
            'error_count': data.get('error_count', 0),
            'success_rate': data.get('success_count', 0) / max(count, 1) * 100,
        })

    operations.sort(key=lambda op: op['count'], reverse=True)
    db_ops = [op for op in operations if op['name'].startswith('db_transaction.')]

    return {
        'timestamp': datetime.utcnow().isoformat(),
        'total_operations': sum(op['count'] for op in operations),
        'slow_operations': [op['name'] for op in operations if op['avg_duration'] > 2.0],
        'error_operations': [op['name'] for op in operations if op['error_count'] > 0],
        'most_frequent_operations': operations[:10],
        'database_operations': {
            'total_transactions': sum(op['count'] for op in db_ops),
            'failed_transactions': sum(op['error_count'] for op in db_ops),
        },
    }
