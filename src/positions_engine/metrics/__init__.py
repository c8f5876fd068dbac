"""Prometheus metrics for ledger updates and equity evaluations."""

from .core import start_server_safe
from .ledger import record_eval_failure, record_evaluation, record_realized, record_trade

__all__ = ["record_eval_failure", "record_evaluation", "record_realized", "record_trade", "start_server_safe"]
