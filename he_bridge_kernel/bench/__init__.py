"""Benchmark harness for the encrypted drivers."""

from .harness import (
    BenchmarkConfig,
    BenchmarkResult,
    CASES,
    format_duration,
    format_table,
    run_benchmark,
    run_sweep,
    summarize,
)

__all__ = [
    'BenchmarkConfig',
    'BenchmarkResult',
    'CASES',
    'format_duration',
    'format_table',
    'run_benchmark',
    'run_sweep',
    'summarize',
]
