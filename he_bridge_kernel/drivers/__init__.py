"""
Algorithm drivers built on compare / lift / select.

Each driver has a plaintext counterpart in ``reference`` and a
``required_depth`` helper for provisioning the modulus chain.
"""

from .base import Driver, DriverResult
from .decision_tree import (
    DecisionTree,
    DecisionTreeEvaluator,
    EncryptedTree,
    encrypt_features,
    encrypt_tree,
)
from .floyd_warshall import (
    FloydWarshall,
    adjacency_matrix,
    check_infinity,
    default_infinity,
    encrypt_matrix,
)
from .range_filter import (
    EMPLOYEE_PREDICATES,
    RangeFilter,
    RangePredicate,
    employee_query_depth,
    generate_employee_rows,
    run_employee_query,
)
from .sorting import RankSorter
from .workloads import Workload, WorkloadRunner, run_workload

__all__ = [
    'DecisionTree',
    'DecisionTreeEvaluator',
    'Driver',
    'DriverResult',
    'EMPLOYEE_PREDICATES',
    'EncryptedTree',
    'FloydWarshall',
    'RangeFilter',
    'RangePredicate',
    'RankSorter',
    'Workload',
    'WorkloadRunner',
    'adjacency_matrix',
    'check_infinity',
    'default_infinity',
    'employee_query_depth',
    'encrypt_features',
    'encrypt_matrix',
    'encrypt_tree',
    'generate_employee_rows',
    'run_employee_query',
    'run_workload',
]
