"""Performance benchmarks for qnopt.

This package contains timing runs of the quasi-Newton solvers on standard
test objectives.
"""
