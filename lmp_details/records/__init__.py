"""Invocation and LMP version records."""

from lmp_details.records.invocations import InvocationRecord, Invocations
from lmp_details.records.lmps import LMP, parse_lmp_list

__all__ = [
    "LMP",
    "InvocationRecord",
    "Invocations",
    "parse_lmp_list",
]
