"""Runtime value model.

Structure:
    core.py       - Bool, Long, String, SetValue, Record, EntityRef, EntityUID
    extension.py  - IPAddr, UInt256, Datetime, Duration
    compare.py    - Equality, ordering and range checks

`Value` is the closed union of all value kinds. Code dispatching on a value
handles every member of the union, with a TypeMismatch for the rest.
"""

from typing import Union

from cedar_acp.values.core import (
    FALSE,
    TRUE,
    Bool,
    EntityRef,
    EntityUID,
    Long,
    Record,
    SetValue,
    String,
)
from cedar_acp.values.extension import UINT256_MAX, Datetime, Duration, IPAddr, UInt256
from cedar_acp.values.compare import (
    LONG_MAX,
    LONG_MIN,
    check_long,
    compare,
    expect,
    type_name,
    values_equal,
)

Value = Union[Bool, Long, String, SetValue, Record, EntityRef, IPAddr, UInt256, Datetime, Duration]

__all__ = [
    # Union
    "Value",
    # Base kinds
    "Bool",
    "EntityRef",
    "EntityUID",
    "FALSE",
    "Long",
    "Record",
    "SetValue",
    "String",
    "TRUE",
    # Extension kinds
    "Datetime",
    "Duration",
    "IPAddr",
    "UINT256_MAX",
    "UInt256",
    # Comparison
    "LONG_MAX",
    "LONG_MIN",
    "check_long",
    "compare",
    "expect",
    "type_name",
    "values_equal",
]
