"""Shorthand constructors for condition trees.

Lets callers spell trees the way they read::

    matches(eq(1), or_(eq(2), eq(3)))

Integer operands are encoded as 32-byte ABI words. Byte operands are taken
as already encoded.
"""

from .model import Condition, Operator, ParameterType

WORD_SIZE = 32


def word(value: int | bytes) -> bytes:
    """Encode an integer as a 32-byte two's complement word."""
    if isinstance(value, bytes):
        return value
    return value.to_bytes(WORD_SIZE, "big", signed=value < 0)


def pass_(param_type: ParameterType = ParameterType.STATIC, *children: Condition) -> Condition:
    return Condition(param_type=param_type, operator=Operator.PASS, children=children)


def and_(*children: Condition) -> Condition:
    return Condition(param_type=ParameterType.NONE, operator=Operator.AND, children=children)


def or_(*children: Condition) -> Condition:
    return Condition(param_type=ParameterType.NONE, operator=Operator.OR, children=children)


def nor(*children: Condition) -> Condition:
    return Condition(param_type=ParameterType.NONE, operator=Operator.NOR, children=children)


def xor(*children: Condition) -> Condition:
    return Condition(param_type=ParameterType.NONE, operator=Operator.XOR, children=children)


def matches(
    *children: Condition, param_type: ParameterType = ParameterType.CALLDATA
) -> Condition:
    """Match positional children against the components of a call, blob or tuple."""
    return Condition(param_type=param_type, operator=Operator.MATCHES, children=children)


def every(element: Condition) -> Condition:
    return Condition(
        param_type=ParameterType.ARRAY, operator=Operator.ARRAY_EVERY, children=(element,)
    )


def some(element: Condition) -> Condition:
    return Condition(
        param_type=ParameterType.ARRAY, operator=Operator.ARRAY_SOME, children=(element,)
    )


def subset(*elements: Condition) -> Condition:
    return Condition(
        param_type=ParameterType.ARRAY, operator=Operator.ARRAY_SUBSET, children=elements
    )


def eq(
    value: int | bytes,
    param_type: ParameterType = ParameterType.STATIC,
    *children: Condition,
) -> Condition:
    """Equality on a value. Complex values pass the children describing their shape."""
    return Condition(
        param_type=param_type,
        operator=Operator.EQUAL_TO,
        comp_value=word(value),
        children=children,
    )


def avatar() -> Condition:
    return Condition(param_type=ParameterType.STATIC, operator=Operator.EQUAL_TO_AVATAR)


def gt(value: int | bytes, signed: bool = False) -> Condition:
    operator = Operator.SIGNED_INT_GREATER_THAN if signed else Operator.GREATER_THAN
    return Condition(param_type=ParameterType.STATIC, operator=operator, comp_value=word(value))


def lt(value: int | bytes, signed: bool = False) -> Condition:
    operator = Operator.SIGNED_INT_LESS_THAN if signed else Operator.LESS_THAN
    return Condition(param_type=ParameterType.STATIC, operator=operator, comp_value=word(value))


def bitmask(
    mask: bytes,
    value: bytes,
    shift: int = 0,
    param_type: ParameterType = ParameterType.STATIC,
) -> Condition:
    """Compare the bits selected by ``mask`` at byte offset ``shift``.

    Raises:
        ValueError: If shift is out of range or mask/value exceed 15 bytes.
    """
    if not 0 <= shift < 2**16:
        raise ValueError("shift is out of range, must be between 0 and 65535")
    if len(mask) > 15 or len(value) > 15:
        raise ValueError("mask and value must be at most 15 bytes")
    return Condition(
        param_type=param_type,
        operator=Operator.BITMASK,
        comp_value=shift.to_bytes(2, "big") + mask.ljust(15, b"\0") + value.ljust(15, b"\0"),
    )


def within_allowance(key: bytes) -> Condition:
    return Condition(
        param_type=ParameterType.STATIC, operator=Operator.WITHIN_ALLOWANCE, comp_value=key
    )


def ether_within_allowance(key: bytes) -> Condition:
    return Condition(
        param_type=ParameterType.NONE, operator=Operator.ETHER_WITHIN_ALLOWANCE, comp_value=key
    )


def call_within_allowance(key: bytes) -> Condition:
    return Condition(
        param_type=ParameterType.NONE, operator=Operator.CALL_WITHIN_ALLOWANCE, comp_value=key
    )
