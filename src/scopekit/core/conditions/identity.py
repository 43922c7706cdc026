"""Content addressing for condition trees.

Two notions of identity are provided:

- ``condition_id`` is a structural tree hash used for equality, deduplication
  and canonical ordering inside the engine.
- ``condition_address`` is the CREATE2 address under which the on-chain
  system stores a condition's packed bytecode. It must stay bit-exact with
  the deployed contracts, so any change here invalidates stored conditions.
"""

from collections import deque
from dataclasses import dataclass

from Crypto.Hash import keccak

from scopekit.core.config import get_settings

from .exceptions import ConditionIntegrityError
from .model import Condition, Operator, ParameterType, has_comp_value

# 8 bits -> parent, 3 bits -> param type, 5 bits -> operator
OFFSET_PARENT = 8
OFFSET_PARAM_TYPE = 5
OFFSET_OPERATOR = 0

# PUSH4 <size> DUP1 PUSH1 0x0e PUSH1 0 CODECOPY PUSH1 0 RETURN, then a STOP byte
INIT_CODE_PREFIX = bytes.fromhex("63")
INIT_CODE_COPY_RETURN = bytes.fromhex("80600E6000396000F3")
INIT_CODE_STOP = bytes.fromhex("00")


@dataclass
class ConditionFlat:
    """A condition node in breadth-first order, pointing at its parent's index."""

    parent: int
    param_type: ParameterType
    operator: Operator
    comp_value: bytes | None = None


def condition_id(condition: Condition) -> str:
    """Return the 0x-prefixed structural hash of a condition."""
    return condition.id


def keccak256(data: bytes) -> bytes:
    """Ethereum's keccak256 (not the NIST SHA3 variant)."""
    return keccak.new(data=data, digest_bits=256).digest()


def flatten_condition(root: Condition) -> list[ConditionFlat]:
    """Flatten a condition tree breadth-first.

    The root is its own parent (index 0).
    """
    result: list[ConditionFlat] = []
    queue: deque[tuple[Condition, int]] = deque([(root, 0)])
    while queue:
        condition, parent = queue.popleft()
        index = len(result)
        result.append(
            ConditionFlat(
                parent=parent,
                param_type=condition.param_type,
                operator=condition.operator,
                comp_value=condition.comp_value,
            )
        )
        queue.extend((child, index) for child in condition.children)
    return result


def condition_address(
    condition: Condition,
    factory: str | None = None,
    salt: str | None = None,
) -> str:
    """Calculate the CREATE2 storage address of a condition.

    The condition is expected to be normalized already; equivalent but
    differently shaped trees resolve to different addresses.

    Args:
        condition: Condition tree to address.
        factory: Deployer address. Defaults to the configured singleton factory.
        salt: 32-byte hex salt. Defaults to the configured salt.

    Returns:
        Lower-case 0x-prefixed address.

    Raises:
        ConditionIntegrityError: If a comparison operand is missing or malformed.
    """
    settings = get_settings()
    factory_bytes = bytes.fromhex((factory or settings.singleton_factory_address)[2:])
    salt_bytes = bytes.fromhex((salt or settings.create2_salt)[2:])

    conditions = flatten_condition(condition)
    _remove_extraneous_offsets(conditions)

    packed = b"".join(_pack_condition(c) for c in conditions) + b"".join(
        _pack_comp_value(c) for c in conditions
    )
    init_code_hash = keccak256(_init_code_for(packed))
    digest = keccak256(b"\xff" + factory_bytes + salt_bytes + init_code_hash)
    return "0x" + digest[12:].hex()


def _pack_condition(condition: ConditionFlat) -> bytes:
    value = (
        (condition.parent << OFFSET_PARENT)
        | (condition.param_type << OFFSET_PARAM_TYPE)
        | (condition.operator << OFFSET_OPERATOR)
    )
    length = max(2, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, "big")


def _pack_comp_value(condition: ConditionFlat) -> bytes:
    if not has_comp_value(condition.operator):
        return b""
    if not condition.comp_value:
        raise ConditionIntegrityError(
            f"compValue is required for operator {condition.operator.name}"
        )

    if condition.operator == Operator.EQUAL_TO:
        return keccak256(condition.comp_value)

    if len(condition.comp_value) != 32:
        raise ConditionIntegrityError(
            f"compValue for operator {condition.operator.name} must be 32 bytes, "
            f"got {len(condition.comp_value)}"
        )
    return condition.comp_value


def _remove_extraneous_offsets(conditions: list[ConditionFlat]) -> None:
    """Drop the leading offset word from EqualTo operands of non-inline values."""
    for i, condition in enumerate(conditions):
        if (
            condition.comp_value
            and condition.operator == Operator.EQUAL_TO
            and not _is_inline(conditions, i)
        ):
            condition.comp_value = condition.comp_value[32:]


def _is_inline(conditions: list[ConditionFlat], index: int) -> bool:
    param_type = conditions[index].param_type
    if param_type == ParameterType.STATIC:
        return True
    if param_type == ParameterType.TUPLE:
        for j in range(index + 1, len(conditions)):
            parent = conditions[j].parent
            if parent < index:
                continue
            if parent > index:
                break
            if not _is_inline(conditions, j):
                return False
        return True
    return False


def _init_code_for(bytecode: bytes) -> bytes:
    return (
        INIT_CODE_PREFIX
        + (len(bytecode) + 1).to_bytes(4, "big")
        + INIT_CODE_COPY_RETURN
        + INIT_CODE_STOP
        + bytecode
    )
