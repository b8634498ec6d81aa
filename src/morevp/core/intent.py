"""
Transaction intents.

Each intent carries what the caller asked for, and checks the rules that
do not depend on resolved UTXOs. Those checks run before any network or
signing work.
"""

from dataclasses import dataclass, field
from typing import Tuple, Union

from morevp.core.transaction import MAX_INPUTS, MAX_OUTPUTS
from morevp.core.utxo import normalize_address
from morevp.errors import InputValidationError, InvalidInputCount, InvalidOutputCount


MIN_SPLIT_OUTPUTS = 2
MIN_MERGE_INPUTS = 2


@dataclass(frozen=True)
class Transfer:
    """Send `amount` from one UTXO to `to_owner`, returning any change."""

    private_key: str = field(repr=False)
    from_position: int
    to_owner: str
    amount: int

    @property
    def positions(self) -> Tuple[int, ...]:
        return (self.from_position,)

    def validate(self) -> None:
        normalize_address(self.to_owner, "destination owner")
        _check_position(self.from_position)
        if self.amount <= 0:
            raise InputValidationError(f"Transfer amount must be positive, got {self.amount}")


@dataclass(frozen=True)
class Split:
    """Split one UTXO into `outputs` UTXOs owned by `to_owner`."""

    private_key: str = field(repr=False)
    from_position: int
    to_owner: str
    outputs: int

    @property
    def positions(self) -> Tuple[int, ...]:
        return (self.from_position,)

    def validate(self) -> None:
        normalize_address(self.to_owner, "destination owner")
        _check_position(self.from_position)
        if not MIN_SPLIT_OUTPUTS <= self.outputs <= MAX_OUTPUTS:
            raise InvalidOutputCount(
                f"Split needs {MIN_SPLIT_OUTPUTS} to {MAX_OUTPUTS} outputs, got {self.outputs}"
            )


@dataclass(frozen=True)
class Merge:
    """Combine several UTXOs of one owner and currency into a single UTXO."""

    private_key: str = field(repr=False)
    from_positions: Tuple[int, ...]

    @property
    def positions(self) -> Tuple[int, ...]:
        return tuple(self.from_positions)

    def validate(self) -> None:
        count = len(self.from_positions)
        if not MIN_MERGE_INPUTS <= count <= MAX_INPUTS:
            raise InvalidInputCount(
                f"Merge needs {MIN_MERGE_INPUTS} to {MAX_INPUTS} inputs, got {count}"
            )
        for position in self.from_positions:
            _check_position(position)
        if len(set(self.from_positions)) != count:
            raise InputValidationError("Merge positions must be distinct")


TransactionIntent = Union[Transfer, Split, Merge]


def _check_position(position: int) -> None:
    if position <= 0:
        raise InputValidationError(f"UTXO position must be positive, got {position}")
