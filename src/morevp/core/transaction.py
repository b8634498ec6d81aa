"""
Plasma transaction model and canonical encoding.

A transaction spends up to four UTXOs and creates up to four outputs. The
canonical encoding always carries four input and four output slots, with
unused slots zero-filled, so that the signed bytes only depend on the
supplied inputs and outputs and their order.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import rlp
from eth_utils import keccak, to_canonical_address

from morevp.config import ETH_CURRENCY
from morevp.core.utxo import UTXO, encode_utxo_pos
from morevp.errors import InputValidationError, InvalidInputCount, InvalidOutputCount


MAX_INPUTS = 4
MAX_OUTPUTS = 4

SIGNATURE_LENGTH = 65

_NULL_ADDRESS = b"\x00" * 20
_EMPTY_INPUT = [0, 0, 0]
_EMPTY_OUTPUT = [_NULL_ADDRESS, _NULL_ADDRESS, 0]


@dataclass(frozen=True)
class TransactionInput:
    """Reference to the UTXO being spent."""
    blknum: int
    txindex: int
    oindex: int

    @classmethod
    def from_utxo(cls, utxo: UTXO) -> "TransactionInput":
        return cls(utxo.blknum, utxo.txindex, utxo.oindex)

    @property
    def position(self) -> int:
        return encode_utxo_pos(self.blknum, self.txindex, self.oindex)

    def to_rlp(self) -> list:
        return [self.blknum, self.txindex, self.oindex]


@dataclass(frozen=True)
class TransactionOutput:
    """New UTXO created by a transaction."""
    owner: str
    currency: str
    amount: int

    def to_rlp(self) -> list:
        return [
            to_canonical_address(self.owner),
            to_canonical_address(self.currency),
            self.amount,
        ]


@dataclass(frozen=True)
class Transaction:
    """
    Unsigned plasma transaction.

    Attributes:
        inputs: Ordered UTXO references (at most 4)
        outputs: Ordered outputs (at most 4)
    """

    inputs: Tuple[TransactionInput, ...]
    outputs: Tuple[TransactionOutput, ...]

    @classmethod
    def deposit(cls, owner: str, currency: str, amount: int) -> "Transaction":
        """Create the zero-input transaction submitted with a root chain deposit."""
        if amount <= 0:
            raise InputValidationError(f"Deposit amount must be positive, got {amount}")
        return cls(inputs=(), outputs=(TransactionOutput(owner, currency, amount),))

    @property
    def is_deposit(self) -> bool:
        return not self.inputs

    def validate(self, spent: Optional[Sequence[UTXO]] = None) -> None:
        """
        Check the structural and value-conservation rules.

        Args:
            spent: UTXOs referenced by the inputs, in input order. When given,
                per-currency conservation is enforced against them.

        Raises:
            InvalidInputCount: If there are no inputs or more than MAX_INPUTS
            InvalidOutputCount: If there are no outputs or more than MAX_OUTPUTS
            InputValidationError: On non-positive outputs, unknown output
                currencies or unbalanced amounts
        """
        if not 1 <= len(self.inputs) <= MAX_INPUTS:
            raise InvalidInputCount(
                f"Transaction needs 1 to {MAX_INPUTS} inputs, got {len(self.inputs)}"
            )
        if not 1 <= len(self.outputs) <= MAX_OUTPUTS:
            raise InvalidOutputCount(
                f"Transaction needs 1 to {MAX_OUTPUTS} outputs, got {len(self.outputs)}"
            )

        positions = [i.position for i in self.inputs]
        if len(set(positions)) != len(positions):
            raise InputValidationError("Transaction spends the same UTXO twice")

        for output in self.outputs:
            if output.amount <= 0:
                raise InputValidationError(
                    f"Output amounts must be positive, got {output.amount}"
                )

        if spent is None:
            return

        if [u.position for u in spent] != positions:
            raise InputValidationError("Spent UTXOs do not match transaction inputs")

        totals_in = _sum_by_currency((u.currency, u.amount) for u in spent)
        totals_out = _sum_by_currency((o.currency, o.amount) for o in self.outputs)

        for currency in totals_out:
            if currency not in totals_in:
                raise InputValidationError(
                    f"Output currency {currency} does not appear in the inputs"
                )
        for currency, amount_in in totals_in.items():
            amount_out = totals_out.get(currency, 0)
            if amount_in != amount_out:
                raise InputValidationError(
                    f"Unbalanced transaction for {currency}: "
                    f"inputs {amount_in} != outputs {amount_out}"
                )

    def to_rlp(self) -> list:
        """Fixed-width structure: four input slots then four output slots."""
        inputs = [i.to_rlp() for i in self.inputs]
        inputs += [list(_EMPTY_INPUT)] * (MAX_INPUTS - len(inputs))
        outputs = [o.to_rlp() for o in self.outputs]
        outputs += [list(_EMPTY_OUTPUT)] * (MAX_OUTPUTS - len(outputs))
        return [inputs, outputs]

    def encode(self) -> bytes:
        """Canonical RLP encoding of the transaction."""
        return rlp.encode(self.to_rlp())

    def hash(self) -> bytes:
        """Keccak-256 hash of the canonical encoding."""
        return keccak(self.encode())


@dataclass(frozen=True)
class SignedTransaction:
    """Transaction plus the owner's 65 byte r||s||v signature."""

    transaction: Transaction
    signature: bytes

    def __post_init__(self):
        if len(self.signature) != SIGNATURE_LENGTH:
            raise InputValidationError(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(self.signature)}"
            )

    def encode(self) -> bytes:
        """RLP of [signatures, inputs, outputs], one signature per input."""
        sigs = [self.signature] * len(self.transaction.inputs)
        return rlp.encode([sigs] + self.transaction.to_rlp())

    def to_hex(self) -> str:
        return "0x" + self.encode().hex()


def _sum_by_currency(pairs) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for currency, amount in pairs:
        totals[currency.lower()] += amount
    return dict(totals)


def is_eth(currency: str) -> bool:
    return currency.lower() == ETH_CURRENCY
