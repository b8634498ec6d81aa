"""
Transaction Builder - constructs balanced plasma transactions.

Turns a Transfer, Split or Merge intent plus the UTXOs it spends into a
Transaction that satisfies the input/output count and value-conservation
rules. Building is pure: no network access and no signing.
"""

from typing import List, Sequence

import structlog

from morevp.core.intent import Merge, Split, Transfer, TransactionIntent
from morevp.core.transaction import Transaction, TransactionInput, TransactionOutput
from morevp.core.utxo import UTXO, normalize_address, normalize_currency
from morevp.errors import (
    CurrencyMismatch,
    InputValidationError,
    InsufficientFunds,
    InvalidInputCount,
)

logger = structlog.get_logger(__name__)


def split_amount(amount: int, parts: int) -> List[int]:
    """
    Partition `amount` into `parts` shares.

    Every share gets amount // parts and the first share also takes the
    remainder, so the result is deterministic and sums to `amount`.
    """
    share, remainder = divmod(amount, parts)
    return [share + remainder] + [share] * (parts - 1)


class TransactionBuilder:
    """
    Builds transactions from intents.

    Each intent variant has its own rule set; all of them finish with
    Transaction.validate against the spent UTXOs.
    """

    def build(
        self,
        intent: TransactionIntent,
        utxos: Sequence[UTXO],
        owner: str,
    ) -> Transaction:
        """
        Build a transaction for an intent.

        Args:
            intent: Transfer, Split or Merge request
            utxos: Resolved UTXOs, in the intent's position order
            owner: Address of the key that will sign

        Returns:
            Unsigned, validated transaction

        Raises:
            InputValidationError: If the intent cannot be satisfied by the UTXOs
        """
        intent.validate()
        owner = normalize_address(owner, "owner")

        if [u.position for u in utxos] != list(intent.positions):
            raise InputValidationError("Resolved UTXOs do not match the requested positions")

        for utxo in utxos:
            if utxo.owner != owner:
                raise InputValidationError(
                    f"UTXO {utxo.position} is owned by {utxo.owner}, not {owner}"
                )

        if isinstance(intent, Transfer):
            tx = self._build_transfer(intent, utxos)
        elif isinstance(intent, Split):
            tx = self._build_split(intent, utxos)
        elif isinstance(intent, Merge):
            tx = self._build_merge(utxos, owner)
        else:
            raise InputValidationError(f"Unsupported intent: {type(intent).__name__}")

        tx.validate(utxos)

        logger.debug(
            "transaction_built",
            intent=type(intent).__name__,
            inputs=len(tx.inputs),
            outputs=len(tx.outputs),
        )
        return tx

    def _build_transfer(self, intent: Transfer, utxos: Sequence[UTXO]) -> Transaction:
        utxo = _single_input(utxos)
        to_owner = normalize_address(intent.to_owner, "destination owner")

        if intent.amount > utxo.amount:
            raise InsufficientFunds(
                f"Cannot send {intent.amount} from UTXO {utxo.position} holding {utxo.amount}"
            )

        outputs = [TransactionOutput(to_owner, utxo.currency, intent.amount)]
        change = utxo.amount - intent.amount
        if change > 0:
            outputs.append(TransactionOutput(utxo.owner, utxo.currency, change))

        return Transaction(
            inputs=(TransactionInput.from_utxo(utxo),),
            outputs=tuple(outputs),
        )

    def _build_split(self, intent: Split, utxos: Sequence[UTXO]) -> Transaction:
        utxo = _single_input(utxos)
        to_owner = normalize_address(intent.to_owner, "destination owner")

        if utxo.amount < intent.outputs:
            raise InputValidationError(
                f"UTXO {utxo.position} holding {utxo.amount} cannot be split "
                f"into {intent.outputs} non-zero outputs"
            )

        outputs = tuple(
            TransactionOutput(to_owner, utxo.currency, share)
            for share in split_amount(utxo.amount, intent.outputs)
        )
        return Transaction(
            inputs=(TransactionInput.from_utxo(utxo),),
            outputs=outputs,
        )

    def _build_merge(self, utxos: Sequence[UTXO], owner: str) -> Transaction:
        currencies = {u.currency for u in utxos}
        if len(currencies) != 1:
            raise CurrencyMismatch(
                f"Merge inputs span {len(currencies)} currencies: {sorted(currencies)}"
            )

        currency = currencies.pop()
        total = sum(u.amount for u in utxos)

        return Transaction(
            inputs=tuple(TransactionInput.from_utxo(u) for u in utxos),
            outputs=(TransactionOutput(owner, currency, total),),
        )

    def build_deposit(self, owner: str, amount: int, currency: str) -> Transaction:
        """Build the zero-input transaction that accompanies a root chain deposit."""
        return Transaction.deposit(
            normalize_address(owner, "owner"),
            normalize_currency(currency),
            amount,
        )


def _single_input(utxos: Sequence[UTXO]) -> UTXO:
    if len(utxos) != 1:
        raise InvalidInputCount(f"Expected exactly one input UTXO, got {len(utxos)}")
    return utxos[0]
