"""
Test suite for transaction construction.

Covers the Transfer, Split and Merge rule sets, the conservation
invariant and the canonical encoding.
"""

import pytest
import rlp

from morevp.config import ETH_CURRENCY
from morevp.core.intent import Merge, Split, Transfer
from morevp.core.transaction import (
    Transaction,
    TransactionInput,
    TransactionOutput,
)
from morevp.errors import (
    CurrencyMismatch,
    InputValidationError,
    InsufficientFunds,
    InvalidInputCount,
    InvalidOutputCount,
)
from morevp.tx.builder import TransactionBuilder, split_amount

from conftest import OTHER, OWNER, OWNER_KEY, TOKEN, make_utxo


@pytest.fixture
def builder() -> TransactionBuilder:
    return TransactionBuilder()


def _amounts(tx: Transaction):
    return [o.amount for o in tx.outputs]


def _totals(tx: Transaction):
    totals = {}
    for output in tx.outputs:
        totals[output.currency] = totals.get(output.currency, 0) + output.amount
    return totals


# ============================================================================
# Test Transfer
# ============================================================================

class TestTransfer:
    """Tests for the Transfer rule set."""

    def test_transfer_with_change(self, builder, eth_utxo):
        """Test 100 ETH input, send 60: 60 to new owner and 40 back."""
        intent = Transfer(OWNER_KEY, eth_utxo.position, OTHER, 60)

        tx = builder.build(intent, [eth_utxo], OWNER)

        assert tx.outputs == (
            TransactionOutput(OTHER, ETH_CURRENCY, 60),
            TransactionOutput(OWNER, ETH_CURRENCY, 40),
        )
        assert tx.inputs == (TransactionInput(1000, 0, 0),)

    def test_transfer_exact_amount(self, builder, eth_utxo):
        """Test that sending the full amount produces no change output."""
        intent = Transfer(OWNER_KEY, eth_utxo.position, OTHER, 100)

        tx = builder.build(intent, [eth_utxo], OWNER)

        assert tx.outputs == (TransactionOutput(OTHER, ETH_CURRENCY, 100),)

    def test_transfer_insufficient_funds(self, builder, eth_utxo):
        intent = Transfer(OWNER_KEY, eth_utxo.position, OTHER, 101)

        with pytest.raises(InsufficientFunds):
            builder.build(intent, [eth_utxo], OWNER)

    @pytest.mark.parametrize("amount", [0, -5])
    def test_transfer_non_positive_amount(self, amount):
        intent = Transfer(OWNER_KEY, 1_000_000_000, OTHER, amount)

        with pytest.raises(InputValidationError):
            intent.validate()

    def test_transfer_conserves_value(self, builder):
        """Test per-currency conservation over several transfer amounts."""
        utxo = make_utxo(7, 1_000, currency=TOKEN)
        for amount in (1, 250, 999, 1_000):
            tx = builder.build(Transfer(OWNER_KEY, utxo.position, OTHER, amount), [utxo], OWNER)
            assert _totals(tx) == {TOKEN: 1_000}

    def test_transfer_bad_destination(self):
        with pytest.raises(InputValidationError):
            Transfer(OWNER_KEY, 1_000_000_000, "0xnothex", 1).validate()

    def test_input_not_owned_by_signer(self, builder):
        utxo = make_utxo(1000, 100, owner=OTHER)
        intent = Transfer(OWNER_KEY, utxo.position, OTHER, 10)

        with pytest.raises(InputValidationError, match="owned by"):
            builder.build(intent, [utxo], OWNER)

    def test_resolved_utxo_mismatch(self, builder, eth_utxo):
        intent = Transfer(OWNER_KEY, 2_000_000_000, OTHER, 10)

        with pytest.raises(InputValidationError, match="do not match"):
            builder.build(intent, [eth_utxo], OWNER)

    def test_private_key_not_in_repr(self):
        intent = Transfer(OWNER_KEY, 1_000_000_000, OTHER, 10)
        assert OWNER_KEY not in repr(intent)


# ============================================================================
# Test Split
# ============================================================================

class TestSplit:
    """Tests for the Split rule set."""

    def test_split_four_ways(self, builder, eth_utxo):
        """Test 100 split into 4 gives four outputs of 25 to the destination."""
        tx = builder.build(Split(OWNER_KEY, eth_utxo.position, OTHER, 4), [eth_utxo], OWNER)

        assert _amounts(tx) == [25, 25, 25, 25]
        assert {o.owner for o in tx.outputs} == {OTHER}

    def test_split_remainder_goes_first(self, builder, eth_utxo):
        tx = builder.build(Split(OWNER_KEY, eth_utxo.position, OWNER, 3), [eth_utxo], OWNER)

        assert _amounts(tx) == [34, 33, 33]

    @pytest.mark.parametrize("outputs", [0, 1, 5])
    def test_split_invalid_output_count(self, outputs):
        with pytest.raises(InvalidOutputCount):
            Split(OWNER_KEY, 1_000_000_000, OTHER, outputs).validate()

    def test_split_amount_too_small(self, builder):
        utxo = make_utxo(1000, 3)

        with pytest.raises(InputValidationError, match="non-zero"):
            builder.build(Split(OWNER_KEY, utxo.position, OTHER, 4), [utxo], OWNER)

    @pytest.mark.parametrize("amount,parts", [(100, 2), (7, 3), (10 ** 18 + 1, 4), (4, 4)])
    def test_split_amount_sums_to_input(self, amount, parts):
        shares = split_amount(amount, parts)

        assert sum(shares) == amount
        assert len(shares) == parts
        assert shares == split_amount(amount, parts)


# ============================================================================
# Test Merge
# ============================================================================

class TestMerge:
    """Tests for the Merge rule set."""

    def test_merge_two_inputs(self, builder):
        """Test 40 ETH + 60 ETH merge into one 100 ETH output."""
        first, second = make_utxo(1000, 40), make_utxo(2000, 60)
        intent = Merge(OWNER_KEY, (first.position, second.position))

        tx = builder.build(intent, [first, second], OWNER)

        assert tx.outputs == (TransactionOutput(OWNER, ETH_CURRENCY, 100),)
        assert [i.blknum for i in tx.inputs] == [1000, 2000]

    def test_merge_keeps_input_order(self, builder):
        utxos = [make_utxo(3000, 1), make_utxo(1000, 2), make_utxo(2000, 3)]
        intent = Merge(OWNER_KEY, tuple(u.position for u in utxos))

        tx = builder.build(intent, utxos, OWNER)

        assert [i.blknum for i in tx.inputs] == [3000, 1000, 2000]

    def test_merge_currency_mismatch(self, builder):
        """Test that ETH and token inputs cannot be merged."""
        eth, token = make_utxo(1000, 40), make_utxo(2000, 10, currency=TOKEN)
        intent = Merge(OWNER_KEY, (eth.position, token.position))

        with pytest.raises(CurrencyMismatch):
            builder.build(intent, [eth, token], OWNER)

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_merge_invalid_input_count(self, count):
        positions = tuple((i + 1) * 1_000_000_000 for i in range(count))

        with pytest.raises(InvalidInputCount):
            Merge(OWNER_KEY, positions).validate()

    def test_merge_duplicate_positions(self):
        with pytest.raises(InputValidationError, match="distinct"):
            Merge(OWNER_KEY, (1_000_000_000, 1_000_000_000)).validate()

    def test_merge_four_inputs(self, builder):
        utxos = [make_utxo(b, 10 * b) for b in (1, 2, 3, 4)]
        intent = Merge(OWNER_KEY, tuple(u.position for u in utxos))

        tx = builder.build(intent, utxos, OWNER)

        assert _amounts(tx) == [100]


# ============================================================================
# Test Transaction Invariants and Encoding
# ============================================================================

class TestTransactionValidation:
    """Tests for Transaction.validate."""

    def test_unbalanced_transaction_rejected(self, eth_utxo):
        tx = Transaction(
            inputs=(TransactionInput.from_utxo(eth_utxo),),
            outputs=(TransactionOutput(OTHER, ETH_CURRENCY, 99),),
        )

        with pytest.raises(InputValidationError, match="Unbalanced"):
            tx.validate([eth_utxo])

    def test_unknown_output_currency_rejected(self, eth_utxo):
        tx = Transaction(
            inputs=(TransactionInput.from_utxo(eth_utxo),),
            outputs=(
                TransactionOutput(OTHER, ETH_CURRENCY, 100),
                TransactionOutput(OTHER, TOKEN, 1),
            ),
        )

        with pytest.raises(InputValidationError, match="does not appear"):
            tx.validate([eth_utxo])

    def test_too_many_outputs(self, eth_utxo):
        tx = Transaction(
            inputs=(TransactionInput.from_utxo(eth_utxo),),
            outputs=tuple(TransactionOutput(OTHER, ETH_CURRENCY, 20) for _ in range(5)),
        )

        with pytest.raises(InvalidOutputCount):
            tx.validate()

    def test_no_inputs(self):
        tx = Transaction(inputs=(), outputs=(TransactionOutput(OTHER, ETH_CURRENCY, 1),))

        with pytest.raises(InvalidInputCount):
            tx.validate()

    def test_zero_output_rejected(self, eth_utxo):
        tx = Transaction(
            inputs=(TransactionInput.from_utxo(eth_utxo),),
            outputs=(TransactionOutput(OTHER, ETH_CURRENCY, 0),),
        )

        with pytest.raises(InputValidationError, match="positive"):
            tx.validate()


class TestCanonicalEncoding:
    """Tests for the fixed-width RLP encoding."""

    def test_slots_are_padded(self, builder, eth_utxo):
        tx = builder.build(Transfer(OWNER_KEY, eth_utxo.position, OTHER, 60), [eth_utxo], OWNER)

        inputs, outputs = rlp.decode(tx.encode())

        assert len(inputs) == 4
        assert len(outputs) == 4
        assert int.from_bytes(inputs[0][0], "big") == 1000
        assert inputs[1] == [b"", b"", b""]
        assert outputs[0][0] == bytes.fromhex(OTHER[2:])
        assert outputs[2][0] == b"\x00" * 20

    def test_encoding_depends_on_order(self):
        a, b = make_utxo(1000, 1), make_utxo(2000, 1)
        out = (TransactionOutput(OWNER, ETH_CURRENCY, 2),)

        ab = Transaction((TransactionInput.from_utxo(a), TransactionInput.from_utxo(b)), out)
        ba = Transaction((TransactionInput.from_utxo(b), TransactionInput.from_utxo(a)), out)

        assert ab.encode() != ba.encode()
        assert ab.hash() != ba.hash()

    def test_deposit_transaction(self, builder):
        tx = builder.build_deposit(OWNER, 500, "ETH")

        assert tx.is_deposit
        inputs, outputs = rlp.decode(tx.encode())
        assert all(i == [b"", b"", b""] for i in inputs)
        assert int.from_bytes(outputs[0][2], "big") == 500

    def test_deposit_requires_positive_amount(self, builder):
        with pytest.raises(InputValidationError):
            builder.build_deposit(OWNER, 0, "ETH")
