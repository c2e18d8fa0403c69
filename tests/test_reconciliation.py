from decimal import Decimal

import pytest

from xrpzip_wallet.reconciliation import (
    EMPTY_HISTORY,
    Direction,
    HistoryView,
    reconcile,
)


def _payment(**overrides):
    record = {
        "transactionType": "Payment",
        "sourceAccount": "rA",
        "destinationAccount": "rB",
        "deliveredAmount": "1000000",
        "hash": "H1",
    }
    record.update(overrides)
    return record


def test_sent_payment_scenario():
    results = reconcile([_payment()], "rA", 2.0)
    assert len(results) == 1
    txn = results[0]
    assert txn.direction is Direction.SENT
    assert txn.counterparty_address == "rB"
    assert txn.amount_major_units == Decimal("1")
    assert txn.fiat_equivalent == pytest.approx(2.0)
    assert txn.hash == "H1"


def test_received_payment_scenario():
    txn = reconcile([_payment()], "rB", 2.0)[0]
    assert txn.direction is Direction.RECEIVED
    assert txn.counterparty_address == "rA"


def test_zero_amount_is_filtered():
    record = _payment(hash="H2", nominalAmount="0")
    del record["deliveredAmount"]
    assert reconcile([record], "rA", 2.0) == []


def test_non_payment_records_are_filtered():
    records = [
        _payment(),
        {"transactionType": "TrustSet", "sourceAccount": "rA", "hash": "H9"},
        _payment(hash="H3", transactionType="payment"),
    ]
    results = reconcile(records, "rA", 2.0)
    assert [txn.hash for txn in results] == ["H1"]


def test_empty_history_is_not_an_error():
    assert reconcile([], "rA", 2.0) == []


def test_delivered_amount_wins_over_nominal_amount():
    txn = reconcile([_payment(nominalAmount="5000000", deliveredAmount="2500000")], "rA", 1.0)[0]
    assert txn.amount_major_units == Decimal("2.5")


def test_zero_delivered_amount_filters_partial_payment():
    assert reconcile([_payment(nominalAmount="5000000", deliveredAmount="0")], "rA", 1.0) == []


def test_issued_currency_has_no_fiat_equivalent():
    record = _payment(deliveredAmount={"value": "25", "currency": "USD", "issuer": "rIssuer"})
    txn = reconcile([record], "rB", 2.0)[0]
    assert txn.amount_major_units == Decimal("25")
    assert txn.currency_label == "USD"
    assert txn.issuer == "rIssuer"
    assert txn.fiat_equivalent is None


def test_malformed_records_are_skipped_without_hiding_the_rest():
    records = [
        _payment(hash="H1"),
        _payment(hash="H2", destinationAccount=None),
        _payment(hash="H3", deliveredAmount=["weird"]),
        "garbage",
        {"transactionType": "Payment"},
        _payment(hash="H4"),
    ]
    results = reconcile(records, "rA", 1.0)
    assert [txn.hash for txn in results] == ["H1", "H4"]


def test_duplicate_hashes_keep_first_occurrence():
    records = [_payment(hash="H1", deliveredAmount="1000000"), _payment(hash="H1", deliveredAmount="3000000")]
    results = reconcile(records, "rA", 1.0)
    assert len(results) == 1
    assert results[0].amount_major_units == Decimal("1")


def test_order_is_preserved_and_direction_follows_owner():
    records = [
        _payment(hash="N3", sourceAccount="rC", destinationAccount="rA"),
        _payment(hash="N2", nominalAmount="0", deliveredAmount=None),
        _payment(hash="N1"),
    ]
    results = reconcile(records, "rA", 3.0)
    assert [txn.hash for txn in results] == ["N3", "N1"]
    assert [txn.direction for txn in results] == [Direction.RECEIVED, Direction.SENT]
    assert [txn.counterparty_address for txn in results] == ["rC", "rB"]
    for txn in results:
        assert txn.fiat_equivalent == pytest.approx(float(txn.amount_major_units) * 3.0)


def test_reconcile_is_idempotent():
    records = [_payment(hash="H1"), _payment(hash="H2", sourceAccount="rZ")]
    assert reconcile(records, "rA", 1.5) == reconcile(records, "rA", 1.5)


def test_account_tx_entries_carry_auxiliary_fields():
    entry = {
        "tx": {
            "TransactionType": "Payment",
            "Account": "rA",
            "Destination": "rB",
            "Amount": "1000000",
            "Fee": "12",
            "hash": "H7",
            "date": 0,
            "ledger_index": 11,
        },
        "meta": {"TransactionResult": "tesSUCCESS"},
        "validated": True,
    }
    txn = reconcile([entry], "rA", 1.0)[0]
    assert txn.fee_major_units == Decimal("0.000012")
    assert txn.ledger_index == 11
    assert txn.validated is True
    assert txn.result_code == "tesSUCCESS"
    assert txn.timestamp_display == "2000-01-01 00:00:00 UTC"


def _view(count=2):
    view = HistoryView()
    view.refresh([_payment(hash=f"H{i}") for i in range(count)], "rA", 2.0)
    return view


def test_toggle_expanded_twice_collapses_row():
    view = _view()
    view.toggle_expanded(0)
    assert view.expanded_index == 0
    view.toggle_expanded(0)
    assert view.expanded_index is None


def test_toggle_expanded_keeps_only_one_row_open():
    view = _view()
    view.toggle_expanded(0)
    view.toggle_expanded(1)
    assert view.expanded_index == 1


def test_toggle_expanded_rejects_missing_rows():
    view = _view()
    with pytest.raises(IndexError):
        view.toggle_expanded(5)


def test_refresh_collapses_row_that_no_longer_exists():
    view = _view(count=2)
    view.toggle_expanded(1)
    view.refresh([_payment()], "rA", 2.0)
    assert view.expanded_index is None


def test_render_lines_shows_empty_state_and_details():
    assert HistoryView().render_lines() == [EMPTY_HISTORY]

    view = _view(count=1)
    collapsed = view.render_lines()
    assert len(collapsed) == 1
    assert collapsed[0].startswith("[0] SENT")
    assert "1.000000 XRP" in collapsed[0]
    assert "$2.00 USD" in collapsed[0]

    view.toggle_expanded(0)
    expanded = view.render_lines()
    assert any("Hash: H0" in line for line in expanded)
    assert any("To: rB" in line for line in expanded)


@pytest.mark.parametrize("timestamp", ["²", "9" * 5000, -5, 10**30])
def test_unusable_timestamp_keeps_the_batch(timestamp):
    results = reconcile([_payment(hash="H1", timestamp=timestamp), _payment(hash="H2")], "rA", 2.0)
    assert [txn.hash for txn in results] == ["H1", "H2"]
    assert results[0].timestamp_display == "Unknown time"


def test_unparseable_fee_is_shown_as_missing():
    results = reconcile([_payment(feeDrops="²")], "rA", 2.0)
    assert len(results) == 1
    assert results[0].fee_major_units is None
    assert "Fee: N/A" in results[0].detail_lines()


def test_issued_amount_labelled_xrp_has_no_fiat_equivalent():
    record = _payment(deliveredAmount={"value": "7", "currency": "XRP"})
    txn = reconcile([record], "rA", 2.0)[0]
    assert txn.fiat_equivalent is None
    assert txn.amount_major_units == Decimal("7")
