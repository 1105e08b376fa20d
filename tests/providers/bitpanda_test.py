"""Tests for the Bitpanda converter rules."""

from __future__ import annotations

import asyncio

import pytest
from ledgerconv.config import ConverterConfig
from ledgerconv.ingest.casting import GRAMS_PER_TROY_OUNCE
from ledgerconv.models import ActivityKind, Security
from ledgerconv.providers.bitpanda import COLUMNS, BitpandaConverter, crypto_symbol


@pytest.fixture
def converter(config):
    return BitpandaConverter(config)


def _raw(**overrides: str) -> dict[str, str]:
    record = dict.fromkeys(COLUMNS, "-")
    record.update(
        {
            "transactionId": "T1",
            "timestamp": "2024-03-01T10:00:00+01:00",
            "transactionType": "buy",
            "inOut": "outgoing",
            "amountFiat": "100",
            "fiat": "EUR",
            "amountAsset": "0.002",
            "asset": "BTC",
            "assetMarketPrice": "50000",
            "assetMarketPriceCurrency": "EUR",
            "assetClass": "Cryptocurrency",
            "fee": "0.5",
        }
    )
    record.update(overrides)
    return record


def _assemble(converter, raw, resolver):
    record = converter.normalize(raw)
    kind = converter.classify(record)
    return asyncio.run(converter.assemble(record, kind, None, resolver))


class TestConfig:
    """Tests for required settings."""

    def test_requires_reward_asset(self):
        with pytest.raises(ValueError, match="reward asset id"):
            BitpandaConverter(ConverterConfig(account_id="acc-1"))


class TestHeaders:
    """Tests for fixed-schema mode and row repair."""

    def test_ignores_file_header(self, converter, bitpanda_csv):
        assert converter.resolve_headers(bitpanda_csv()) == COLUMNS
        assert converter.resolve_headers("") == COLUMNS

    def test_data_starts_after_line_eight(self, converter):
        assert converter.data_start == 9

    def test_repair_pads_short_rows(self, converter, bitpanda_csv):
        text = bitpanda_csv("T1,2024-03-01T10:00:00+01:00,buy")
        repaired = converter.repair(text, COLUMNS)
        last = repaired.splitlines()[-1]
        assert last.split(",")[3:] == ["-"] * (len(COLUMNS) - 3)

    def test_repair_keeps_header_and_metadata(self, converter, bitpanda_csv):
        text = bitpanda_csv("T1,2024-03-01T10:00:00+01:00,buy")
        original = text.splitlines()
        repaired = converter.repair(text, COLUMNS).splitlines()
        assert repaired[:8] == original[:8]


class TestIgnore:
    """Tests for the fiat filter."""

    @pytest.mark.parametrize("asset_class", ["Fiat", "fiat", "", "  ", "-"])
    def test_fiat_and_missing_class_ignored(self, converter, asset_class):
        assert converter.is_ignored(_raw(assetClass=asset_class))

    def test_missing_column_ignored(self, converter):
        raw = _raw()
        del raw["assetClass"]
        assert converter.is_ignored(raw)

    @pytest.mark.parametrize("asset_class", ["Cryptocurrency", "Metal", "Stock (derivative)"])
    def test_securities_kept(self, converter, asset_class):
        assert not converter.is_ignored(_raw(assetClass=asset_class))


class TestClassify:
    """Tests for the ordered rule table."""

    @pytest.mark.parametrize(
        ("tx_type", "in_out", "kind"),
        [
            ("reward", "incoming", ActivityKind.INTEREST),
            ("Reward", "incoming", ActivityKind.INTEREST),
            ("transfer", "incoming", ActivityKind.BUY),
            ("transfer(stake)", "Incoming", ActivityKind.BUY),
            ("transfer", "outgoing", ActivityKind.SELL),
            ("transfer(unstake)", "", ActivityKind.SELL),
            ("buy", "outgoing", ActivityKind.BUY),
            ("sell", "incoming", ActivityKind.SELL),
        ],
    )
    def test_kinds(self, converter, tx_type, in_out, kind):
        assert converter.classify(_raw(transactionType=tx_type, inOut=in_out)) is kind

    @pytest.mark.parametrize("tx_type", ["deposit", "withdrawal", "buy order", ""])
    def test_unmatched_type_has_no_kind(self, converter, tx_type):
        assert converter.classify(_raw(transactionType=tx_type)) is None

    def test_no_mandatory_lookup(self, converter):
        assert converter.security_query(_raw()) is None


class TestNormalize:
    """Tests for casts."""

    def test_placeholders_become_zero(self, converter):
        record = converter.normalize(_raw())
        assert record["feePercent"] == 0.0
        assert record["spread"] == 0.0
        assert record["taxFiat"] == 0.0

    def test_timestamp_in_vienna(self, converter):
        record = converter.normalize(_raw(timestamp="2024-07-01T08:00:00Z"))
        assert record["timestamp"].isoformat() == "2024-07-01T10:00:00+02:00"


class TestAssemble:
    """Tests for symbol derivation and reward expansion."""

    def test_crypto_symbol(self):
        assert crypto_symbol("BTC", "USD") == "BTCUSD"
        assert crypto_symbol("POL", "USD") == "MATICUSD"

    def test_crypto_buy(self, converter, make_resolver):
        resolver = make_resolver()
        (activity,) = _assemble(converter, _raw(), resolver)
        assert activity.type is ActivityKind.BUY
        assert activity.symbol == "BTCUSD"
        assert activity.quantity == 0.002
        assert activity.unit_price == 50000
        assert activity.fee == 0.5
        assert activity.currency == "EUR"
        assert activity.data_source == "YAHOO"
        assert activity.date == "2024-03-01T10:00:00+01:00"
        assert resolver.calls == []

    def test_quote_currency_from_config(self, make_resolver):
        config = ConverterConfig(
            account_id="acc-1", reward_asset_id="r", crypto_quote_currency="EUR"
        )
        (activity,) = _assemble(BitpandaConverter(config), _raw(), make_resolver())
        assert activity.symbol == "BTCEUR"

    def test_fiat_currency_fallback(self, converter, make_resolver):
        (activity,) = _assemble(converter, _raw(assetMarketPriceCurrency=""), make_resolver())
        assert activity.currency == "EUR"

    def test_placeholder_currency_falls_back_to_fiat(self, converter, make_resolver):
        raw = _raw(assetMarketPriceCurrency="-", fiat="CHF")
        (activity,) = _assemble(converter, raw, make_resolver())
        assert activity.currency == "CHF"

    def test_derivative_keeps_asset(self, converter, make_resolver):
        raw = _raw(assetClass="Stock (derivative)", asset="AAPL", assetMarketPrice="150")
        (activity,) = _assemble(converter, raw, make_resolver())
        assert activity.symbol == "AAPL"
        assert activity.unit_price == 150

    def test_metal_converts_units_and_looks_up_symbol(self, converter, make_resolver):
        resolver = make_resolver({"XAU": Security(symbol="GC=F", currency="USD")})
        raw = _raw(
            assetClass="Metal",
            asset="XAU",
            amountAsset=str(GRAMS_PER_TROY_OUNCE * 2),
            assetMarketPrice="60",
        )
        (activity,) = _assemble(converter, raw, resolver)
        assert activity.symbol == "GC=F"
        assert activity.quantity == pytest.approx(2.0)
        assert activity.unit_price == pytest.approx(60 * GRAMS_PER_TROY_OUNCE)
        assert resolver.calls == [(None, None, "XAU", None)]

    def test_metal_falls_back_on_miss(self, converter, make_resolver):
        raw = _raw(assetClass="Metal", asset="XAG")
        (activity,) = _assemble(converter, raw, make_resolver())
        assert activity.symbol == "XAG"

    def test_metal_falls_back_on_error(self, converter, make_resolver):
        resolver = make_resolver({"XPT": ConnectionError("offline")})
        raw = _raw(assetClass="Metal", asset="XPT")
        (activity,) = _assemble(converter, raw, resolver)
        assert activity.symbol == "XPT"

    def test_reward_expands_to_two_activities(self, converter, make_resolver):
        raw = _raw(
            transactionType="Reward",
            inOut="incoming",
            asset="BTC",
            amountFiat="5",
            fiat="EUR",
            amountAsset="0.001",
            assetMarketPrice="50000",
        )
        cash, position = _assemble(converter, raw, make_resolver())

        assert cash.type is ActivityKind.INTEREST
        assert cash.unit_price == 5
        assert cash.quantity == 1
        assert cash.currency == "EUR"
        assert cash.symbol == "reward-asset"
        assert cash.data_source == "MANUAL"
        assert cash.fee == 0.5
        assert cash.comment == "Staking reward BTC"

        assert position.type is ActivityKind.BUY
        assert position.quantity == 0.001
        assert position.unit_price == 50000
        assert position.fee == 0
        assert position.symbol == "BTCUSD"
        assert position.date == cash.date
