import json
from fractions import Fraction

import pytest
from pydantic import ValidationError

from positions_engine.codec.schema import (
    PositionModel,
    PositionsModel,
    asset_from_model,
    asset_to_model,
    dump_positions,
    instrument_from_model,
    instrument_to_model,
    positions_from_json,
    positions_to_json,
)
from positions_engine.ledger.ledger import Positions
from positions_engine.model.asset import Asset
from positions_engine.model.instrument import Instrument
from positions_engine.position.reversed import Reversed

BTC_USD_SWAP = Instrument.derivative("SWAP", "BTC-USD-SWAP", Asset.USD, Asset.BTC).prefer_reversed()
BTC_USDT = Instrument.spot(Asset.BTC, Asset.USDT)


def _ledger():
    led = Positions()
    led.apply_value(100, Asset.USDT)
    led.apply_trade(BTC_USD_SWAP, Reversed(16000, 100))
    led.apply_trade(BTC_USD_SWAP, Reversed(15000, 100))
    led.apply_trade(BTC_USDT, (100, 2))
    led.apply_trade(BTC_USDT, (110, -1))
    return led


def test_json_keeps_values_exact():
    led = _ledger()
    text = positions_to_json(led)
    doc = json.loads(text)
    assert doc["schema_version"] == "v1"
    assert doc["balances"] == {"USDT": "100"}
    swap = next(p for p in doc["positions"] if p["instrument"]["symbol"] == "SWAP:BTC-USD-SWAP")
    # stored in true form
    assert swap["price"] == "31/480000"
    assert swap["size"] == "-200"
    assert swap["instrument"]["reversed_preferred"] is True

    back = positions_from_json(text)
    assert back == led
    pos = back.get_position(BTC_USD_SWAP)
    assert pos.instrument.reversed_preferred
    assert pos.price() == Fraction(480000, 31)
    assert back.get_position(BTC_USDT).realized == 10


def test_instrument_model_round_trip():
    model = instrument_to_model(BTC_USD_SWAP)
    assert model.category == "derivative"
    assert model.kind == "SWAP"
    inst = instrument_from_model(model)
    assert inst == BTC_USD_SWAP
    assert inst.base == Asset.USD


def test_dump_flat_position_has_no_price():
    led = Positions(prune_zero=False)
    led.apply_trade(BTC_USDT, (100, 1))
    led.apply_trade(BTC_USDT, (100, -1))
    dumped = dump_positions(led)
    assert dumped["prune_zero"] is False
    assert dumped["positions"][0]["price"] is None


def test_rejects_bad_numbers():
    with pytest.raises(ValidationError):
        PositionModel(instrument=instrument_to_model(BTC_USDT), size="lots")
    with pytest.raises(ValidationError):
        PositionsModel(balances={"USDT": "NaN"})


def test_asset_model_canonicalizes():
    assert asset_to_model(Asset.ETH).symbol == "ETH"
    assert asset_from_model(asset_to_model(Asset("eth"))) == Asset.ETH
