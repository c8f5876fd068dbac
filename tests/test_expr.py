import os
from fractions import Fraction

import pytest
from prometheus_client import REGISTRY

from positions_engine.errors import AmbiguousPath, InvalidPrice, MissingPrice, Unreachable
from positions_engine.expr.expr import Expr
from positions_engine.ledger.ledger import Positions
from positions_engine.model.asset import Asset
from positions_engine.model.instrument import Instrument
from positions_engine.position.reversed import Reversed

BTC, ETH, ADA, USD, USDT = Asset.BTC, Asset.ETH, Asset("ADA"), Asset.USD, Asset.USDT
BTC_USDT = Instrument.spot(BTC, USDT)
ETH_USDT = Instrument.spot(ETH, USDT)
ETH_BTC = Instrument.spot(ETH, BTC)
BTC_USDT_SWAP = Instrument.derivative("SWAP", "BTC-USDT-SWAP", BTC, USDT)
ADA_USDT_SWAP = Instrument.derivative("SWAP", "ADA-USDT-SWAP", ADA, USDT)
ETH_USD_FUT = Instrument.derivative("FUTURES", "ETH-USD-221209", USD, ETH).prefer_reversed()


def test_spot_only_equity_is_literal_sum():
    led = Positions()
    led.apply_trade(BTC_USDT, (16000, "1.5"))
    led.apply_trade(ETH_USDT, (1200, 2))
    led.apply_trade(ETH_USDT, (1300, -1))
    prices = {"BTC-USDT": "17000", "ETH-USDT": "1250"}
    expr = led.as_expr()
    expected = sum(
        p.size() * Fraction(prices[i.symbol]) + p.realized
        for i, p in led.positions.items()
    )
    assert expr.eval(USDT, prices) == expected
    assert expected == Fraction(3, 2) * 17000 + 1250 + 100


def test_derivative_equity_is_closed_value():
    led = Positions()
    led.apply_value(1000, USDT)
    led.apply_trade(BTC_USDT_SWAP, (16000, 2))
    expr = led.as_expr()
    assert expr.instruments(USDT) == [BTC_USDT_SWAP]
    assert expr.eval(USDT, {BTC_USDT_SWAP.symbol: 16500}) == 1000 + 2 * 500


def test_instruments_ordered_and_deduplicated():
    led = Positions()
    led.apply_value(1, BTC)
    led.apply_value(2, ETH)
    led.apply_trade(BTC_USDT_SWAP, (16975, 1))
    led.apply_trade(ETH_USD_FUT, Reversed("1278.87", -10000))
    led.apply_trade(ADA_USDT_SWAP, ("0.31715", -2100))
    expr = led.as_expr(via=[BTC_USDT, ETH_USDT])
    assert expr.instruments(USDT) == [
        BTC_USDT_SWAP, ETH_USD_FUT, ADA_USDT_SWAP, BTC_USDT, ETH_USDT,
    ]


def test_multi_asset_equity():
    led = Positions()
    led.apply_value(1, BTC)
    led.apply_value(100, USDT)
    led.apply_trade(BTC_USDT_SWAP, (16000, 1))
    led.apply_trade(ETH_USD_FUT, Reversed(1250, -10000))
    prices = {
        BTC_USDT.symbol: 17000,
        ETH_USDT.symbol: 1000,
        BTC_USDT_SWAP.symbol: 16900,
        ETH_USD_FUT.symbol: 1000,
    }
    equity = led.as_expr(via=[BTC_USDT, ETH_USDT]).eval(USDT, prices)
    # short ETH at 1250 closed at 1000 gains 10000 * (1/1000 - 1/1250) = 2 ETH
    eth = 10000 * (Fraction(1, 1000) - Fraction(1, 1250))
    assert eth == 2
    assert equity == 17000 + 100 + 900 + eth * 1000


def test_composed_path_through_intermediate():
    led = Positions()
    led.apply_value(3, ETH)
    expr = led.as_expr(via=[ETH_BTC, BTC_USDT])
    assert expr.instruments(USDT) == [ETH_BTC, BTC_USDT]
    hops = expr.resolve(USDT)[ETH]
    assert [h.instrument for h in hops] == [ETH_BTC, BTC_USDT]
    assert expr.eval(USDT, {"ETH-BTC": "0.075", "BTC-USDT": 16000}) == 3 * Fraction("0.075") * 16000


def test_conversion_from_quote_side_divides():
    led = Positions()
    led.apply_value(32000, USDT)
    expr = led.as_expr(via=[BTC_USDT])
    assert expr.eval(BTC, {"BTC-USDT": 16000}) == 2


def test_reversed_conversion_edge():
    # a USD balance converted to BTC through a reversed contract quoted in USD/BTC
    swap = Instrument.derivative("SWAP", "BTC-USD-SWAP", USD, BTC).prefer_reversed()
    led = Positions()
    led.apply_value(32000, USD)
    expr = led.as_expr(via=[swap])
    assert expr.eval(BTC, {swap.symbol: 16000}) == 2


def test_missing_price():
    led = Positions()
    led.apply_value(1, BTC)
    expr = led.as_expr(via=[BTC_USDT])
    with pytest.raises(MissingPrice) as exc:
        expr.eval(USDT, {})
    assert exc.value.symbol == "BTC-USDT"
    # unrelated prices do not matter
    assert expr.eval(USDT, {"BTC-USDT": 2, "ETH-USDT": 1}) == 2


def test_flat_position_needs_no_price():
    led = Positions()
    led.apply_trade(BTC_USDT_SWAP, (100, 1))
    led.apply_trade(BTC_USDT_SWAP, (130, -1))
    expr = led.as_expr()
    assert expr.instruments(USDT) == []
    assert expr.eval(USDT, {}) == 30


def test_unreachable():
    led = Positions()
    led.apply_value(1, ETH)
    led.apply_trade(BTC_USDT_SWAP, (16000, 1))
    with pytest.raises(Unreachable) as exc:
        led.as_expr().instruments(USDT)
    assert exc.value.asset == ETH
    with pytest.raises(Unreachable):
        led.as_expr().eval(USDT, {BTC_USDT_SWAP.symbol: 1})


def test_root_only_ledger():
    led = Positions()
    led.apply_value(5, USDT)
    expr = led.as_expr()
    assert expr.instruments(USDT) == []
    assert expr.eval(USDT, {}) == 5
    assert Positions().as_expr().eval(USDT, {}) == 0


def test_parallel_instruments_need_preference():
    led = Positions()
    led.apply_value(1, BTC)
    led.apply_trade(BTC_USDT_SWAP, (16000, 1))
    expr = led.as_expr(via=[])
    # only the swap connects BTC and USDT: it is used
    assert expr.instruments(USDT) == [BTC_USDT_SWAP]

    ambiguous = Expr(led.balances, [], known=[BTC_USDT_SWAP, BTC_USDT])
    with pytest.raises(AmbiguousPath):
        ambiguous.instruments(USDT)
    preferred = Expr(led.balances, [], known=[BTC_USDT_SWAP], via=[BTC_USDT])
    assert preferred.instruments(USDT) == [BTC_USDT]


def test_nonpositive_mark_rejected():
    led = Positions()
    led.apply_trade(BTC_USDT_SWAP, (16000, 1))
    with pytest.raises(InvalidPrice):
        led.as_expr().eval(USDT, {BTC_USDT_SWAP.symbol: 0})
    with pytest.raises(InvalidPrice):
        led.as_expr().eval(USDT, {BTC_USDT_SWAP.symbol: "NaN"})


def test_expr_is_a_snapshot():
    led = Positions()
    led.apply_value(1, USDT)
    expr = led.as_expr()
    led.apply_value(1, USDT)
    assert expr.eval(USDT, {}) == 1
    assert led.as_expr().eval(USDT, {}) == 2


def test_expr_display():
    led = Positions()
    led.apply_value(-1, USDT)
    led.apply_trade(BTC_USDT_SWAP, (16000, 1))
    assert str(led.as_expr()) == "(16000, 1 BTC) - 1 USDT"
    assert str(Positions().as_expr()) == "0"


@pytest.mark.skipif(os.getenv("DISABLE_PROMETHEUS", "0") == "1", reason="metrics disabled")
def test_evaluation_metrics():
    led = Positions()
    led.apply_value(7, Asset("GAUGE"))
    pair = Instrument.spot(Asset("GAUGE"), USDT)
    before = REGISTRY.get_sample_value("positions_evaluations_total", {"root": "USDT"}) or 0.0
    led.as_expr(via=[pair]).eval(USDT, {pair.symbol: 3})
    after = REGISTRY.get_sample_value("positions_evaluations_total", {"root": "USDT"})
    assert after - before == 1
    assert REGISTRY.get_sample_value("positions_equity", {"root": "USDT"}) == 21.0
    fails = REGISTRY.get_sample_value("positions_eval_failures_total", {"kind": "missing_price"}) or 0.0
    with pytest.raises(MissingPrice):
        led.as_expr(via=[pair]).eval(USDT, {})
    assert REGISTRY.get_sample_value("positions_eval_failures_total", {"kind": "missing_price"}) == fails + 1
