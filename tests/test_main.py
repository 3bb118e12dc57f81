"""Tests for the command-line entry point."""

import asyncio
import json

from conftest import make_market

from crossarb import main as cli_main
from crossarb.models import ArbitrageOpportunity, Leg, Platform


def _opportunity():
    buy = make_market(Platform.KALSHI, "kalshi:KXBTC-25DEC31", "Will Bitcoin reach $100k in 2025?",
                      [("Yes", 0.40), ("No", 0.60)])
    sell = make_market(Platform.POLYMARKET, "polymarket:777", "Bitcoin to hit $100k by end of 2025",
                       [("Yes", 0.48), ("No", 0.52)])
    return ArbitrageOpportunity(
        id="lexical:kalshi:KXBTC-25DEC31:polymarket:777",
        markets=[buy, sell],
        best_buy=Leg(buy, 0, 0.40),
        best_sell=Leg(sell, 0, 0.48),
        spread=8.0,
        max_spread=8.0,
        roi=7.8,
        title=buy.title,
        similarity_score=0.6,
        source="lexical",
    )


def test_parse_args_defaults():
    args = cli_main.parse_args([])
    assert args.limit == 500
    assert args.min_spread == 0.5
    assert args.sort == "spread"
    assert not args.no_sports
    assert args.output is None


def test_parse_args_flags():
    args = cli_main.parse_args(["--limit", "100", "--min-spread", "2", "--sort", "volume",
                                "--no-semantic", "--output", "out.json", "-v"])
    assert args.limit == 100
    assert args.min_spread == 2.0
    assert args.sort == "volume"
    assert args.no_semantic
    assert args.output == "out.json"
    assert args.verbose


def test_save_results(tmp_path):
    path = tmp_path / "results.json"
    cli_main.save_results([_opportunity()], str(path))

    data = json.loads(path.read_text())
    assert data["count"] == 1
    assert data["opportunities"][0]["source"] == "lexical"


def test_print_summary(capsys):
    cli_main.print_summary([_opportunity()])
    out = capsys.readouterr().out
    assert "Found 1 arbitrage opportunities" in out
    assert "Kalshi" in out


def test_print_summary_empty(capsys):
    cli_main.print_summary([])
    assert "No arbitrage opportunities found." in capsys.readouterr().out


def test_main_runs_scan_and_writes_output(monkeypatch, tmp_path):
    calls = []

    class StubScanner:
        async def scan(self, **kwargs):
            calls.append(kwargs)
            return [_opportunity()]

    monkeypatch.setattr(cli_main, "ArbitrageScanner", StubScanner)
    path = tmp_path / "out.json"
    args = cli_main.parse_args(["--no-sports", "--output", str(path)])

    result = asyncio.run(cli_main.main(args))

    assert len(result) == 1
    assert calls[0]["include_sports"] is False
    assert calls[0]["include_semantic"] is True
    assert path.exists()
