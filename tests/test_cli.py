"""Tests for the CLI: argument handling, REPL commands and exports."""

import json
from datetime import datetime

import pandas as pd
import pytest

from stormnorm.cli import Session, handle, main, parse_reference
from stormnorm.errors import ConfigurationError
from stormnorm.pipeline import run_pipeline


@pytest.fixture
def session(make_raw_record, price_entries):
    records = [
        make_raw_record(event_type="Flash Flood", prop_dmg=5, prop_dmg_exp="K"),
        make_raw_record(event_type="TORNADO", prop_dmg=2, prop_dmg_exp="M",
                        begin_date=datetime(2011, 10, 9), fatalities=4),
        make_raw_record(event_type="Marine Mishap"),
        make_raw_record(begin_date=None),
    ]
    return Session.from_result(run_pipeline(records, price_entries), top_n=5)


def test_parse_reference():
    assert parse_reference("2011-11") == (2011, 11)
    assert parse_reference(" 1996-01 ") == (1996, 1)


@pytest.mark.parametrize("text", ["2011", "2011-13", "nov-2011", "2011-11-01"])
def test_parse_reference_rejects(text):
    with pytest.raises(ConfigurationError):
        parse_reference(text)


def test_stats(session, capsys):
    handle(session, "stats")
    out = capsys.readouterr().out
    assert "Reference month: 2011-11" in out
    assert "dropped (bad date): 1" in out
    assert "other: 1" in out


def test_top_by_median_damages(session, capsys):
    handle(session, "top 1")
    out = capsys.readouterr().out
    assert "Top 1 categories by median yearly damages" in out
    assert out.splitlines()[1].startswith("tornado |")


def test_top_by_deaths(session, capsys):
    handle(session, "top 2 deaths mean")
    lines = capsys.readouterr().out.splitlines()
    assert lines[1].startswith("tornado |")
    assert lines[2].startswith("flood |")


def test_years(session, capsys):
    handle(session, 'years "flood"')
    assert "2011 | events=1 damages=5,000" in capsys.readouterr().out
    handle(session, 'years "drought"')
    assert "No rows" in capsys.readouterr().out
    handle(session, "years")
    assert 'Usage: years "<category>"' in capsys.readouterr().out


def test_classify_shows_all_matches(session, capsys):
    handle(session, 'classify "Heavy Rain and Flooding"')
    out = capsys.readouterr().out
    assert "-> flood" in out
    assert "matched: rain, flood" in out


def test_rules(session, capsys):
    handle(session, "rules")
    out = capsys.readouterr().out
    assert " 1. wind:" in out
    assert "17. drought: drought" in out


def test_export_csv_and_json(session, tmp_path, capsys):
    csv_path = tmp_path / "years.csv"
    handle(session, f'export year "{csv_path}"')
    df = pd.read_csv(csv_path)
    assert set(df["category"]) == {"flood", "tornado"}

    json_path = tmp_path / "categories.json"
    handle(session, f'export category "{json_path}"')
    rows = json.loads(json_path.read_text(encoding="utf-8"))
    assert {r["category"] for r in rows} == {"flood", "tornado"}
    assert "Exported 2 rows" in capsys.readouterr().out


def test_unknown_command(session, capsys):
    handle(session, "explode")
    assert "Unknown command" in capsys.readouterr().out


def _write_inputs(tmp_path):
    events = tmp_path / "events.csv"
    events.write_text(
        "REFNUM,BGN_DATE,EVTYPE,PROPDMG,PROPDMGEXP,CROPDMG,CROPDMGEXP,FATALITIES,INJURIES\n"
        "1,11/15/2011 0:00:00,FLASH FLOOD,5,K,0,,0,0\n",
        encoding="utf-8",
    )
    cpi = tmp_path / "cpi.csv"
    cpi.write_text("DATE,CPIAUCSL\n2011-11-01,226.2\n", encoding="utf-8")
    return str(events), str(cpi)


def test_main_runs_until_eof(tmp_path, monkeypatch, capsys):
    events, cpi = _write_inputs(tmp_path)
    commands = iter(["stats", "top 3"])

    def fake_input(prompt=""):
        try:
            return next(commands)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    assert main(["--events", events, "--cpi", cpi]) == 0
    out = capsys.readouterr().out
    assert "Normalized 1 events" in out
    assert "flood |" in out


def test_main_fails_on_missing_reference(tmp_path, monkeypatch):
    events, cpi = _write_inputs(tmp_path)
    monkeypatch.setattr("builtins.input", lambda prompt="": "quit")
    assert main(["--events", events, "--cpi", cpi, "--reference", "1990-01"]) == 2
