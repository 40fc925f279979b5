import json

from claimledger.core.config import Settings
from claimledger.scripts.ledger_cli import _countdown, main


def _run(tmp_path, *args):
    return main(["--data-dir", str(tmp_path), "--store", "file", *args])


def test_claim_and_duplicate(tmp_path, capsys):
    assert _run(tmp_path, "--today", "2026-10-19", "claim") == 0
    out = capsys.readouterr().out
    assert "+10 SSC claimed!" in out

    assert _run(tmp_path, "--today", "2026-10-19", "claim") == 1
    assert "Already claimed today" in capsys.readouterr().err

    assert _run(tmp_path, "--today", "2026-10-20", "claim") == 0
    assert "Streak: 2 day(s)" in capsys.readouterr().out

    snapshot = json.loads((tmp_path / "ssc_data.json").read_text(encoding="utf-8"))
    assert snapshot["currentStreak"] == 2
    assert snapshot["claimedDays"] == ["2026-10-19", "2026-10-20"]


def test_status_and_share(tmp_path, capsys):
    assert _run(tmp_path, "share") == 0
    assert "+5 SSC sharing bonus!" in capsys.readouterr().out

    assert _run(tmp_path, "--today", "2026-10-19", "status") == 0
    out = capsys.readouterr().out
    assert "Balance:        5.00 SSC" in out
    assert "Claim:          available" in out


def test_wallet_rejected(tmp_path, capsys):
    assert _run(tmp_path, "wallet", "0xabc") == 1
    assert "Invalid address format" in capsys.readouterr().err
    assert _run(tmp_path, "wallet", "0x" + "1" * 40) == 0


def test_week_output(tmp_path, capsys):
    _run(tmp_path, "--today", "2026-10-19", "claim")
    capsys.readouterr()
    assert _run(tmp_path, "--today", "2026-10-19", "week") == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[1] == "Mon 2026-10-19 [x]  <- today"


def test_countdown_polls_until_claim_opens(capsys):
    class FakeLedger:
        def __init__(self):
            self.readings = iter([7200, 3600, 0])

        def cooldown_remaining(self):
            from claimledger.models.ledger import Cooldown

            return Cooldown.from_seconds(next(self.readings))

    sleeps = []
    _countdown(FakeLedger(), once=False, sleep=sleeps.append)

    out = capsys.readouterr().out.splitlines()
    assert out == ["Next claim in 02:00:00", "Next claim in 01:00:00", "Claim available now"]
    assert sleeps == [1.0, 1.0]


def test_unknown_timezone_still_runs(tmp_path, capsys, monkeypatch):
    from claimledger.scripts import ledger_cli

    cfg = Settings(LEDGER_TIMEZONE="Mars/Olympus_Mons", LEDGER_DATA_DIR=str(tmp_path))
    monkeypatch.setattr(ledger_cli, "settings", cfg)

    assert main(["--today", "2026-10-19", "status"]) == 0
    assert "Claim:          available" in capsys.readouterr().out


def test_serve_uses_command_line_overrides(tmp_path, monkeypatch):
    served = {}

    def fake_run(app, host, port):
        served.update(app=app, host=host, port=port)

    monkeypatch.setattr("uvicorn.run", fake_run)

    assert main(["--data-dir", str(tmp_path), "--store", "memory", "serve"]) == 0

    cfg = served["app"].state.settings
    assert cfg.LEDGER_DATA_DIR == str(tmp_path)
    assert cfg.LEDGER_STORE == "memory"
    assert served["port"] == cfg.PORT
