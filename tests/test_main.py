"""Tests for the command-line entry point."""

import json

import pytest

from pagesentinel.main import main


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("THREAT_FEED_URL", raising=False)
    monkeypatch.delenv("CACHE_PATH", raising=False)


def test_analyze_json_output(tmp_path, capsys):
    signals = tmp_path / "page.json"
    signals.write_text(
        json.dumps(
            {
                "url": "https://bad.example/login",
                "content": "",
                "certificate": {"valid": False},
            }
        )
    )
    feed = tmp_path / "feed.txt"
    feed.write_text("bad.example\n")

    exit_code = main(["analyze", str(signals), "--feed", str(feed), "--json"])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["url"] == "https://bad.example/login"
    assert output["riskLevel"] == "critical"
    assert [f["type"] for f in output["findings"]] == ["known_threat", "invalid_certificate"]


def test_analyze_text_output(tmp_path, capsys):
    signals = tmp_path / "page.yaml"
    signals.write_text("url: http://192.168.1.1/\n")

    assert main(["analyze", str(signals)]) == 0
    out = capsys.readouterr().out
    assert "risk:  medium" in out
    assert "url_ip_address" in out


def test_missing_signals_file(tmp_path):
    assert main(["analyze", str(tmp_path / "missing.json")]) == 1


def test_invalid_payload(tmp_path):
    signals = tmp_path / "page.json"
    signals.write_text(json.dumps({"url": "https://a.test/", "behavioral": {"popups": -1}}))
    assert main(["analyze", str(signals)]) == 1


def test_configured_sensitive_tokens_reach_form_analysis(tmp_path, capsys):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "heuristics.yaml").write_text("forms:\n  sensitive_tokens: [otp]\n")
    signals = tmp_path / "page.json"
    signals.write_text(
        json.dumps(
            {
                "url": "http://shop.test/checkout",
                "forms": [{"action": "/pay", "fields": [{"type": "text", "name": "otp_code"}]}],
            }
        )
    )

    assert main(["analyze", str(signals), "--json"]) == 0
    output = json.loads(capsys.readouterr().out)
    assert "insecure_sensitive_form" in [f["type"] for f in output["findings"]]
