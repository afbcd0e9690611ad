# tests/test_cli.py
import httpx
import pytest
from click.testing import CliRunner

import src.cli as cli_module
from conftest import make_client


@pytest.fixture
def provider(monkeypatch):
    """Route the CLI's NominatimClient through a mock transport; set ``handler`` per test."""
    state = {"handler": None}

    def factory():
        client, _ = make_client(lambda request: state["handler"](request))
        return client

    monkeypatch.setattr(cli_module, "NominatimClient", factory)
    return state


def test_forward_prints_position_and_distance(provider):
    provider["handler"] = lambda request: httpx.Response(200, json=[{"lat": "-6.2383", "lon": "107.0215"}])
    result = CliRunner().invoke(cli_module.cli, ["forward", "Jl. Raya Tambun, Tambun Selatan, Bekasi, West Java"])
    assert result.exit_code == 0, result.output
    assert "Position: -6.238300, 107.021500" in result.output
    assert "Distance to campus:" in result.output


def test_forward_failure_exits_nonzero(provider):
    provider["handler"] = lambda request: httpx.Response(503)
    result = CliRunner().invoke(cli_module.cli, ["forward", "Jl. Raya Tambun, Tambun Selatan, Bekasi"])
    assert result.exit_code == 1
    assert "Service Unavailable" in result.output


def test_forward_short_address_exits_nonzero(provider):
    provider["handler"] = lambda request: pytest.fail("no request expected")
    result = CliRunner().invoke(cli_module.cli, ["forward", "Bekasi"])
    assert result.exit_code == 1
    assert "Address Too Short" in result.output


def test_reverse_prints_address(provider):
    provider["handler"] = lambda request: httpx.Response(200, json={
        "display_name": "Jl. Test, Depok, West Java, Indonesia",
        "address": {"road": "Jl. Test", "city": "Depok"},
    })
    result = CliRunner().invoke(cli_module.cli, ["--verbose", "reverse", "--", "-6.2", "106.8"])
    assert result.exit_code == 0, result.output
    assert "Address: Jl. Test, Depok" in result.output
    assert "Distance to campus:" in result.output
