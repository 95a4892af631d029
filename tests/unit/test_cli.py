import json

import pytest
from typer.testing import CliRunner

from guardian.cli import app
from guardian.signing import Secp256k1Primitive

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "guardian.yaml"
    path.write_text(
        """
guardian_token: bootstrap-token
okta_url: https://acme.okta.com
inmemory:
  secret_ids: [s1]
"""
    )
    return str(path)


def test_config_show_masks_secrets(config_file):
    result = runner.invoke(app, ["config", "show", "--path", config_file])
    assert result.exit_code == 0
    shown = json.loads(result.stdout)
    assert shown["okta_url"] == "https://acme.okta.com"
    assert "bootstrap-token" not in result.stdout
    assert "s1" not in result.stdout


def test_verify_accepts_matching_signature():
    primitive = Secp256k1Primitive()
    private_key, address = primitive.generate_keypair()
    signature = primitive.sign(private_key, "deadbeef")

    result = runner.invoke(app, ["verify", "deadbeef", signature, address.lower()])
    assert result.exit_code == 0
    assert address in result.stdout


def test_verify_rejects_other_address():
    primitive = Secp256k1Primitive()
    private_key, _ = primitive.generate_keypair()
    _, other = primitive.generate_keypair()
    signature = primitive.sign(private_key, "deadbeef")

    result = runner.invoke(app, ["verify", "deadbeef", signature, other])
    assert result.exit_code == 1
    assert "not" in result.stdout


def test_verify_rejects_malformed_signature():
    result = runner.invoke(app, ["verify", "deadbeef", "0x1234", "0x0"])
    assert result.exit_code == 1
    assert "Malformed input" in result.stdout


def test_call_authorize(config_file):
    result = runner.invoke(
        app, ["call", "authorize", "--data", '{"secret_id": "s1"}', "--config", config_file]
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {}


def test_call_reports_broker_errors(config_file):
    result = runner.invoke(
        app,
        ["call", "login", "--data", '{"username": "alice", "password": "pw"}', "--config", config_file],
    )
    assert result.exit_code == 1
    assert "service_not_authorized" in result.stdout

    result = runner.invoke(
        app,
        [
            "call",
            "login",
            "--secret-id",
            "s1",
            "--data",
            '{"username": "alice", "password": "pw"}',
            "--config",
            config_file,
        ],
    )
    assert result.exit_code == 1
    assert "invalid_credentials: invalid username or password" in result.stdout


def test_call_read_with_unknown_token(config_file):
    result = runner.invoke(
        app,
        [
            "call",
            "sign",
            "--read",
            "--secret-id",
            "s1",
            "--data",
            '{"session_token": "s.nope"}',
            "--config",
            config_file,
        ],
    )
    assert result.exit_code == 1
    assert "invalid_token" in result.stdout


def test_call_rejects_bad_json(config_file):
    result = runner.invoke(app, ["call", "sign", "--data", "{not json", "--config", config_file])
    assert result.exit_code == 1
    assert "not valid JSON" in result.stdout
