"""Tests for the shokulab CLI."""

import json

import pytest
from typer.testing import CliRunner

from shokulab.cli.main import app

from conftest import FOOD_TRADING_FIELDS

runner = CliRunner()


def invoke(*args):
    return runner.invoke(app, ["--log-level", "WARNING", *args])


def last_json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout.strip().splitlines()[-1])


@pytest.fixture
def initialized():
    result = invoke("init")
    assert result.exit_code == 0, result.output


class TestReadOnlyCommands:

    def test_fee_json(self):
        data = last_json(invoke("fee", "50000", "--json"))
        assert data == {"amount": 50000, "fee": 1800, "percentage": 3.6, "net_amount": 48200}

    def test_fee_text(self):
        result = invoke("fee", "1000")
        assert result.exit_code == 0
        assert "¥100" in result.stdout
        assert "¥900" in result.stdout

    def test_templates(self):
        result = invoke("templates")
        assert result.exit_code == 0
        assert "Contract Templates" in result.stdout

    def test_template_detail(self):
        result = invoke("template", "equipment", "--fields")
        assert result.exit_code == 0
        assert "設備貸借契約書" in result.stdout

    def test_unknown_template(self):
        result = invoke("template", "employment")
        assert result.exit_code == 1

    def test_preview(self):
        result = invoke(
            "preview", "-t", "food_trading",
            "-d", json.dumps({"product": "牛肉"}),
            "--party-a", "甲商店", "--party-b", "乙食堂",
        )
        assert result.exit_code == 0
        assert "商品名：牛肉" in result.stdout
        assert "【未入力】" in result.stdout


@pytest.mark.usefixtures("initialized")
class TestContractCommands:

    def _create(self, value="50000", payment="shokulab_escrow"):
        return invoke(
            "create", "-t", "food_trading",
            "-d", json.dumps(FOOD_TRADING_FIELDS),
            "-v", value, "-p", payment,
            "--by", "owner-a", "--to", "owner-b",
            "--party-a", "八百屋みどり", "--party-b", "レストラン青空",
            "--json",
        )

    def test_unverified_creator_denied(self):
        result = self._create()
        assert result.exit_code == 1
        assert "contract_not_allowed" in result.stdout

    def test_create_and_agree(self):
        assert invoke("verify", "owner-a", "verified").exit_code == 0

        contract = last_json(self._create(value="50,000"))
        assert contract["status"] == "pending"
        assert contract["content"]["contractValue"] == 50000

        result = invoke("respond", contract["id"], "--actor", "owner-a", "--decision", "agree")
        assert result.exit_code == 1

        result = invoke("respond", contract["id"], "--actor", "owner-b", "--decision", "agree")
        assert result.exit_code == 0
        assert "agreed" in result.stdout

        shown = last_json(invoke("show", contract["id"], "--json"))
        assert shown["contract"]["status"] == "agreed"
        assert shown["escrow_transaction"]["fee"] == 1800

    def test_bad_decision(self):
        result = invoke("respond", "anything", "--actor", "owner-b", "--decision", "maybe")
        assert result.exit_code == 1

    def test_unknown_level(self):
        assert invoke("verify", "owner-a", "gold").exit_code == 1

    def test_show_unknown(self):
        assert invoke("show", "missing").exit_code == 1

    def test_export_pdf(self, tmp_path):
        invoke("verify", "owner-a", "verified")
        contract = last_json(self._create(payment="cash"))

        output = tmp_path / "out" / "contract.pdf"
        result = invoke("export-pdf", contract["id"], "-o", str(output))
        assert result.exit_code == 0
        assert output.read_bytes().startswith(b"%PDF")
