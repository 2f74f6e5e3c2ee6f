"""Tests for contract text generation."""

from datetime import datetime, timezone

import pytest

from shokulab.models.template import ContractField, ContractTemplate
from shokulab.services.generator import NOT_ENTERED, DocumentGenerator, missing_required_fields
from shokulab.services.templates import CONTRACT_TEMPLATES, MANDATORY_CLAUSES, TemplateRegistry
from shokulab.utils.japanese import format_ja_datetime

from conftest import FIXED_NOW, FOOD_TRADING_FIELDS


@pytest.fixture
def generator():
    return DocumentGenerator()


@pytest.fixture
def food_trading():
    return TemplateRegistry().get_template("food_trading")


class TestGenerate:

    @pytest.mark.parametrize("template", CONTRACT_TEMPLATES, ids=lambda t: t.id)
    def test_complete_values_leave_no_tokens(self, generator, template):
        values = {f.key: f"値_{f.key}" for f in template.custom_fields}
        content = generator.generate(template, values, "甲商店", "乙食堂", FIXED_NOW)

        assert "{" not in content and "}" not in content
        assert NOT_ENTERED not in content
        assert "甲商店" in content
        assert "乙食堂" in content
        for key in template.field_keys:
            assert f"値_{key}" in content

    @pytest.mark.parametrize("template", CONTRACT_TEMPLATES, ids=lambda t: t.id)
    def test_mandatory_clauses_included(self, generator, template):
        content = generator.generate(template, {}, "甲", "乙", FIXED_NOW)
        assert "第9条（プラットフォーム免責・記録保持）" in content
        assert "第10条（その他）" in content
        assert "契約締結日時：2025/7/1 9:05:03" in content

    def test_food_trading_text(self, generator, food_trading):
        content = generator.generate(food_trading, FOOD_TRADING_FIELDS, "八百屋みどり", "レストラン青空", FIXED_NOW)
        assert content.startswith("食材売買契約書\n")
        assert "売主：八百屋みどり（以下「甲」という）" in content
        assert "買主：レストラン青空（以下「乙」という）" in content
        assert "商品名：新鮮野菜セット" in content

    def test_missing_values_marked_not_entered(self, generator, food_trading):
        values = dict(FOOD_TRADING_FIELDS, product="", quantity="   ")
        del values["qualityStandards"]
        content = generator.generate(food_trading, values, "甲", "乙", FIXED_NOW)

        assert f"商品名：{NOT_ENTERED}" in content
        assert f"数量：{NOT_ENTERED}" in content
        assert f"第5条（品質基準）\n{NOT_ENTERED}" in content

    def test_user_braces_are_literal(self, generator, food_trading):
        values = dict(FOOD_TRADING_FIELDS, product="{contractDate}{buyerName}")
        content = generator.generate(food_trading, values, "甲", "乙", FIXED_NOW)
        assert "商品名：{contractDate}{buyerName}" in content
        assert content.count("2025/7/1 9:05:03") == 1

    def test_undeclared_token_passes_through(self, generator):
        template = ContractTemplate(
            id="loose",
            title="t",
            user_friendly_title="t",
            description="t",
            custom_fields=(ContractField(key="item", label="品目"),),
            template="{item} / {mystery} / {lender}",
        )
        content = generator.generate(template, {"item": "鍋"}, "甲", "乙", FIXED_NOW)
        assert content == "鍋 / {mystery} / 甲"

    def test_contract_date_uses_timezone(self, food_trading):
        utc_now = datetime(2025, 6, 30, 15, 30, 0, tzinfo=timezone.utc)
        content = DocumentGenerator(timezone="Asia/Tokyo").generate(
            food_trading, FOOD_TRADING_FIELDS, "甲", "乙", utc_now
        )
        assert "契約締結日時：2025/7/1 0:30:00" in content

    def test_clauses_are_configurable(self, food_trading):
        clauses = MANDATORY_CLAUSES.model_copy(update={"final_clause": "締結：{contractDate}"})
        content = DocumentGenerator(clauses).generate(food_trading, FOOD_TRADING_FIELDS, "甲", "乙", FIXED_NOW)
        assert content.endswith("締結：2025/7/1 9:05:03")


class TestMissingRequiredFields:

    def test_complete(self, food_trading):
        assert missing_required_fields(food_trading, FOOD_TRADING_FIELDS) == []

    def test_optional_field_not_required(self, food_trading):
        values = {k: v for k, v in FOOD_TRADING_FIELDS.items() if k != "qualityStandards"}
        assert missing_required_fields(food_trading, values) == []

    def test_blank_values_missing(self, food_trading):
        values = dict(FOOD_TRADING_FIELDS, price=" ", paymentTerms=None)
        keys = [f.key for f in missing_required_fields(food_trading, values)]
        assert keys == ["price", "paymentTerms"]


class TestJaDatetime:

    def test_no_zero_padding_on_date_and_hour(self):
        assert format_ja_datetime(datetime(2025, 1, 2, 3, 4, 5)) == "2025/1/2 3:04:05"

    def test_converts_to_zone(self):
        dt = datetime(2025, 12, 31, 20, 0, 0, tzinfo=timezone.utc)
        assert format_ja_datetime(dt, "Asia/Tokyo") == "2026/1/1 5:00:00"
