"""Contract template catalogue and registry.

The catalogue is a fixed set of four templates. Each template's text refers
to its own custom fields, to the two parties (under template-specific alias
names) and to the mandatory clauses. The registry checks at construction
that every token in every template can be resolved.
"""

import logging
from typing import Iterable, Optional

from shokulab.errors import NotFound, TemplateDefinitionError
from shokulab.models.contract import CONTRACT_VALUE_KEY, PAYMENT_METHOD_KEY
from shokulab.models.template import (
    ContractField,
    ContractTemplate,
    FieldType,
    MandatoryClauses,
)
from shokulab.utils.japanese import find_tokens

logger = logging.getLogger(__name__)

# Party placeholder aliases used across the template families
PARTY_A_ALIASES = ("supplierName", "organizerA", "lender")
PARTY_B_ALIASES = ("buyerName", "organizerB", "borrower")

PLATFORM_DISCLAIMER_TOKEN = "platformDisclaimer"
FINAL_CLAUSE_TOKEN = "finalClause"
CONTRACT_DATE_TOKEN = "contractDate"

RESERVED_TOKENS = frozenset(
    PARTY_A_ALIASES
    + PARTY_B_ALIASES
    + (PLATFORM_DISCLAIMER_TOKEN, FINAL_CLAUSE_TOKEN, CONTRACT_DATE_TOKEN)
)

# Stored alongside the field values in a contract's content
CONTENT_KEYS = frozenset((CONTRACT_VALUE_KEY, PAYMENT_METHOD_KEY))


MANDATORY_CLAUSES = MandatoryClauses(
    platform_disclaimer="""第9条（プラットフォーム免責・記録保持）
1. 本契約における当事者間の取引内容、履行状況、紛争等について、食ラボ運営会社である株式会社リクステップは一切の責任を負わないものとする。
2. 株式会社リクステップは、本契約書および関連する通信記録を適切に保存し、契約不履行等の問題が発生した場合、法的手続きに応じて開示する権利を有する。
3. 当事者は、上記条項に同意の上で本契約を締結するものとする。""",
    final_clause="""第10条（その他）
1. 本契約に関する紛争は、当事者間で誠実に協議して解決するものとする。
2. 本契約は日本法に準拠し、解釈される。

以上、本契約の成立を証するため、当事者が合意の上で本契約書に同意する。

契約締結日時：{contractDate}
食ラボアプリ上での電子契約として記録""",
)


def _field(key: str, label: str, placeholder: str, required: bool = True,
           type: FieldType = FieldType.TEXT) -> ContractField:
    return ContractField(key=key, label=label, type=type, required=required, placeholder=placeholder)


FOOD_TRADING_CONTRACT_TEMPLATE = ContractTemplate(
    id="food_trading",
    title="食材売買契約書",
    user_friendly_title="💰 食材を売買したい",
    description="食材の購入・販売に関する契約",
    custom_fields=(
        _field("product", "商品名・食材名", "例: 新鮮野菜セット、国産牛肉"),
        _field("quantity", "数量・単位", "例: 毎週10kg、月1回50人分"),
        _field("price", "価格", "例: 1kg当たり1,500円、月額50,000円"),
        _field("deliverySchedule", "納期・配送スケジュール", "例: 毎週月曜日午前中、月末締め翌月5日配送"),
        _field("paymentTerms", "支払い条件", "例: 月末締め翌月末払い、配送時現金決済"),
        _field("qualityStandards", "品質基準・規格", "例: 農薬不使用、配送から24時間以内の新鮮度保持",
               required=False, type=FieldType.TEXTAREA),
        _field("contractPeriod", "契約期間", "例: 2025年7月1日〜2025年12月31日（6ヶ月間）"),
    ),
    template="""食材売買契約書

売主：{supplierName}（以下「甲」という）
買主：{buyerName}（以下「乙」という）

甲と乙は、以下の条件で食材売買契約を締結する。

第1条（商品）
甲は乙に対し、以下の食材を供給する。
商品名：{product}
数量：{quantity}

第2条（価格）
本契約における価格は以下の通りとする。
{price}

第3条（納期・配送）
{deliverySchedule}

第4条（支払い条件）
{paymentTerms}

第5条（品質基準）
{qualityStandards}

第6条（契約期間）
{contractPeriod}

第7条（契約の解除）
当事者の一方が本契約に違反し、相当期間を定めて催告しても改善されない場合、相手方は本契約を解除できる。

第8条（損害賠償）
当事者の一方が本契約に違反し、相手方に損害を与えた場合、その損害を賠償しなければならない。

{platformDisclaimer}

{finalClause}""",
)


FOOD_EXCHANGE_CONTRACT_TEMPLATE = ContractTemplate(
    id="food_exchange",
    title="食材・技術交換契約書",
    user_friendly_title="🤝 食材・技術を交換したい",
    description="食材や調理技術の相互交換に関する契約",
    custom_fields=(
        _field("partyAProvides", "あなたが提供するもの", "例: 新鮮野菜10kg/週、特製ソースのレシピ",
               type=FieldType.TEXTAREA),
        _field("partyBProvides", "相手方が提供するもの", "例: 国産牛肉5kg/週、調理技術指導",
               type=FieldType.TEXTAREA),
        _field("exchangeSchedule", "交換スケジュール", "例: 毎週月曜日、月2回、イベント時のみ"),
        _field("evaluationMethod", "価値評価方法", "例: 市場価格ベース、双方合意額、同等の労働時間"),
        _field("exchangePeriod", "交換期間", "例: 2025年7月〜12月、3ヶ月間、継続的"),
    ),
    template="""食材・技術交換契約書

甲：{supplierName}
乙：{buyerName}

甲と乙は、以下の条件で食材・技術の相互交換を行う。

第1条（交換内容）
甲提供物：{partyAProvides}
乙提供物：{partyBProvides}

第2条（交換スケジュール）
{exchangeSchedule}

第3条（価値評価）
{evaluationMethod}

第4条（交換期間）
{exchangePeriod}

第5条（品質保証）
双方は提供する食材・技術について、通常の品質を保証する。

第6条（契約の解除）
当事者の一方が本契約に違反した場合、相手方は契約を解除できる。

{platformDisclaimer}

{finalClause}""",
)


EVENT_CONTRACT_TEMPLATE = ContractTemplate(
    id="event",
    title="イベント協力契約書",
    user_friendly_title="👥 イベント一緒にやりたい",
    description="共同イベント開催に関する契約",
    custom_fields=(
        _field("eventName", "イベント名", "例: 大阪グルメフェスティバル2025"),
        _field("eventDate", "開催日時", "例: 2025年8月15日〜17日 10:00-20:00"),
        _field("venue", "開催場所", "例: 大阪城公園特設会場"),
        _field("roles", "役割分担", "例: 甲：会場設営・運営、乙：食材調達・調理", type=FieldType.TEXTAREA),
        _field("costSharing", "費用分担", "例: 会場費は甲負担、材料費は乙負担", type=FieldType.TEXTAREA),
        _field("revenueSharing", "収益分配", "例: 売上から経費を差し引き、甲60%・乙40%で分配"),
    ),
    template="""イベント協力契約書

主催者A：{organizerA}（以下「甲」という）
主催者B：{organizerB}（以下「乙」という）

甲と乙は、以下の条件で共同イベントを開催する。

第1条（イベント概要）
イベント名：{eventName}
開催日時：{eventDate}
開催場所：{venue}

第2条（役割分担）
{roles}

第3条（費用分担）
{costSharing}

第4条（収益分配）
{revenueSharing}

第5条（責任分担）
各自の担当業務について、各自が責任を負う。

第6条（契約の解除）
やむを得ない事情により、当事者の一方が契約を解除する場合、30日前までに相手方に通知する。

第7条（不可抗力）
天災、政府の指示等により開催が困難になった場合、協議の上で開催中止または延期を決定する。

第8条（損害賠償）
当事者の故意または重過失により相手方に損害を与えた場合、その損害を賠償する。

{platformDisclaimer}

{finalClause}""",
)


EQUIPMENT_CONTRACT_TEMPLATE = ContractTemplate(
    id="equipment",
    title="設備貸借契約書",
    user_friendly_title="🏠 設備を貸し借りしたい",
    description="厨房設備等の貸借に関する契約",
    custom_fields=(
        _field("equipment", "設備名・仕様", "例: 業務用オーブン（メーカー：○○、型番：××）",
               type=FieldType.TEXTAREA),
        _field("usagePeriod", "利用期間", "例: 2025年7月1日〜2025年7月31日（1ヶ月間）"),
        _field("usageTime", "利用時間", "例: 平日9:00-17:00、土日は要相談"),
        _field("rentalFee", "賃借料", "例: 日額5,000円、月額100,000円"),
        _field("deposit", "保証金", "例: 50,000円（契約終了時に返還）", required=False),
        _field("maintenanceRules", "保守・清掃規則", "例: 使用後は清掃して返却、故障時は直ちに連絡",
               type=FieldType.TEXTAREA),
    ),
    template="""設備貸借契約書

貸主：{lender}（以下「甲」という）
借主：{borrower}（以下「乙」という）

甲と乙は、以下の条件で設備貸借契約を締結する。

第1条（貸借設備）
{equipment}

第2条（利用期間）
{usagePeriod}

第3条（利用時間）
{usageTime}

第4条（賃借料）
{rentalFee}

第5条（保証金）
{deposit}

第6条（保守・清掃）
{maintenanceRules}

第7条（故障・損害）
乙の責に帰すべき事由により設備が故障・損傷した場合、乙がその修理費用を負担する。

第8条（契約の解除）
当事者の一方が本契約に違反した場合、相手方は契約を解除できる。

{platformDisclaimer}

{finalClause}""",
)


CONTRACT_TEMPLATES: tuple[ContractTemplate, ...] = (
    FOOD_TRADING_CONTRACT_TEMPLATE,
    FOOD_EXCHANGE_CONTRACT_TEMPLATE,
    EVENT_CONTRACT_TEMPLATE,
    EQUIPMENT_CONTRACT_TEMPLATE,
)


def unresolvable_tokens(template: ContractTemplate) -> list[str]:
    """Tokens in the template text that neither a field nor a reserved name covers."""
    known = RESERVED_TOKENS | set(template.field_keys)
    return [t for t in find_tokens(template.template) if t not in known]


def validate_catalogue(
    templates: Iterable[ContractTemplate],
    clauses: MandatoryClauses = MANDATORY_CLAUSES,
) -> None:
    """Fail fast on a catalogue that would render unresolved tokens.

    Raises:
        TemplateDefinitionError on duplicate template ids, duplicate field
        keys, field keys shadowing reserved tokens, or unknown tokens.
    """
    seen_ids = set()
    for template in templates:
        if template.id in seen_ids:
            raise TemplateDefinitionError(f"Duplicate template id: {template.id}")
        seen_ids.add(template.id)

        keys = template.field_keys
        if len(keys) != len(set(keys)):
            raise TemplateDefinitionError(f"Duplicate field key in template '{template.id}'")

        shadowed = (RESERVED_TOKENS | CONTENT_KEYS).intersection(keys)
        if shadowed:
            raise TemplateDefinitionError(
                f"Template '{template.id}' declares reserved field keys: {sorted(shadowed)}"
            )

        unknown = unresolvable_tokens(template)
        if unknown:
            raise TemplateDefinitionError(
                f"Template '{template.id}' references unknown tokens: {unknown}"
            )

    # The clauses themselves may only use the date token
    for text in (clauses.platform_disclaimer, clauses.final_clause):
        extra = [t for t in find_tokens(text) if t != CONTRACT_DATE_TOKEN]
        if extra:
            raise TemplateDefinitionError(f"Mandatory clause references unknown tokens: {extra}")


class TemplateRegistry:
    """Read-only catalogue of contract templates."""

    def __init__(
        self,
        templates: Iterable[ContractTemplate] = CONTRACT_TEMPLATES,
        clauses: MandatoryClauses = MANDATORY_CLAUSES,
    ):
        templates = tuple(templates)
        validate_catalogue(templates, clauses)
        self._templates = templates
        self._by_id = {t.id: t for t in templates}
        self.clauses = clauses
        logger.debug(f"Template registry loaded {len(templates)} templates")

    def list_templates(self) -> list[ContractTemplate]:
        """All templates, in catalogue order."""
        return list(self._templates)

    def get_template(self, template_id: str) -> ContractTemplate:
        """Get a template by id.

        Raises:
            NotFound if no template has this id
        """
        template = self._by_id.get(template_id)
        if template is None:
            raise NotFound(f"Template not found: {template_id}")
        return template

    def find_template(self, template_id: str) -> Optional[ContractTemplate]:
        return self._by_id.get(template_id)


_registry: Optional[TemplateRegistry] = None


def get_template_registry() -> TemplateRegistry:
    """Process-wide registry over the built-in catalogue."""
    global _registry
    if _registry is None:
        _registry = TemplateRegistry()
    return _registry
