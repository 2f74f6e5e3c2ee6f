"""Contract document generator. Merges a template and its field values with the mandatory clauses"""

import logging
import re
from datetime import datetime
from typing import Mapping, Optional

from shokulab.models.template import ContractField, ContractTemplate, MandatoryClauses
from shokulab.services.templates import (
    CONTRACT_DATE_TOKEN,
    FINAL_CLAUSE_TOKEN,
    MANDATORY_CLAUSES,
    PARTY_A_ALIASES,
    PARTY_B_ALIASES,
    PLATFORM_DISCLAIMER_TOKEN,
)
from shokulab.utils.japanese import TOKEN_PATTERN, format_ja_datetime

logger = logging.getLogger(__name__)

# Rendered in place of a missing or empty field value
NOT_ENTERED = "【未入力】"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def missing_required_fields(
    template: ContractTemplate, field_values: Mapping[str, Optional[str]]
) -> list[ContractField]:
    """Required fields of ``template`` that have no non-blank value."""
    return [f for f in template.required_fields if _is_blank(field_values.get(f.key))]


class DocumentGenerator:
    """Renders the final contract text.

    Rendering never fails: missing values become 【未入力】 and tokens the
    template does not declare are left as they are. Validation of required
    fields is the caller's job (see ContractService).
    """

    def __init__(self, clauses: MandatoryClauses = MANDATORY_CLAUSES, timezone: Optional[str] = None):
        self.clauses = clauses
        self.timezone = timezone

    def build_substitutions(
        self,
        template: ContractTemplate,
        field_values: Mapping[str, Optional[str]],
        party_a: str,
        party_b: str,
        now: datetime,
    ) -> dict[str, str]:
        """Token -> replacement text for one rendering."""
        contract_date = format_ja_datetime(now, self.timezone)

        values = {}
        for alias in PARTY_A_ALIASES:
            values[alias] = party_a
        for alias in PARTY_B_ALIASES:
            values[alias] = party_b

        for field in template.custom_fields:
            value = field_values.get(field.key)
            values[field.key] = NOT_ENTERED if _is_blank(value) else str(value)

        values[PLATFORM_DISCLAIMER_TOKEN] = self._fill_date(self.clauses.platform_disclaimer, contract_date)
        values[FINAL_CLAUSE_TOKEN] = self._fill_date(self.clauses.final_clause, contract_date)
        values[CONTRACT_DATE_TOKEN] = contract_date
        return values

    def generate(
        self,
        template: ContractTemplate,
        field_values: Mapping[str, Optional[str]],
        party_a: str,
        party_b: str,
        now: datetime,
    ) -> str:
        """Produce the contract text.

        All tokens are replaced in a single pass over the template text, so
        user input that happens to contain ``{...}`` is inserted literally.
        That includes ``{contractDate}``: only the date tokens written in the
        mandatory clauses and the template itself receive the contract date.
        """
        values = self.build_substitutions(template, field_values, party_a, party_b, now)

        def replace(match: re.Match) -> str:
            return values.get(match.group(1), match.group(0))

        content = TOKEN_PATTERN.sub(replace, template.template)
        logger.debug(f"Generated '{template.id}' contract text ({len(content)} chars)")
        return content

    @staticmethod
    def _fill_date(text: str, contract_date: str) -> str:
        return text.replace("{" + CONTRACT_DATE_TOKEN + "}", contract_date)
