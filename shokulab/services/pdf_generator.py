"""PDF export of stored contracts with Japanese support

The PDF always renders the contract's frozen ``generated_content``; it never
re-renders the template.
"""

import io
import logging
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from shokulab.models.contract import Contract, ContractStatus
from shokulab.services.fees import ESCROW_METHOD_ID, PAYMENT_METHODS, calculate_fee
from shokulab.utils.japanese import format_ja_datetime, format_yen
from shokulab.utils.pdf_fonts import get_font_name, register_japanese_fonts

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    ContractStatus.PENDING: "承認待ち",
    ContractStatus.AGREED: "合意済み",
    ContractStatus.REJECTED: "拒否済み",
}


class ContractPdfExporter:
    """Render a contract to an A4 PDF"""

    def __init__(self, timezone: Optional[str] = None):
        register_japanese_fonts()
        self.timezone = timezone
        self.font_name = get_font_name()
        self.font_bold = get_font_name(bold=True)
        self._init_styles()

    def _init_styles(self):
        """Initialize paragraph styles"""
        self.styles = {
            'title': ParagraphStyle('Title', fontName=self.font_bold,
                fontSize=14, alignment=TA_CENTER, spaceAfter=12,
                textColor=colors.HexColor('#1a5f7a')),
            'normal': ParagraphStyle('Normal', fontName=self.font_name,
                fontSize=10, leading=15, wordWrap='CJK'),
            'small': ParagraphStyle('Small', fontName=self.font_name,
                fontSize=8, textColor=colors.gray),
        }

    def render(self, contract: Contract) -> bytes:
        """Build the PDF in memory and return its bytes."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2*cm,
            leftMargin=2*cm,
            topMargin=2*cm,
            bottomMargin=2*cm,
            title=contract.title,
        )

        story = [Paragraph(escape(contract.title), self.styles['title'])]
        story.append(self._summary_table(contract))
        story.append(Spacer(1, 16))

        for line in contract.generated_content.splitlines():
            if not line.strip():
                story.append(Spacer(1, 8))
                continue
            story.append(Paragraph(escape(line), self.styles['normal']))

        story.append(Spacer(1, 20))
        story.append(Paragraph(f"契約ID: {escape(contract.id)}", self.styles['small']))

        doc.build(story)
        logger.debug(f"Rendered PDF for contract {contract.id}")
        return buffer.getvalue()

    def export(self, contract: Contract, output_path: str) -> str:
        """Write the PDF to ``output_path`` and return the path."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.render(contract))
        logger.info(f"Exported contract {contract.id} to {path}")
        return str(path)

    def _summary_table(self, contract: Contract) -> Table:
        method = PAYMENT_METHODS.get(contract.payment_method)
        rows = [
            ["状態", STATUS_LABELS[contract.status]],
            ["作成日時", format_ja_datetime(contract.created_at, self.timezone)],
            ["契約金額", format_yen(contract.contract_value)],
            ["支払い方法", method.name if method else contract.payment_method],
        ]
        if contract.payment_method == ESCROW_METHOD_ID:
            breakdown = calculate_fee(contract.contract_value)
            rows.append(["決済手数料", f"{format_yen(breakdown.fee)}（{breakdown.percentage}%）"])
            rows.append(["受取金額", format_yen(breakdown.net_amount)])
        if contract.agreed_at:
            label = "合意日時" if contract.status is ContractStatus.AGREED else "拒否日時"
            rows.append([label, format_ja_datetime(contract.agreed_at, self.timezone)])

        table = Table(rows, colWidths=[4*cm, 12*cm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), self.font_name),
            ('FONTNAME', (0, 0), (0, -1), self.font_bold),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return table
