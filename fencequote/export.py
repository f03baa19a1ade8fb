"""
Quote exports: HTML quote document and BOM spreadsheet.

Both renderers work off QuoteExportData, a flat read-only projection of a
quote with its customer details and current BOM. Amounts are rounded to
cents here and nowhere earlier.
"""

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from html import escape
from typing import List, Optional

from .pricing.domain import ZERO, BillOfMaterialsItem, Quote
from .pricing.money import fmt_money, fmt_quantity, to_cents

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class QuoteExportData:
    quote_id: str
    quote_number: str
    organization_name: str
    customer_name: str
    status: str
    version: int
    materials_cost: Decimal
    labor_cost: Decimal
    subtotal: Decimal
    contingency_amount: Decimal
    profit_amount: Decimal
    total_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    valid_until: datetime
    created_at: datetime
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    installation_address: Optional[str] = None
    terms: Optional[str] = None
    notes: Optional[str] = None
    bom_items: List[BillOfMaterialsItem] = field(default_factory=list)

    def ordered_bom(self) -> List[BillOfMaterialsItem]:
        """BOM rows grouped by category, aggregation order kept inside a category."""
        return sorted(self.bom_items, key=lambda item: (item.category, item.sort_order))


def build_export_data(quote: Quote, organization_name: Optional[str] = None,
                      valid_days: int = 30) -> QuoteExportData:
    """
    Flatten a quote for rendering.

    Customer fields come from the quote's job; a quote whose job is gone
    renders with an "Unknown" customer.
    """
    job = quote.job
    return QuoteExportData(
        quote_id=quote.id,
        quote_number=quote.quote_number,
        organization_name=organization_name or UNKNOWN,
        customer_name=job.customer_name if job else UNKNOWN,
        customer_email=job.customer_email if job else None,
        customer_phone=job.customer_phone if job else None,
        installation_address=job.installation_address if job else None,
        status=quote.status.value.title(),
        version=quote.current_version,
        materials_cost=quote.materials_cost,
        labor_cost=quote.labor_cost,
        subtotal=quote.subtotal,
        contingency_amount=quote.contingency_amount,
        profit_amount=quote.profit_amount,
        total_amount=quote.total_amount,
        tax_amount=quote.tax_amount,
        grand_total=quote.grand_total,
        valid_until=quote.valid_until or (quote.created_at + timedelta(days=valid_days)),
        created_at=quote.created_at,
        terms=quote.terms,
        notes=quote.notes,
        bom_items=list(quote.bill_of_materials),
    )


def _long_date(value: datetime) -> str:
    return value.strftime("%B %d, %Y")


def _paragraph(text: str) -> str:
    return escape(text).replace("\n", "<br>")


HTML_STYLE = """
        body { font-family: Arial, sans-serif; max-width: 800px; margin: 40px auto; padding: 20px; }
        .header { border-bottom: 3px solid #333; padding-bottom: 20px; margin-bottom: 30px; }
        .header h1 { margin: 0; color: #333; }
        .info-section { margin-bottom: 30px; }
        .info-section h2 { color: #555; border-bottom: 1px solid #ddd; padding-bottom: 5px; }
        .info-grid { display: grid; grid-template-columns: 150px 1fr; gap: 10px; }
        .info-label { font-weight: bold; color: #666; }
        table { width: 100%; border-collapse: collapse; margin: 20px 0; }
        th { background-color: #f4f4f4; text-align: left; padding: 12px; border: 1px solid #ddd; }
        td { padding: 10px; border: 1px solid #ddd; }
        .category-header { background-color: #e8e8e8; font-weight: bold; }
        .totals { margin-top: 30px; float: right; width: 300px; }
        .total-row { display: flex; justify-content: space-between; padding: 8px 0; border-bottom: 1px solid #eee; }
        .grand-total { font-size: 1.2em; font-weight: bold; border-top: 2px solid #333; padding-top: 10px; }
        .footer { margin-top: 50px; padding-top: 20px; border-top: 1px solid #ddd; font-size: 0.9em; color: #666; }
"""


def render_quote_html(data: QuoteExportData, generated_at: Optional[datetime] = None) -> str:
    """Standalone HTML quote document, safe to email or print."""
    generated_at = generated_at or datetime.utcnow()
    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '    <meta charset="UTF-8">',
        f"    <title>Quote {escape(data.quote_number)}</title>",
        f"    <style>{HTML_STYLE}    </style>",
        "</head>",
        "<body>",
        '    <div class="header">',
        f"        <h1>{escape(data.organization_name)}</h1>",
        f"        <h2>Quote #{escape(data.quote_number)}</h2>",
        "    </div>",
    ]

    def info_row(label: str, value) -> str:
        return f'            <div class="info-label">{label}:</div><div>{escape(str(value))}</div>'

    lines += [
        '    <div class="info-section">',
        "        <h2>Quote Information</h2>",
        '        <div class="info-grid">',
        info_row("Quote Date", _long_date(data.created_at)),
        info_row("Valid Until", _long_date(data.valid_until)),
        info_row("Status", data.status),
        info_row("Version", data.version),
        "        </div>",
        "    </div>",
    ]

    lines += [
        '    <div class="info-section">',
        "        <h2>Customer Information</h2>",
        '        <div class="info-grid">',
        info_row("Name", data.customer_name),
    ]
    if data.customer_email:
        lines.append(info_row("Email", data.customer_email))
    if data.customer_phone:
        lines.append(info_row("Phone", data.customer_phone))
    if data.installation_address:
        lines.append(info_row("Address", data.installation_address))
    lines += ["        </div>", "    </div>"]

    # Bill of materials, one header row per category
    lines += [
        '    <div class="info-section">',
        "        <h2>Bill of Materials</h2>",
        "        <table>",
        "            <thead>",
        "                <tr>",
        "                    <th>Description</th>",
        "                    <th>SKU</th>",
        '                    <th style="text-align: right;">Quantity</th>',
        '                    <th style="text-align: right;">Unit Price</th>',
        '                    <th style="text-align: right;">Total</th>',
        "                </tr>",
        "            </thead>",
        "            <tbody>",
    ]
    current_category = None
    for item in data.ordered_bom():
        if item.category != current_category:
            current_category = item.category
            lines.append(f'                <tr class="category-header"><td colspan="5">{escape(current_category)}</td></tr>')
        lines += [
            "                <tr>",
            f"                    <td>{escape(item.description)}</td>",
            f"                    <td>{escape(item.sku or '-')}</td>",
            f'                    <td style="text-align: right;">{fmt_quantity(item.quantity)} {escape(item.unit_of_measure)}</td>',
            f'                    <td style="text-align: right;">{fmt_money(item.unit_price)}</td>',
            f'                    <td style="text-align: right;">{fmt_money(item.total_price)}</td>',
            "                </tr>",
        ]
    lines += ["            </tbody>", "        </table>", "    </div>"]

    totals = [
        ("Materials", data.materials_cost),
        ("Labor", data.labor_cost),
        ("Subtotal", data.subtotal),
        ("Contingency", data.contingency_amount),
        ("Profit", data.profit_amount),
    ]
    if data.tax_amount > ZERO:
        totals.append(("Tax", data.tax_amount))
    lines.append('    <div class="totals">')
    for label, amount in totals:
        lines += [
            '        <div class="total-row">',
            f"            <span>{label}:</span><span>{fmt_money(amount)}</span>",
            "        </div>",
        ]
    lines += [
        '        <div class="total-row grand-total">',
        f"            <span>Grand Total:</span><span>{fmt_money(data.grand_total)}</span>",
        "        </div>",
        "    </div>",
        '    <div style="clear: both;"></div>',
    ]

    if data.terms or data.notes:
        lines.append('    <div class="info-section">')
        if data.terms:
            lines += ["        <h2>Terms and Conditions</h2>", f"        <p>{_paragraph(data.terms)}</p>"]
        if data.notes:
            lines += ["        <h2>Notes</h2>", f"        <p>{_paragraph(data.notes)}</p>"]
        lines.append("    </div>")

    lines += [
        '    <div class="footer">',
        f"        <p>This quote is valid until {_long_date(data.valid_until)}.</p>",
        f"        <p>Generated on {_long_date(generated_at)} at {generated_at:%H:%M} UTC</p>",
        "    </div>",
        "</body>",
        "</html>",
    ]
    return "\n".join(lines) + "\n"


CSV_HEADER = ["Category", "Description", "SKU", "Quantity", "Unit of Measure", "Unit Price", "Total Price"]


def _plain(amount) -> str:
    return f"{to_cents(amount):.2f}"


def render_bom_csv(data: QuoteExportData) -> str:
    """
    BOM rows followed by a blank line and the cost summary.

    Summary rows put the label in the first column and the amount in the
    last. Tax is listed only when there is some.
    """
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for item in data.ordered_bom():
        writer.writerow([
            item.category,
            item.description,
            item.sku or "",
            _plain(item.quantity),
            item.unit_of_measure,
            _plain(item.unit_price),
            _plain(item.total_price),
        ])

    writer.writerow([])
    summary = [
        ("Materials Cost", data.materials_cost),
        ("Labor Cost", data.labor_cost),
        ("Subtotal", data.subtotal),
        ("Contingency", data.contingency_amount),
        ("Profit", data.profit_amount),
    ]
    if data.tax_amount > ZERO:
        summary.append(("Tax", data.tax_amount))
    summary.append(("Grand Total", data.grand_total))
    for label, amount in summary:
        writer.writerow([label, "", "", "", "", "", _plain(amount)])
    return out.getvalue()
