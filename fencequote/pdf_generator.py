"""
PDF quote generator.

Renders a QuoteExportData as a customer-facing PDF with fpdf2 (pure Python,
no system dependencies). Sections:
1. Header + quote information
2. Customer
3. Bill of materials, grouped by category
4. Totals
5. Terms and notes
"""

from fpdf import FPDF

from .export import QuoteExportData
from .pricing.domain import ZERO
from .pricing.money import fmt_money, fmt_quantity


def _safe(text: str) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        text
        .replace("\u2022", "-")    # bullet
        .replace("\u2014", " - ")  # em dash
        .replace("\u2013", "-")    # en dash
        .replace("\u201c", '"')    # left double quote
        .replace("\u201d", '"')    # right double quote
        .replace("\u2018", "'")    # left single quote
        .replace("\u2019", "'")    # right single quote
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


class QuotePDF(FPDF):
    """Custom PDF class for quote documents."""

    def __init__(self, organization_name=""):
        super().__init__()
        self.organization_name = organization_name
        self.set_auto_page_break(auto=True, margin=20)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        """Render a section header bar."""
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """Render a table header row. cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "R" if label in ("Qty", "Unit Price", "Total") else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def category_row(self, category, width):
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(232, 232, 232)
        self.cell(width, 5.5, _safe(category), fill=True, new_x="LMARGIN", new_y="NEXT")

    def table_row(self, values, widths):
        """Render a table data row. The last three columns are right-aligned."""
        self.set_font("Helvetica", "", 8)
        for i, (val, width) in enumerate(zip(values, widths)):
            align = "R" if i >= len(widths) - 3 else "L"
            self.cell(width, 5.5, str(val), align=align)
        self.ln()

    def total_row(self, label, amount, bold=False):
        self.set_font("Helvetica", "B" if bold else "", 10)
        self.cell(130, 6, label)
        self.cell(60, 6, fmt_money(amount), align="R")
        self.ln()


def generate_quote_pdf(data: QuoteExportData) -> bytes:
    """
    Generate a PDF quote document.

    Args:
        data: flattened quote, see export.build_export_data

    Returns:
        PDF bytes
    """
    pdf = QuotePDF(organization_name=data.organization_name)
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin  # printable width

    # ── Header ──
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, _safe(data.organization_name), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, f"QUOTE #{_safe(data.quote_number)}", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Date: {data.created_at:%B %d, %Y}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Valid until: {data.valid_until:%B %d, %Y}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Status: {data.status}    Version: {data.version}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # ── Customer ──
    pdf.section_header("CUSTOMER")
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(0, 5, f"Prepared for: {_safe(data.customer_name)}", new_x="LMARGIN", new_y="NEXT")
    for label, value in (("Email", data.customer_email), ("Phone", data.customer_phone),
                         ("Address", data.installation_address)):
        if value:
            pdf.set_x(pdf.l_margin)
            pdf.multi_cell(pw, 5, _safe(f"{label}: {value}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # ── Bill of materials ──
    pdf.section_header("BILL OF MATERIALS")
    cols = [("Description", 75), ("SKU", 30), ("Qty", 30), ("Unit Price", 25), ("Total", 30)]
    widths = [c[1] for c in cols]
    pdf.table_header(cols)

    current_category = None
    for item in data.ordered_bom():
        if item.category != current_category:
            current_category = item.category
            pdf.category_row(current_category, sum(widths))
        desc = item.description[:45] if len(item.description) > 45 else item.description
        pdf.table_row(
            [
                _safe(desc),
                _safe((item.sku or "-")[:18]),
                f"{fmt_quantity(item.quantity)} {_safe(item.unit_of_measure)}",
                fmt_money(item.unit_price),
                fmt_money(item.total_price),
            ],
            widths,
        )
    pdf.ln(4)

    # ── Totals ──
    pdf.section_header("PROJECT TOTAL")
    for label, amount in (("Materials", data.materials_cost), ("Labor", data.labor_cost)):
        pdf.total_row(label, amount)

    pdf.set_draw_color(200, 200, 200)
    pdf.line(pdf.l_margin, pdf.get_y(), pdf.w - pdf.r_margin, pdf.get_y())
    pdf.ln(1)
    pdf.total_row("Subtotal", data.subtotal, bold=True)
    pdf.total_row("Contingency", data.contingency_amount)
    pdf.total_row("Profit", data.profit_amount)
    if data.tax_amount > ZERO:
        pdf.total_row("Tax", data.tax_amount)

    pdf.ln(1)
    pdf.set_fill_color(45, 55, 72)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(130, 10, "  GRAND TOTAL", fill=True)
    pdf.cell(60, 10, f"{fmt_money(data.grand_total)}  ", fill=True, align="R")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(14)

    # ── Terms & notes ──
    for title, text in (("TERMS AND CONDITIONS", data.terms), ("NOTES", data.notes)):
        if text:
            pdf.section_header(title)
            pdf.set_font("Helvetica", "", 8)
            pdf.set_x(pdf.l_margin)
            pdf.multi_cell(pw, 4.5, _safe(text), new_x="LMARGIN", new_y="NEXT")
            pdf.ln(3)

    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.set_x(pdf.l_margin)
    pdf.cell(pw, 4, f"This quote is valid until {data.valid_until:%B %d, %Y}.", new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())
