"""
HTML, CSV and PDF quote exports.
"""

import csv
import io
from datetime import datetime
from decimal import Decimal

from fencequote.export import CSV_HEADER, build_export_data, render_bom_csv, render_quote_html
from fencequote.pdf_generator import generate_quote_pdf
from fencequote.pricing.bom import BillOfMaterialsAggregator
from fencequote.pricing.cost import CostCalculator
from fencequote.pricing.domain import Quote, QuoteStatus

CREATED = datetime(2026, 3, 14, 9, 0)
VALID_UNTIL = datetime(2026, 4, 13, 9, 0)


def _quote(job, config, **kwargs):
    calc = CostCalculator()
    bom = BillOfMaterialsAggregator(calc).aggregate(job, config)
    breakdown = calc.compute_breakdown(calc.materials_cost(bom), calc.compute_labor(job.total_linear_feet, config),
                                       config)
    return Quote(job_id=job.id, organization_id=job.organization_id, quote_number="Q-20260314-0001",
                 pricing_config_id=config.id, breakdown=breakdown, bill_of_materials=bom,
                 valid_until=VALID_UNTIL, created_at=CREATED, job=job, **kwargs)


# ============================================================
# Export data
# ============================================================

def test_export_data_copies_customer_and_totals(fence_job, pricing_config):
    fence_job.customer_email = "jane@example.com"
    data = build_export_data(_quote(fence_job, pricing_config), "Acme Fence Co")

    assert data.organization_name == "Acme Fence Co"
    assert data.customer_name == "Jane Homeowner"
    assert data.customer_email == "jane@example.com"
    assert data.status == "Draft"
    assert data.version == 1
    assert data.grand_total == Decimal("3134.34")


def test_export_data_without_job(fence_job, pricing_config):
    quote = _quote(fence_job, pricing_config)
    quote.job = None
    data = build_export_data(quote)
    assert data.customer_name == "Unknown"
    assert data.organization_name == "Unknown"
    assert data.customer_phone is None


# ============================================================
# HTML
# ============================================================

def test_html_has_every_section(fence_job, pricing_config):
    fence_job.installation_address = "12 Elm St\nSpringfield"
    quote = _quote(fence_job, pricing_config, terms="50% deposit", notes="Gate on the left")
    html = render_quote_html(build_export_data(quote, "Acme Fence Co"), generated_at=CREATED)

    assert html.startswith("<!DOCTYPE html>")
    assert "<h1>Acme Fence Co</h1>" in html
    assert "Quote #Q-20260314-0001" in html
    assert "March 14, 2026" in html
    assert "Jane Homeowner" in html
    assert '<tr class="category-header"><td colspan="5">Posts</td></tr>' in html
    assert "4x4 Post" in html
    assert "12.50 Each" in html
    assert "$1,612.50" in html
    assert "Grand Total:</span><span>$3,134.34" in html
    assert "Terms and Conditions" in html
    assert "Gate on the left" in html
    assert "This quote is valid until April 13, 2026." in html


def test_html_omits_tax_when_zero(fence_job, pricing_config):
    quote = _quote(fence_job, pricing_config)
    html = render_quote_html(build_export_data(quote))
    assert "Tax:" not in html

    quote.apply_update(tax_amount=Decimal("250.75"))
    html = render_quote_html(build_export_data(quote))
    assert "<span>Tax:</span><span>$250.75</span>" in html
    assert "$3,385.09" in html


def test_html_escapes_user_text(fence_job, pricing_config):
    fence_job.customer_name = "<script>alert(1)</script>"
    html = render_quote_html(build_export_data(_quote(fence_job, pricing_config), "Smith & Sons"))
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "Smith &amp; Sons" in html


def test_html_leaves_out_empty_optional_sections(fence_job, pricing_config):
    html = render_quote_html(build_export_data(_quote(fence_job, pricing_config)))
    assert "Terms and Conditions" not in html
    assert "Email:" not in html


# ============================================================
# CSV
# ============================================================

def test_csv_rows_then_summary(fence_job, pricing_config):
    text = render_bom_csv(build_export_data(_quote(fence_job, pricing_config)))
    rows = list(csv.reader(io.StringIO(text)))

    assert rows[0] == CSV_HEADER
    # grouped by category name, so Labor sorts ahead of Posts
    assert [row[0] for row in rows[1:4]] == ["Labor", "Posts", "Rails"]
    assert rows[1] == ["Labor", "Installation Labor (100.00 linear feet)", "", "1.00", "Job", "762.00", "762.00"]
    assert rows[2] == ["Posts", "4x4 Post", "PST-44", "12.50", "Each", "45.00", "562.50"]
    assert rows[3] == ["Rails", "2x4 Rail", "RL-24", "300.00", "Each", "3.50", "1050.00"]
    assert rows[4] == []
    summary = {row[0]: row[-1] for row in rows[5:]}
    assert summary == {
        "Materials Cost": "1612.50",
        "Labor Cost": "762.00",
        "Subtotal": "2374.50",
        "Contingency": "237.45",
        "Profit": "522.39",
        "Grand Total": "3134.34",
    }


def test_csv_lists_tax_when_present(fence_job, pricing_config):
    quote = _quote(fence_job, pricing_config, tax_amount=Decimal("10"))
    rows = list(csv.reader(io.StringIO(render_bom_csv(build_export_data(quote)))))
    assert ["Tax", "", "", "", "", "", "10.00"] in rows
    assert rows[-1] == ["Grand Total", "", "", "", "", "", "3144.34"]


def test_csv_quotes_fields_with_commas(fence_job, pricing_config):
    fence_job.total_linear_feet = Decimal("1250")
    text = render_bom_csv(build_export_data(_quote(fence_job, pricing_config)))
    # "Installation Labor (1,250.00 linear feet)" holds a comma
    assert '"Installation Labor (1,250.00 linear feet)"' in text
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1][1] == "Installation Labor (1,250.00 linear feet)"


# ============================================================
# PDF
# ============================================================

def test_pdf_bytes(fence_job, pricing_config):
    fence_job.installation_address = "12 Elm St\nSpringfield"
    quote = _quote(fence_job, pricing_config, terms="Net 30", notes="Call before arrival",
                   status=QuoteStatus.SENT, tax_amount=Decimal("5"))
    pdf = generate_quote_pdf(build_export_data(quote, "Acme Fence Co"))
    assert isinstance(pdf, bytes)
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_pdf_handles_non_latin_text(fence_job, pricing_config):
    fence_job.customer_name = "Zo\u00eb \u201cZ\u201d O\u2019Neil \u2014 \u2713"
    pdf = generate_quote_pdf(build_export_data(_quote(fence_job, pricing_config), "Acme Fence Co"))
    assert pdf.startswith(b"%PDF")
