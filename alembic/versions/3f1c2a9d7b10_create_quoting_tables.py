"""create quoting tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-17 09:12:44.318206

Base revision. Databases created by Base.metadata.create_all() before
Alembic was introduced are stamped at this revision on startup, so each
table is only created when missing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(18, 6)

QUOTE_STATUS = sa.Enum(
    "DRAFT", "PENDING", "SENT", "ACCEPTED", "REJECTED", "EXPIRED", "REVISED",
    name="quotestatus",
)
LINE_ITEM_TYPE = sa.Enum("FENCE", "GATE", "LABOR", "OTHER", name="lineitemtype")


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    if not _table_exists("organizations"):
        op.create_table(
            "organizations",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    # Catalog
    if not _table_exists("components"):
        op.create_table(
            "components",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("sku", sa.String(), nullable=True),
            sa.Column("category", sa.String(), nullable=False),
            sa.Column("unit_of_measure", sa.String(), nullable=True),
            sa.Column("unit_price", MONEY, nullable=True),
            sa.Column("material", sa.String(), nullable=True),
            sa.Column("dimensions", sa.String(), nullable=True),
            *_timestamps(),
        )

    if not _table_exists("fence_types"):
        op.create_table(
            "fence_types",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("height_feet", MONEY, nullable=True),
            sa.Column("material", sa.String(), nullable=True),
            sa.Column("style", sa.String(), nullable=True),
            sa.Column("price_per_linear_foot", MONEY, nullable=True),
            *_timestamps(),
        )

    if not _table_exists("fence_components"):
        op.create_table(
            "fence_components",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("fence_type_id", sa.String(), sa.ForeignKey("fence_types.id"), nullable=False, index=True),
            sa.Column("component_id", sa.String(), sa.ForeignKey("components.id"), nullable=False),
            sa.Column("quantity_per_linear_foot", MONEY, nullable=False),
            sa.Column("position", sa.Integer(), nullable=True),
        )

    if not _table_exists("gate_types"):
        op.create_table(
            "gate_types",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("width_feet", MONEY, nullable=True),
            sa.Column("height_feet", MONEY, nullable=True),
            sa.Column("material", sa.String(), nullable=True),
            sa.Column("style", sa.String(), nullable=True),
            sa.Column("base_price", MONEY, nullable=True),
            *_timestamps(),
        )

    if not _table_exists("gate_components"):
        op.create_table(
            "gate_components",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("gate_type_id", sa.String(), sa.ForeignKey("gate_types.id"), nullable=False, index=True),
            sa.Column("component_id", sa.String(), sa.ForeignKey("components.id"), nullable=False),
            sa.Column("quantity_per_gate", MONEY, nullable=False),
            sa.Column("position", sa.Integer(), nullable=True),
        )

    # Jobs
    if not _table_exists("jobs"):
        op.create_table(
            "jobs",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("customer_name", sa.String(), nullable=False),
            sa.Column("customer_email", sa.String(), nullable=True),
            sa.Column("customer_phone", sa.String(), nullable=True),
            sa.Column("installation_address", sa.Text(), nullable=True),
            sa.Column("total_linear_feet", MONEY, nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )

    if not _table_exists("job_line_items"):
        op.create_table(
            "job_line_items",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("job_id", sa.String(), sa.ForeignKey("jobs.id"), nullable=False, index=True),
            sa.Column("item_type", LINE_ITEM_TYPE, nullable=False),
            sa.Column("fence_type_id", sa.String(), nullable=True),
            sa.Column("gate_type_id", sa.String(), nullable=True),
            sa.Column("description", sa.String(), nullable=False),
            sa.Column("quantity", MONEY, nullable=True),
            sa.Column("unit_price", MONEY, nullable=True),
            sa.Column("total_price", MONEY, nullable=True),
            sa.Column("position", sa.Integer(), nullable=True),
        )

    # Pricing
    if not _table_exists("pricing_configs"):
        op.create_table(
            "pricing_configs",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("labor_rate_per_hour", MONEY, nullable=False),
            sa.Column("hours_per_linear_meter", MONEY, nullable=False),
            sa.Column("contingency_percentage", MONEY, nullable=True),
            sa.Column("profit_margin_percentage", MONEY, nullable=True),
            sa.Column("is_default", sa.Boolean(), nullable=True),
            *_timestamps(),
        )

    if not _table_exists("height_tiers"):
        op.create_table(
            "height_tiers",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("pricing_config_id", sa.String(), sa.ForeignKey("pricing_configs.id"), nullable=False, index=True),
            sa.Column("min_height_meters", MONEY, nullable=False),
            sa.Column("max_height_meters", MONEY, nullable=True),
            sa.Column("multiplier", MONEY, nullable=True),
            sa.Column("description", sa.String(), nullable=True),
        )

    # Quotes
    if not _table_exists("quotes"):
        op.create_table(
            "quotes",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("job_id", sa.String(), sa.ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True, index=True),
            sa.Column("organization_id", sa.String(), sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("pricing_config_id", sa.String(),
                      sa.ForeignKey("pricing_configs.id", ondelete="SET NULL"), nullable=True),
            sa.Column("quote_number", sa.String(), nullable=False),
            sa.Column("current_version", sa.Integer(), nullable=True),
            sa.Column("status", QUOTE_STATUS, nullable=True),
            sa.Column("materials_cost", MONEY, nullable=True),
            sa.Column("labor_cost", MONEY, nullable=True),
            sa.Column("subtotal", MONEY, nullable=True),
            sa.Column("contingency_amount", MONEY, nullable=True),
            sa.Column("profit_amount", MONEY, nullable=True),
            sa.Column("total_amount", MONEY, nullable=True),
            sa.Column("tax_amount", MONEY, nullable=True),
            sa.Column("discount_amount", MONEY, nullable=True),
            sa.Column("discount_rule_id", sa.String(), nullable=True),
            sa.Column("grand_total", MONEY, nullable=True),
            sa.Column("valid_until", sa.DateTime(), nullable=True),
            sa.Column("terms", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("organization_id", "quote_number", name="uq_quotes_org_number"),
        )

    if not _table_exists("bill_of_materials_items"):
        op.create_table(
            "bill_of_materials_items",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("quote_id", sa.String(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True),
            sa.Column("component_id", sa.String(), nullable=True),
            sa.Column("category", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=False),
            sa.Column("sku", sa.String(), nullable=True),
            sa.Column("quantity", MONEY, nullable=True),
            sa.Column("unit_of_measure", sa.String(), nullable=True),
            sa.Column("unit_price", MONEY, nullable=True),
            sa.Column("total_price", MONEY, nullable=True),
            sa.Column("sort_order", sa.Integer(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
        )

    if not _table_exists("quote_versions"):
        op.create_table(
            "quote_versions",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("quote_id", sa.String(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True),
            sa.Column("version_number", sa.Integer(), nullable=False),
            sa.Column("change_summary", sa.Text(), nullable=True),
            sa.Column("materials_cost", MONEY, nullable=True),
            sa.Column("labor_cost", MONEY, nullable=True),
            sa.Column("subtotal", MONEY, nullable=True),
            sa.Column("contingency_amount", MONEY, nullable=True),
            sa.Column("profit_amount", MONEY, nullable=True),
            sa.Column("total_amount", MONEY, nullable=True),
            sa.Column("tax_amount", MONEY, nullable=True),
            sa.Column("grand_total", MONEY, nullable=True),
            sa.Column("bom_snapshot", sa.Text(), nullable=True),
            sa.Column("pricing_config_snapshot", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("created_by", sa.String(), nullable=True),
            sa.UniqueConstraint("quote_id", "version_number", name="uq_quote_versions_quote_version"),
        )


def downgrade() -> None:
    for table_name in [
        "quote_versions", "bill_of_materials_items", "quotes", "height_tiers", "pricing_configs",
        "job_line_items", "jobs", "gate_components", "gate_types", "fence_components", "fence_types",
        "components", "organizations",
    ]:
        if _table_exists(table_name):
            op.drop_table(table_name)
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in ["quotestatus", "lineitemtype"]:
            op.execute(sa.text(f"DROP TYPE IF EXISTS {enum_name}"))
