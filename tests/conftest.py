"""
Shared test fixtures: SQLite test database, test client, catalog seeding,
and in-memory domain objects for the pure engine tests.

Catalog used throughout (one organization):
- 4x4 Post (Posts) $45.00, 2x4 Rail (Rails) $3.50,
  Gate Hinge (Hardware) $12.00, Gravity Latch (Hardware) $25.00
- "6ft Privacy" fence: 0.125 posts + 3 rails per linear foot
- "Walk Gate": 2 hinges + 1 latch + 2 posts per gate
- Default pricing config: $50/h, 0.5 h per linear meter, 10% contingency,
  20% profit, height tiers [0, 1.8] 1.0 / [1.81, 2.1] 1.25 / [2.11, -] 1.5
"""

import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from fencequote import models
from fencequote.database import Base, get_db
from fencequote.main import app
from fencequote.pricing import domain


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# ============================================================
# Database seeding
# ============================================================

def _seed_organization(db, name="Acme Fence Co"):
    org = models.Organization(name=name)
    db.add(org)
    db.flush()

    post = models.Component(organization_id=org.id, name="4x4 Post", category="Posts",
                            sku="PST-44", unit_price=Decimal("45.00"))
    rail = models.Component(organization_id=org.id, name="2x4 Rail", category="Rails",
                            sku="RL-24", unit_price=Decimal("3.50"))
    hinge = models.Component(organization_id=org.id, name="Gate Hinge", category="Hardware",
                             sku="HNG-1", unit_price=Decimal("12.00"))
    latch = models.Component(organization_id=org.id, name="Gravity Latch", category="Hardware",
                             unit_price=Decimal("25.00"))
    db.add_all([post, rail, hinge, latch])
    db.flush()

    fence_type = models.FenceType(organization_id=org.id, name="6ft Privacy", height_feet=Decimal("6"),
                                  price_per_linear_foot=Decimal("25.00"))
    fence_type.components = [
        models.FenceComponent(component_id=post.id, quantity_per_linear_foot=Decimal("0.125"), position=0),
        models.FenceComponent(component_id=rail.id, quantity_per_linear_foot=Decimal("3"), position=1),
    ]
    gate_type = models.GateType(organization_id=org.id, name="Walk Gate", width_feet=Decimal("4"),
                                height_feet=Decimal("6"), base_price=Decimal("350.00"))
    gate_type.components = [
        models.GateComponent(component_id=hinge.id, quantity_per_gate=Decimal("2"), position=0),
        models.GateComponent(component_id=latch.id, quantity_per_gate=Decimal("1"), position=1),
        models.GateComponent(component_id=post.id, quantity_per_gate=Decimal("2"), position=2),
    ]
    db.add_all([fence_type, gate_type])

    config = models.PricingConfig(
        organization_id=org.id,
        name="Standard",
        labor_rate_per_hour=Decimal("50"),
        hours_per_linear_meter=Decimal("0.5"),
        contingency_percentage=Decimal("0.10"),
        profit_margin_percentage=Decimal("0.20"),
        is_default=True,
    )
    config.height_tiers = [
        models.HeightTier(min_height_meters=Decimal("0"), max_height_meters=Decimal("1.8"),
                          multiplier=Decimal("1.0"), description="Standard"),
        models.HeightTier(min_height_meters=Decimal("1.81"), max_height_meters=Decimal("2.1"),
                          multiplier=Decimal("1.25"), description="Tall"),
        models.HeightTier(min_height_meters=Decimal("2.11"), max_height_meters=None,
                          multiplier=Decimal("1.5"), description="Extra tall"),
    ]
    db.add(config)
    db.commit()

    return {
        "org_id": org.id,
        "post_id": post.id,
        "rail_id": rail.id,
        "hinge_id": hinge.id,
        "latch_id": latch.id,
        "fence_type_id": fence_type.id,
        "gate_type_id": gate_type.id,
        "pricing_config_id": config.id,
    }


def _add_job(db, org_id, fence_type_id=None, fence_feet=None, gate_type_id=None, gates=None,
             total_linear_feet=None, extra_lines=(), customer_name="Jane Homeowner"):
    job = models.Job(
        organization_id=org_id,
        name="Backyard fence",
        customer_name=customer_name,
        customer_email="jane@example.com",
        customer_phone="555-0100",
        installation_address="12 Elm St\nSpringfield",
        total_linear_feet=Decimal(str(total_linear_feet if total_linear_feet is not None else (fence_feet or 0))),
    )
    lines = []
    if fence_feet is not None:
        lines.append(models.JobLineItem(item_type=models.LineItemType.FENCE, fence_type_id=fence_type_id,
                                        description="Privacy fence run", quantity=Decimal(str(fence_feet))))
    if gates is not None:
        lines.append(models.JobLineItem(item_type=models.LineItemType.GATE, gate_type_id=gate_type_id,
                                        description="Walk gates", quantity=Decimal(str(gates))))
    lines.extend(extra_lines)
    for position, line in enumerate(lines):
        line.position = position
    job.line_items = lines
    db.add(job)
    db.commit()
    return job.id


@pytest.fixture
def catalog(db):
    """Seeded organization; see module docstring."""
    return _seed_organization(db)


@pytest.fixture
def make_job(db, catalog):
    """Factory: make_job(fence_feet=100, gates=2, ...) -> job id in the seeded organization."""
    def _make(fence_feet=None, gates=None, **kwargs):
        kwargs.setdefault("fence_type_id", catalog["fence_type_id"])
        kwargs.setdefault("gate_type_id", catalog["gate_type_id"])
        return _add_job(db, catalog["org_id"], fence_feet=fence_feet, gates=gates, **kwargs)
    return _make


@pytest.fixture
def other_organization(db):
    """A second tenant with its own catalog."""
    return _seed_organization(db, name="Rival Fencing")


@pytest.fixture
def headers(catalog):
    return {"X-Organization-Id": catalog["org_id"]}


# ============================================================
# In-memory domain objects
# ============================================================

@pytest.fixture
def post():
    return domain.Component(id="c-post", name="4x4 Post", category="Posts", unit_price=Decimal("45.00"), sku="PST-44")


@pytest.fixture
def rail():
    return domain.Component(id="c-rail", name="2x4 Rail", category="Rails", unit_price=Decimal("3.50"), sku="RL-24")


@pytest.fixture
def hinge():
    return domain.Component(id="c-hinge", name="Gate Hinge", category="Hardware", unit_price=Decimal("12.00"))


@pytest.fixture
def fence_type(post, rail):
    return domain.FenceType(
        id="ft-privacy",
        name="6ft Privacy",
        height_feet=Decimal("6"),
        requirements=[
            domain.ComponentRequirement(post, Decimal("0.125")),
            domain.ComponentRequirement(rail, Decimal("3")),
        ],
    )


@pytest.fixture
def gate_type(hinge, post):
    return domain.GateType(
        id="gt-walk",
        name="Walk Gate",
        width_feet=Decimal("4"),
        height_feet=Decimal("6"),
        requirements=[
            domain.ComponentRequirement(hinge, Decimal("2")),
            domain.ComponentRequirement(post, Decimal("2")),
        ],
    )


@pytest.fixture
def pricing_config():
    return domain.PricingConfig(
        id="pc-standard",
        organization_id="org-1",
        name="Standard",
        labor_rate_per_hour=Decimal("50"),
        hours_per_linear_meter=Decimal("0.5"),
        contingency_percentage=Decimal("0.10"),
        profit_margin_percentage=Decimal("0.20"),
        is_default=True,
        height_tiers=[
            domain.HeightTier(Decimal("0"), Decimal("1.8"), Decimal("1.0")),
            domain.HeightTier(Decimal("1.81"), Decimal("2.1"), Decimal("1.25")),
            domain.HeightTier(Decimal("2.11"), None, Decimal("1.5")),
        ],
    )


@pytest.fixture
def fence_job(fence_type):
    """100 ft of privacy fence, nothing else."""
    return domain.Job(
        id="job-1",
        organization_id="org-1",
        name="Backyard fence",
        customer_name="Jane Homeowner",
        total_linear_feet=Decimal("100"),
        line_items=[domain.FenceLineItem("Privacy fence run", Decimal("100"), fence_type)],
    )
