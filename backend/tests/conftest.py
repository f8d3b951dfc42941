"""Pytest configuration and fixtures."""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool

from pos_pricing.api.deps import get_db
from pos_pricing.main import app
# Import all models to ensure they're registered with SQLModel.metadata
from pos_pricing.models import (
    Promotion as PromotionRow,
    PromotionBranch,
    PromotionProduct,
    PromotionCustomerTag,
)
from pos_pricing.services.domain import (
    CartLine,
    DiscountType,
    OrderContext,
    OrderType,
    Promotion,
    PromotionType,
    Weekday,
)

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

UTC = ZoneInfo("UTC")
ALL_DAYS = frozenset(Weekday)
ALL_ORDER_TYPES = frozenset(OrderType)

# 2026-10-16 is a Friday
FRIDAY = date(2026, 10, 16)
SATURDAY = date(2026, 10, 17)


def make_promotion(**overrides) -> Promotion:
    """BASIC 10% whole-order promotion for branch b1, open all year, all day"""
    fields = dict(
        id="p1",
        name="Promo",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 12, 31),
        start_time=0,
        end_time=1439,
        days=ALL_DAYS,
        order_types=ALL_ORDER_TYPES,
        branch_ids={"b1"},
        promotion_type=PromotionType.BASIC,
        basic_discount_type=DiscountType.PERCENT,
        basic_discount_value=Decimal("10"),
    )
    fields.update(overrides)
    return Promotion(**fields)


def make_line(line_id="l1", product_size_id="s1", quantity=1, price="10.00", rate="0.15", modifier="0") -> CartLine:
    return CartLine(
        line_id=line_id,
        product_size_id=product_size_id,
        quantity=quantity,
        unit_price_gross=Decimal(price),
        tax_rate=Decimal(rate),
        modifier_price_gross=Decimal(modifier),
    )


def make_ctx(when: datetime = None, branch_id="b1", order_type=OrderType.DINE_IN, tags=()) -> OrderContext:
    when = when or datetime(2026, 10, 16, 12, 0)
    return OrderContext.at(branch_id, order_type, when.replace(tzinfo=timezone.utc), UTC, tags)


def add_promotion(
    db: Session,
    id: str = "p1",
    branch_ids=("b1",),
    product_size_ids=(),
    customer_tag_ids=(),
    **fields,
) -> PromotionRow:
    """Store a promotion row with its link tables"""
    today = date.today()
    values = dict(
        id=id,
        name=f"Promo {id}",
        start_date=today - timedelta(days=30),
        end_date=today + timedelta(days=30),
        promotion_type=PromotionType.BASIC,
        basic_discount_type=DiscountType.PERCENT,
        basic_discount_value=Decimal("10"),
    )
    values.update(fields)
    row = PromotionRow(**values)
    db.add(row)
    for branch_id in branch_ids:
        db.add(PromotionBranch(promotion_id=id, branch_id=branch_id))
    for size_id in product_size_ids:
        db.add(PromotionProduct(promotion_id=id, product_size_id=size_id))
    for tag_id in customer_tag_ids:
        db.add(PromotionCustomerTag(promotion_id=id, tag_id=tag_id))
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    with Session(db_engine) as session:
        yield session


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
