"""
Shared pytest fixtures.

The app's engine is built from DATABASE_URL at import time, so the
environment is pointed at a throwaway database before anything from
pharma_erp is imported. Service tests use their own in-memory engine.
"""
import os
import sys
import tempfile

# Ensure the package is importable when running pytest from the backend dir
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

_tmp_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp_db.close()
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_db.name}"
os.environ["LOG_FILE"] = ""

import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from pharma_erp.core.database import create_db_and_tables  # noqa: E402
from pharma_erp.models.inventory import ProcessedInventoryItem  # noqa: E402
from pharma_erp.models.party import Customer, Supplier  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def add_item(engine):
    """Insert a processed-inventory row and return its id."""

    def _add(name: str, quantity: str, unit: str = "kg", **extra) -> str:
        with Session(engine) as s:
            row = ProcessedInventoryItem(name=name, unit=unit, quantity=quantity, **extra)
            s.add(row)
            s.commit()
            return row.id

    return _add


@pytest.fixture
def add_customer(engine):
    def _add(name: str = "Apollo Pharmacy", **fields) -> str:
        with Session(engine) as s:
            row = Customer(name=name, **fields)
            s.add(row)
            s.commit()
            return row.id

    return _add


@pytest.fixture
def add_supplier(engine):
    def _add(name: str = "ChemPharma Ltd", **fields) -> str:
        with Session(engine) as s:
            row = Supplier(name=name, **fields)
            s.add(row)
            s.commit()
            return row.id

    return _add


def stock_of(engine, item_id: str) -> str:
    with Session(engine) as s:
        return s.get(ProcessedInventoryItem, item_id).quantity


@pytest.fixture
def stock(engine):
    return lambda item_id: stock_of(engine, item_id)


def pytest_sessionfinish(session, exitstatus):
    try:
        os.unlink(_tmp_db.name)
    except OSError:
        pass
