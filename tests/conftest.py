import pytest

from services.tax_processor import TaxProcessor
from services.validation_engine import ValidationEngine


@pytest.fixture(scope="function")
def validation_engine() -> ValidationEngine:
    return ValidationEngine()


@pytest.fixture(scope="function")
def tax_processor() -> TaxProcessor:
    return TaxProcessor()
