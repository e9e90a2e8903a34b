from decimal import Decimal

import pytest

from gridreport.config import ReportConfig
from gridreport.diagnostics import TemplateErrors

from tests.infrastructure import Customer, Item, Order


@pytest.fixture
def errors() -> TemplateErrors:
    return TemplateErrors()


@pytest.fixture
def config() -> ReportConfig:
    return ReportConfig()


@pytest.fixture
def orders():
    return [
        Order(No=1, Amount=Decimal("10"), Items=[Item("pen", 2), Item("ink", 1)]),
        Order(No=2, Amount=Decimal("30"), Items=[]),
        Order(No=3, Amount=Decimal("20"), Items=[Item("pad", 5)]),
    ]


@pytest.fixture
def customers():
    return [
        Customer(Id=1, Name="Alice", Orders=[
            Order(No=11, Amount=Decimal("5")),
            Order(No=12, Amount=Decimal("7")),
        ]),
        Customer(Id=2, Name="Bob", Orders=[
            Order(No=21, Amount=Decimal("3")),
        ]),
    ]
