"""
Pytest configuration and fixtures per i test del CRM.

Le righe ORM sono simulate con classi mock semplici: i service vengono
testati contro un AsyncSession mock, senza database.
"""

import datetime
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from crm.schemas.catalog import BillingType
from crm.schemas.quote import SelectedService


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    return db


def scalar_result(value):
    """Risultato di db.execute per scalar_one_or_none()."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


# ============================================================
# Mock dei modelli
# ============================================================


class MockUser:
    """Mock di AppUser."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.name = kwargs.get('name', 'Ana Souza')
        self.email = kwargs.get('email', 'ana@conexhub.com.br')
        self.role = kwargs.get('role', 'user')
        self.is_active = kwargs.get('is_active', True)


class MockClient:
    """Mock del modello Client."""
    def __init__(self, **kwargs):
        now = datetime.datetime.now(datetime.timezone.utc)
        self.id = kwargs.get('id', uuid.uuid4())
        self.name = kwargs.get('name', 'Maria Silva')
        self.email = kwargs.get('email', 'maria@empresa.com.br')
        self.company = kwargs.get('company', 'Empresa Exemplo')
        self.phone = kwargs.get('phone', '(11) 98765-4321')
        self.created_by = kwargs.get('created_by', None)
        self.created_at = kwargs.get('created_at', now)
        self.updated_at = kwargs.get('updated_at', now)


class MockProposalItem:
    """Mock di ProposalItem (riga congelata)."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.position = kwargs.get('position', 0)
        self.service_id = kwargs.get('service_id', 'website')
        self.name = kwargs.get('name', 'Site Institucional')
        self.description = kwargs.get('description', 'Site profissional')
        self.base_price = kwargs.get('base_price', Decimal("2500.00"))
        self.quantity = kwargs.get('quantity', 1)
        self.custom_price = kwargs.get('custom_price', None)
        self.discount = kwargs.get('discount', Decimal("0"))
        self.discount_percentage = kwargs.get('discount_percentage', Decimal("0"))
        self.discount_type = kwargs.get('discount_type', 'percentage')
        self.features = kwargs.get('features', ['Design responsivo profissional'])
        self.category = kwargs.get('category', 'Web Design')
        self.icon = kwargs.get('icon', '🌐')
        self.is_custom = kwargs.get('is_custom', False)
        self.billing_type = kwargs.get('billing_type', 'one_time')


class MockProposal:
    """Mock di Proposal."""
    def __init__(self, **kwargs):
        now = datetime.datetime.now(datetime.timezone.utc)
        self.id = kwargs.get('id', uuid.uuid4())
        self.title = kwargs.get('title', 'Proposta Site')
        self.amount = kwargs.get('amount', Decimal("4085.00"))
        self.client = kwargs.get('client', None)
        self.client_id = kwargs.get('client_id', self.client.id if self.client else None)
        self.owner = kwargs.get('owner', None)
        self.owner_id = kwargs.get('owner_id', self.owner.id if self.owner else uuid.uuid4())
        self.status = kwargs.get('status', 'Enviada')
        self.notes = kwargs.get('notes', None)
        self.expected_close_date = kwargs.get('expected_close_date', None)
        self.payment_type = kwargs.get('payment_type', 'cash')
        self.cash_discount_percentage = kwargs.get('cash_discount_percentage', Decimal("5"))
        self.installment_number = kwargs.get('installment_number', 2)
        self.installment_value = kwargs.get('installment_value', None)
        self.manual_installment_total = kwargs.get('manual_installment_total', None)
        self.is_validity_enabled = kwargs.get('is_validity_enabled', True)
        self.validity_days = kwargs.get('validity_days', 30)
        self.proposal_logo_url = kwargs.get('proposal_logo_url', None)
        self.proposal_gradient_theme = kwargs.get('proposal_gradient_theme', 'conexhub')
        self.share_token = kwargs.get('share_token', 'token-condivisione')
        self.created_at = kwargs.get('created_at', now)
        self.updated_at = kwargs.get('updated_at', now)
        self.services = kwargs.get('services', [])


@pytest.fixture
def mock_user():
    return MockUser()


@pytest.fixture
def mock_client():
    return MockClient()


@pytest.fixture
def mock_proposal(mock_client, mock_user):
    """Proposta con una riga una tantum e una mensile."""
    return MockProposal(
        client=mock_client,
        owner=mock_user,
        services=[
            MockProposalItem(),
            MockProposalItem(
                position=1,
                service_id='social-media',
                name='Social Media',
                base_price=Decimal("1000.00"),
                quantity=2,
                discount=Decimal("200.00"),
                discount_percentage=Decimal("10.00"),
                category='Design',
                icon='📱',
                billing_type='monthly',
            ),
        ],
    )


# ============================================================
# Righe del carrello
# ============================================================


def make_line(service_id: str = "website", base_price: str = "2500", **kwargs) -> SelectedService:
    """Crea una riga del carrello con i campi minimi."""
    data = {
        "id": service_id,
        "name": kwargs.pop("name", service_id.title()),
        "base_price": Decimal(base_price),
        "category": kwargs.pop("category", "Web Design"),
        "billing_type": kwargs.pop("billing_type", BillingType.ONE_TIME),
    }
    data.update(kwargs)
    return SelectedService(**data)


@pytest.fixture
def line_factory():
    """Factory di righe del carrello."""
    return make_line


@pytest.fixture
def example_cart():
    """
    Carrello di riferimento:
    2500 una tantum + 2 × 1000 mensili con 200 di sconto.
    """
    return [
        make_line("website", "2500"),
        make_line(
            "social-media",
            "1000",
            quantity=2,
            discount=Decimal("200"),
            billing_type=BillingType.MONTHLY,
        ),
    ]
