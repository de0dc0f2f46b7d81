"""
Unit tests per il wizard del preventivo e la registrazione della proposta.
"""

import asyncio
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from crm.core.config import settings
from crm.core.exceptions import BusinessValidationError
from crm.schemas.proposal import ProposalStatus
from crm.schemas.quote import ClientInfo, PaymentConfig, PaymentType, QuoteDraft, WizardStep
from crm.services.catalog import STATIC_SERVICES
from crm.services.quote_engine import QuoteCart
from crm.services.quote_wizard import (
    QuoteWizard,
    build_proposal_data,
    generate_share_link,
    register_proposal,
    snapshot_line,
    validate_step,
)

from conftest import MockClient, MockProposal, make_line


@pytest.fixture
def client_id():
    return uuid.uuid4()


@pytest.fixture
def complete_draft(example_cart, client_id):
    """Bozza con tutti i passi compilati e cliente esistente."""
    return QuoteDraft(
        services=example_cart,
        is_new_client=False,
        selected_client_id=client_id,
        client_info=ClientInfo(id=client_id, name="Maria Silva", email="maria@empresa.com.br"),
        title="Proposta Loja Virtual",
        notes="Entrega em 30 dias",
        payment=PaymentConfig(cash_discount_percentage=Decimal("5")),
    )


# ============================================================
# Validazione dei passi
# ============================================================


class TestValidateStep:
    """Test dei controlli di ciascun passo."""

    def test_services_requires_lines(self):
        with pytest.raises(BusinessValidationError) as exc_info:
            validate_step(WizardStep.SERVICES, QuoteDraft())

        assert exc_info.value.detail == "Selecione pelo menos um serviço para continuar."

    def test_settings_requires_title(self, complete_draft):
        draft = complete_draft.model_copy(update={"title": "   "})

        with pytest.raises(BusinessValidationError) as exc_info:
            validate_step(WizardStep.SETTINGS, draft)

        assert exc_info.value.detail == "O título da proposta é obrigatório."

    def test_settings_installment_without_values(self, complete_draft):
        draft = complete_draft.model_copy(
            update={"payment": PaymentConfig(payment_type=PaymentType.INSTALLMENT, installment_number=3)}
        )

        with pytest.raises(BusinessValidationError) as exc_info:
            validate_step(WizardStep.SETTINGS, draft)

        assert "parcelado" in exc_info.value.detail

    def test_settings_installment_with_manual_total(self, complete_draft):
        draft = complete_draft.model_copy(
            update={
                "payment": PaymentConfig(
                    payment_type=PaymentType.INSTALLMENT,
                    manual_installment_total=Decimal("4500"),
                )
            }
        )

        assert validate_step(WizardStep.SETTINGS, draft).valid is True

    def test_client_requires_name_and_email(self, complete_draft):
        draft = complete_draft.model_copy(update={"client_info": ClientInfo(name="Maria")})

        with pytest.raises(BusinessValidationError) as exc_info:
            validate_step(WizardStep.CLIENT, draft)

        assert exc_info.value.detail == "Nome e e-mail do cliente são obrigatórios."

    def test_review_reports_missing_step(self, complete_draft):
        """Test la revisione indica il primo passo non completato."""
        draft = complete_draft.model_copy(update={"title": ""})

        with pytest.raises(BusinessValidationError) as exc_info:
            validate_step(WizardStep.REVIEW, draft)

        assert exc_info.value.detail == "Por favor, complete todos os passos obrigatórios antes de revisar."
        assert exc_info.value.extra["step"] == "settings"

    def test_review_complete(self, complete_draft):
        result = validate_step(WizardStep.REVIEW, complete_draft)

        assert result.valid is True
        assert result.step == WizardStep.REVIEW


# ============================================================
# Navigazione
# ============================================================


class TestQuoteWizard:
    """Test della navigazione tra i passi."""

    def test_next_step_blocked_on_empty_cart(self):
        wizard = QuoteWizard()

        with pytest.raises(BusinessValidationError):
            wizard.go_to_next_step()

        assert wizard.current_step == WizardStep.SERVICES

    def test_next_step_after_adding_service(self):
        wizard = QuoteWizard()
        wizard.cart.add_service(STATIC_SERVICES[0])

        assert wizard.go_to_next_step() == WizardStep.SETTINGS

    def test_previous_step_stops_at_first(self):
        wizard = QuoteWizard()

        assert wizard.go_to_previous_step() == WizardStep.SERVICES

    def test_set_step_forward_validates_intermediate_steps(self):
        wizard = QuoteWizard(QuoteCart([make_line()]))

        with pytest.raises(BusinessValidationError):
            wizard.set_step(3)

        assert wizard.current_step == WizardStep.SERVICES

    def test_set_step_forward_and_back(self):
        wizard = QuoteWizard(QuoteCart([make_line()]))
        wizard.update_draft(
            title="Proposta",
            client_info=ClientInfo(name="Maria", email="maria@empresa.com.br"),
        )

        assert wizard.set_step(10) == WizardStep.REVIEW
        assert wizard.set_step(-3) == WizardStep.SERVICES

    def test_current_draft_uses_cart_lines(self):
        cart = QuoteCart()
        wizard = QuoteWizard(cart)
        cart.add_service(STATIC_SERVICES[0])

        draft = wizard.current_draft()
        assert [s.id for s in draft.services] == [STATIC_SERVICES[0].id]

    def test_update_draft_ignores_services(self):
        wizard = QuoteWizard(QuoteCart([make_line()]))
        draft = wizard.update_draft(services=[], title="Nova")

        assert draft.title == "Nova"
        assert len(draft.services) == 1

    def test_reset(self):
        wizard = QuoteWizard(QuoteCart([make_line()]))
        wizard.go_to_next_step()
        wizard.reset()

        assert wizard.current_step == WizardStep.SERVICES
        assert len(wizard.cart) == 0


# ============================================================
# Registrazione
# ============================================================


class TestSnapshotLine:
    """Test del congelamento delle righe."""

    def test_custom_features_take_precedence(self):
        line = make_line(features=["A", "B"], custom_features=["Somente A"])

        assert snapshot_line(line).features == ("Somente A",)

    def test_falls_back_to_catalog_features(self):
        line = make_line(features=["A", "B"])

        assert snapshot_line(line).features == ("A", "B")

    def test_emptied_features_stay_empty(self):
        """Test una lista di caratteristiche svuotata non torna al catalogo."""
        cart = QuoteCart()
        cart.add_service(STATIC_SERVICES[0])
        cart.update_service_features(STATIC_SERVICES[0].id, [])

        assert snapshot_line(cart.services[0]).features == ()

    def test_keeps_prices_and_discount(self):
        line = make_line(base_price="1000", quantity=2, custom_price=Decimal("900"), discount=Decimal("100"))
        snapshot = snapshot_line(line)

        assert snapshot.service_id == "website"
        assert snapshot.custom_price == Decimal("900")
        assert snapshot.quantity == 2
        assert snapshot.discount == Decimal("100")


class TestBuildProposalData:
    """Test della costruzione dei dati di registrazione."""

    def test_existing_client(self, mock_db, complete_draft, client_id):
        owner_id = uuid.uuid4()

        data = asyncio.run(build_proposal_data(mock_db, complete_draft, owner_id))

        assert data.client_id == client_id
        assert data.owner_id == owner_id
        assert data.amount == Decimal("4085.00")
        assert data.status == ProposalStatus.ENVIADA.value
        assert data.notes == "Entrega em 30 dias"
        assert [s.service_id for s in data.services] == ["website", "social-media"]
        mock_db.add.assert_not_called()

    def test_default_draft_selects_existing_client(self, mock_db, example_cart, client_id):
        """Test di default il wizard usa un cliente esistente senza crearne uno."""
        client_service = MagicMock()
        client_service.create = AsyncMock()
        draft = QuoteDraft(services=example_cart, selected_client_id=client_id, title="Proposta")

        data = asyncio.run(build_proposal_data(mock_db, draft, uuid.uuid4(), client_service=client_service))

        assert draft.is_new_client is False
        assert data.client_id == client_id
        client_service.create.assert_not_called()

    def test_no_client_aborts(self, mock_db, complete_draft):
        draft = complete_draft.model_copy(update={"selected_client_id": None})

        assert asyncio.run(build_proposal_data(mock_db, draft, uuid.uuid4())) is None

    def test_new_client_is_created(self, mock_db, complete_draft):
        new_client = MockClient(name="Maria Silva")
        client_service = MagicMock()
        client_service.create = AsyncMock(return_value=new_client)
        draft = complete_draft.model_copy(update={"is_new_client": True, "selected_client_id": None})
        owner_id = uuid.uuid4()

        data = asyncio.run(build_proposal_data(mock_db, draft, owner_id, client_service=client_service))

        assert data.client_id == new_client.id
        created = client_service.create.call_args
        assert created.args[1].name == "Maria Silva"
        assert created.kwargs["created_by"] == owner_id

    def test_new_client_with_invalid_email(self, mock_db, complete_draft):
        draft = complete_draft.model_copy(
            update={"is_new_client": True, "client_info": ClientInfo(name="Maria", email="non-valida")}
        )

        with pytest.raises(BusinessValidationError):
            asyncio.run(build_proposal_data(mock_db, draft, uuid.uuid4()))


class TestRegisterProposal:
    """Test registrazione e link pubblico."""

    def test_register_sends_proposal(self, mock_db, complete_draft):
        proposal = MockProposal()
        proposal_service = MagicMock()
        proposal_service.create = AsyncMock(return_value=proposal)

        result = asyncio.run(
            register_proposal(mock_db, complete_draft, uuid.uuid4(), proposal_service=proposal_service)
        )

        assert result is proposal
        data = proposal_service.create.call_args.args[1]
        assert data.status == ProposalStatus.ENVIADA.value

    def test_register_incomplete_draft(self, mock_db, complete_draft):
        proposal_service = MagicMock()
        proposal_service.create = AsyncMock()
        draft = complete_draft.model_copy(update={"services": []})

        with pytest.raises(BusinessValidationError):
            asyncio.run(register_proposal(mock_db, draft, uuid.uuid4(), proposal_service=proposal_service))

        proposal_service.create.assert_not_called()

    def test_register_without_client(self, mock_db, complete_draft):
        proposal_service = MagicMock()
        proposal_service.create = AsyncMock()
        draft = complete_draft.model_copy(update={"selected_client_id": None})

        with pytest.raises(BusinessValidationError):
            asyncio.run(register_proposal(mock_db, draft, uuid.uuid4(), proposal_service=proposal_service))

        proposal_service.create.assert_not_called()

    def test_share_link_saves_draft(self, mock_db, complete_draft):
        proposal = MockProposal(status="Rascunho", share_token="abc123")
        proposal_service = MagicMock()
        proposal_service.create_draft = AsyncMock(return_value=proposal)

        link = asyncio.run(
            generate_share_link(mock_db, complete_draft, uuid.uuid4(), proposal_service=proposal_service)
        )

        assert link.url == f"{settings.public_base_url}/p/abc123"
        assert link.share_token == "abc123"
        assert link.proposal_id == proposal.id
        data = proposal_service.create_draft.call_args.args[1]
        assert data.status == ProposalStatus.RASCUNHO.value
