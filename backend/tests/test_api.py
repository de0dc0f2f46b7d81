"""
Test degli endpoint HTTP con TestClient.

Database, utente corrente e service sono sostituiti tramite
dependency_overrides; il lifespan non viene eseguito.
"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from crm.api.v1.catalog import get_custom_service_service
from crm.api.v1.pipeline import get_pipeline_repository
from crm.api.v1.proposals import get_proposal_service
from crm.core.database import get_db
from crm.core.deps import get_current_user
from crm.core.exceptions import AuthorizationError, NotFoundError
from crm.main import app
from crm.schemas.proposal import ProposalRead
from crm.services.catalog import PAYMENT_OPTIONS, STATIC_SERVICES
from crm.services.pipeline import OperationResult
from crm.services.proposal_service import UNSET

from conftest import MockProposal


@pytest.fixture
def api(mock_db, mock_user):
    """TestClient con database e utente sostituiti."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def proposal_service():
    service = MagicMock()
    app.dependency_overrides[get_proposal_service] = lambda: service
    return service


class TestSystem:
    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_authentication_required(self, mock_db):
        app.dependency_overrides[get_db] = lambda: mock_db
        try:
            response = TestClient(app).get("/api/v1/proposals/")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401


class TestQuotesApi:
    """Test degli endpoint del preventivo."""

    def test_calculate(self, api):
        payload = {
            "services": [
                {"id": "website", "name": "Site", "base_price": "2500", "category": "Web Design"},
                {
                    "id": "social-media",
                    "name": "Social Media",
                    "base_price": "1000",
                    "category": "Design",
                    "quantity": 2,
                    "discount": "200",
                    "billing_type": "monthly",
                },
            ],
            "payment": {"cash_discount_percentage": "5"},
        }

        response = api.post("/api/v1/quotes/calculate", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["subtotal"]) == Decimal("4300")
        assert Decimal(body["monthly_total"]) == Decimal("1800")
        assert Decimal(body["final_total"]) == Decimal("4085")

    def test_validate_empty_cart(self, api):
        response = api.post("/api/v1/quotes/validate/services", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "BUSINESS_VALIDATION_ERROR"
        assert body["detail"] == "Selecione pelo menos um serviço para continuar."

    def test_register_incomplete_draft(self, api, mock_db):
        response = api.post("/api/v1/quotes/register", json={"title": "Proposta"})

        assert response.status_code == 422
        assert response.json()["extra"]["step"] == "services"
        mock_db.commit.assert_not_awaited()


class TestCatalogApi:
    """Test del catalogo."""

    def test_payment_options(self, api):
        response = api.get("/api/v1/catalog/payment-options")

        assert response.status_code == 200
        assert len(response.json()) == len(PAYMENT_OPTIONS)

    def test_payment_option_detail(self, api):
        response = api.get("/api/v1/catalog/payment-options/credit-12x")

        assert response.status_code == 200
        assert response.json()["installments"] == 12
        assert Decimal(response.json()["fee"]) == Decimal("16.66")

    def test_unknown_payment_option(self, api):
        response = api.get("/api/v1/catalog/payment-options/boleto")

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"

    def test_services_include_custom(self, api, mock_user):
        custom = MagicMock(
            id=uuid.uuid4(),
            user_id=mock_user.id,
            description=None,
            base_price=Decimal("800"),
            category="Outros Serviços",
            icon="✨",
            features=["Suporte"],
            popular=False,
            billing_type="one_time",
        )
        custom.name = "Consultoria Extra"
        service = MagicMock()
        service.get_all = AsyncMock(return_value=[custom])
        app.dependency_overrides[get_custom_service_service] = lambda: service

        response = api.get("/api/v1/catalog/services")

        assert response.status_code == 200
        body = response.json()
        assert len(body) == len(STATIC_SERVICES) + 1
        assert body[-1]["is_custom"] is True
        assert body[-1]["name"] == "Consultoria Extra"

    def test_foreign_custom_service_is_forbidden(self, api):
        service = MagicMock()
        service.delete = AsyncMock(side_effect=AuthorizationError())
        app.dependency_overrides[get_custom_service_service] = lambda: service

        response = api.delete(f"/api/v1/catalog/custom-services/{uuid.uuid4()}")

        assert response.status_code == 403
        assert response.json() == {
            "detail": "Accesso non autorizzato",
            "error_code": "FORBIDDEN",
            "extra": None,
        }


class TestProposalsApi:
    """Test degli endpoint delle proposte."""

    def test_change_status(self, api, mock_db, proposal_service):
        proposal = MockProposal(status="Aprovada")
        proposal_service.change_status = AsyncMock(return_value=proposal)

        response = api.patch(f"/api/v1/proposals/{proposal.id}/status", json={"status": "Aprovada"})

        assert response.status_code == 200
        assert response.json()["status"] == "Aprovada"
        mock_db.commit.assert_awaited_once()

    def test_invalid_status(self, api, proposal_service):
        response = api.patch(f"/api/v1/proposals/{uuid.uuid4()}/status", json={"status": "Arquivada"})

        assert response.status_code == 422

    def test_not_found(self, api, proposal_service):
        proposal_service.get_by_id = AsyncMock(side_effect=NotFoundError("Proposta non trovata"))

        response = api.get(f"/api/v1/proposals/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"

    def test_duplicate_keeps_client_by_default(self, api, mock_user, proposal_service):
        proposal_service.duplicate = AsyncMock(return_value=MockProposal(status="Rascunho"))
        proposal_id = uuid.uuid4()

        response = api.post(f"/api/v1/proposals/{proposal_id}/duplicate")

        assert response.status_code == 201
        kwargs = proposal_service.duplicate.call_args.kwargs
        assert kwargs["new_client_id"] is UNSET
        assert kwargs["owner_id"] == mock_user.id

    def test_duplicate_without_client(self, api, proposal_service):
        proposal_service.duplicate = AsyncMock(return_value=MockProposal(status="Rascunho"))

        response = api.post(f"/api/v1/proposals/{uuid.uuid4()}/duplicate", json={"new_client_id": None})

        assert response.status_code == 201
        assert proposal_service.duplicate.call_args.kwargs["new_client_id"] is None

    def test_snapshot(self, api, proposal_service, mock_proposal):
        proposal_service.get_by_id = AsyncMock(return_value=mock_proposal)

        response = api.get(f"/api/v1/proposals/{mock_proposal.id}/snapshot")

        assert response.status_code == 200
        assert Decimal(response.json()["totals"]["subtotal"]) == Decimal("4300")

    def test_public_view_without_authentication(self, mock_db, proposal_service, mock_proposal):
        proposal_service.get_by_share_token = AsyncMock(return_value=mock_proposal)
        app.dependency_overrides[get_db] = lambda: mock_db
        try:
            response = TestClient(app).get(f"/api/v1/public/proposals/{mock_proposal.share_token}")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["final_total"]) == Decimal("4085")
        assert body["selected_payment"]["name"] == "Valor Total"


class TestPipelineApi:
    """Test degli endpoint della pipeline."""

    def _repository(self, proposals, fail_update=False):
        repository = MagicMock()
        repository.list_proposals = AsyncMock(return_value=OperationResult(data=proposals))
        error = OperationResult(error="timeout") if fail_update else OperationResult(data=proposals[0])
        repository.update_status = AsyncMock(return_value=error)
        app.dependency_overrides[get_pipeline_repository] = lambda: repository
        return repository

    def test_board(self, api, mock_proposal):
        self._repository([ProposalRead.model_validate(mock_proposal)])

        response = api.get("/api/v1/pipeline/board")

        assert response.status_code == 200
        body = response.json()
        assert [c["status"] for c in body["columns"]] == [
            "Rascunho", "Criada", "Enviada", "Negociando", "Aprovada", "Rejeitada",
        ]
        assert [c["status"] for c in body["columns"] if c["is_terminal"]] == ["Aprovada", "Rejeitada"]
        assert body["active_count"] == 1
        assert body["closed_count"] == 0

    def test_failed_move(self, api, mock_proposal):
        repository = self._repository([ProposalRead.model_validate(mock_proposal)], fail_update=True)

        response = api.post(
            "/api/v1/pipeline/moves",
            json={"proposal_id": str(mock_proposal.id), "status": "Aprovada"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["moved"] is False
        assert body["message"] == "Erro ao atualizar status da proposta."
        enviada = next(c for c in body["board"]["columns"] if c["status"] == "Enviada")
        assert enviada["count"] == 1
        assert repository.list_proposals.await_count == 2
