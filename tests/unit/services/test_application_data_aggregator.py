"""Unit tests for ApplicationDataAggregator."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from visa_assistant.core.exceptions import ApplicationNotFoundError, UnauthenticatedError, UnauthorizedError
from visa_assistant.database.models import Application, Document
from visa_assistant.services.aggregation.aggregator import ApplicationDataAggregator

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _application(user_id: str, form_data=None) -> Application:
    return Application(
        id=uuid4(),
        user_id=user_id,
        country="Brazil",
        visa_type="F-1",
        status="draft",
        form_data=form_data or {},
    )


def _document(application_id, doc_type, extracted_data, minutes=0, status="completed") -> Document:
    return Document(
        id=uuid4(),
        application_id=application_id,
        user_id="user-123",
        name=f"{doc_type}-{minutes}.pdf",
        type=doc_type,
        file_url="https://files.example.com/x.pdf",
        file_size=10,
        mime_type="application/pdf",
        status=status,
        extracted_data=extracted_data,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def repositories():
    app_repo = MagicMock()
    app_repo.get_by_id = AsyncMock()
    doc_repo = MagicMock()
    doc_repo.list_by_application = AsyncMock(return_value=[])
    return app_repo, doc_repo


@pytest.fixture
def aggregator(repositories):
    return ApplicationDataAggregator(*repositories)


class TestAggregateOwnership:

    @pytest.mark.asyncio
    async def test_requires_identity(self, aggregator):
        with pytest.raises(UnauthenticatedError):
            await aggregator.aggregate(uuid4(), None)

    @pytest.mark.asyncio
    async def test_unknown_application(self, aggregator, repositories, current_user):
        repositories[0].get_by_id.return_value = None

        with pytest.raises(ApplicationNotFoundError):
            await aggregator.aggregate(uuid4(), current_user)

    @pytest.mark.asyncio
    async def test_application_of_another_user(self, aggregator, repositories, current_user):
        repositories[0].get_by_id.return_value = _application("someone-else")

        with pytest.raises(UnauthorizedError):
            await aggregator.aggregate(uuid4(), current_user)
        repositories[1].list_by_application.assert_not_called()


class TestAggregateComposition:

    @pytest.mark.asyncio
    async def test_user_and_application_fields(self, aggregator, repositories, current_user):
        application = _application(
            current_user.id,
            {"currentAddress": {"street": "1 Elm", "city": "Boston", "state": "MA", "zipCode": "02110"}},
        )
        repositories[0].get_by_id.return_value = application

        data = await aggregator.aggregate(application.id, current_user)

        assert data.user.full_name == "Maria Silva"
        assert data.user.email == current_user.email
        assert data.application.id == str(application.id)
        assert data.application.country == "Brazil"
        assert data.application.current_address.zip_code == "02110"

    @pytest.mark.asyncio
    async def test_singletons_are_first_wins(self, aggregator, repositories, current_user):
        application = _application(current_user.id)
        repositories[0].get_by_id.return_value = application
        repositories[1].list_by_application.return_value = [
            _document(application.id, "passport", {"name": "Maria Silva", "passportNumber": "AA1"}, 0),
            _document(application.id, "dependent_passport", {"name": "Ana Silva", "passportNumber": "BB2"}, 1),
            _document(application.id, "i94", {"admissionNumber": "111", "classOfAdmission": "B2"}, 2),
            _document(application.id, "i94", {"admissionNumber": "222"}, 3),
        ]

        data = await aggregator.aggregate(application.id, current_user)

        assert data.documents.passport.passport_number == "AA1"
        assert data.documents.i94.admission_number == "111"
        assert data.documents.i94.class_of_admission == "B2"
        assert len(data.document_list) == 4

    @pytest.mark.asyncio
    async def test_bank_statements_and_sponsor_summary(self, aggregator, repositories, current_user):
        application = _application(current_user.id, {"financialSupport": {"fundingSource": "sponsor"}})
        repositories[0].get_by_id.return_value = application
        repositories[1].list_by_application.return_value = [
            _document(application.id, "bank_statement", {"closingBalance": "1,000.00"}, 0),
            _document(
                application.id,
                "sponsor_bank_statement",
                {"closingBalance": "15,000.50", "accountHolderName": "Joao Pereira", "bankName": "Itau"},
                1,
            ),
            _document(application.id, "sponsor_bank_statement", {"closingBalance": "4999.50"}, 2),
        ]

        data = await aggregator.aggregate(application.id, current_user)

        statements = data.documents.bank_statements
        assert [s.closing_balance for s in statements] == ["1000.00", "15000.50", "4999.50"]
        assert statements[1].bank_name == "Itau"
        assert data.sponsor_summary.sponsor_name == "Joao Pereira"
        assert data.sponsor_summary.total_balance == "20000.00"
        assert data.sponsor_summary.statement_count == 2

    @pytest.mark.asyncio
    async def test_documents_without_extraction_are_listed_but_not_summarized(
        self, aggregator, repositories, current_user
    ):
        application = _application(current_user.id)
        repositories[0].get_by_id.return_value = application
        repositories[1].list_by_application.return_value = [
            _document(application.id, "bank_statement", None, 0, status="pending"),
        ]

        data = await aggregator.aggregate(application.id, current_user)

        assert data.documents.bank_statements == []
        assert data.document_list[0].status == "pending"

    def test_build_is_pure(self, aggregator, current_user):
        application = _application(current_user.id, {"tiesToCountry": {"question1": "Parents in Recife"}})

        data = aggregator.build(application, [], current_user)

        assert data.form_data.ties_to_country.question1 == "Parents in Recife"
        assert data.documents.passport is None
