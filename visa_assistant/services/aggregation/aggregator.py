"""Application data aggregator.

Composes the owner's identity, the canonical record and per-type extraction
summaries into the read-only view consumed by letters, exports and review.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from visa_assistant.database.models import Application
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.schemas.aggregation import (
    AggregatedApplicationData,
    ApplicationSummary,
    AssetSummary,
    BankStatementSummary,
    DocumentListItem,
    ExtractedDocumentsSummary,
    FormDataSummary,
    I20Summary,
    I94Summary,
    OtherFundingSummary,
    PassportSummary,
    ScholarshipSummary,
    SponsorSummary,
    TiesDocumentSummary,
    UserSummary,
)
from visa_assistant.schemas.application import CanonicalApplicationRecord
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.documents import DocumentType, ExtractedDocument
from visa_assistant.services.extraction.field_aliases import FieldAliasResolver, default_resolver
from visa_assistant.services.ownership import get_owned_application
from visa_assistant.utils.logging import get_logger
from visa_assistant.utils.money import format_decimal, parse_amount

LOGGER = get_logger(__name__)

PASSPORT_TYPES = {DocumentType.PASSPORT.value, DocumentType.DEPENDENT_PASSPORT.value}
I94_TYPES = {DocumentType.I94.value, DocumentType.DEPENDENT_I94.value}
I20_TYPES = {DocumentType.I20.value, DocumentType.DEPENDENT_I20.value}
BANK_TYPES = {DocumentType.BANK_STATEMENT.value, DocumentType.SPONSOR_BANK_STATEMENT.value}
ASSET_TYPES = {DocumentType.ASSETS.value, DocumentType.SPONSOR_ASSETS.value}
TIES_TYPES = {DocumentType.SUPPORTING_DOCUMENTS.value, DocumentType.TIES_SUPPORTING_DOCUMENTS.value}


class ApplicationDataAggregator:
    """Builds ``AggregatedApplicationData`` for one owned application.

    Singleton document types (passport, I-94, I-20) are first-wins in
    document creation order; every other type is appended.
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        document_repository: DocumentRepository,
        resolver: Optional[FieldAliasResolver] = None,
    ):
        self.application_repository = application_repository
        self.document_repository = document_repository
        self.resolver = resolver or default_resolver

    async def aggregate(self, application_id: UUID, user: Optional[CurrentUser]) -> AggregatedApplicationData:
        """Aggregate an application the caller owns.

        Raises:
            UnauthenticatedError: No identity
            ApplicationNotFoundError: Unknown application id
            UnauthorizedError: Application owned by another identity
        """
        application = await get_owned_application(self.application_repository, application_id, user)
        documents = await self.document_repository.list_by_application(application.id)
        aggregated = self.build(
            application,
            [ExtractedDocument.from_model(d) for d in documents],
            user,
        )
        LOGGER.info(
            f"Aggregated application {application_id}",
            extra={
                "application_id": str(application_id),
                "documents": len(documents),
                "bank_statements": len(aggregated.documents.bank_statements),
            },
        )
        return aggregated

    def build(
        self,
        application: Application,
        documents: Iterable[ExtractedDocument],
        user: CurrentUser,
    ) -> AggregatedApplicationData:
        """Compose the aggregated view without any I/O."""
        record = CanonicalApplicationRecord.from_form_data(application.form_data)
        summary = ExtractedDocumentsSummary()
        document_list: List[DocumentListItem] = []

        for document in documents:
            document_list.append(DocumentListItem(
                type=document.type,
                name=document.name,
                status=document.status.value,
            ))
            if not document.extracted_fields:
                if document.type in BANK_TYPES:
                    LOGGER.warning(
                        f"No extracted data for {document.type} document {document.name}",
                        extra={"document_id": str(document.id) if document.id else None},
                    )
                continue
            self._summarize(document.type, document.extracted_fields, summary)

        return AggregatedApplicationData(
            user=UserSummary(
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
                full_name=user.full_name,
            ),
            application=ApplicationSummary(
                id=str(application.id),
                country=application.country or "",
                visa_type=application.visa_type or "",
                current_address=record.current_address,
            ),
            form_data=FormDataSummary(
                ties_to_country=record.ties_to_country,
                dependents=record.dependents,
                financial_support=record.financial_support,
            ),
            documents=summary,
            document_list=document_list,
            sponsor_summary=self._sponsor_summary(record, summary.bank_statements),
        )

    def _summarize(self, doc_type: str, fields: Dict[str, Any], summary: ExtractedDocumentsSummary) -> None:
        resolve = self.resolver.resolve_structured

        if doc_type in PASSPORT_TYPES:
            if summary.passport is None:
                summary.passport = PassportSummary(
                    name=resolve("person_name", fields),
                    passport_number=resolve("passport_number", fields),
                    date_of_birth=resolve("date_of_birth", fields),
                    place_of_birth=self._first(fields, "placeOfBirth", "place_of_birth"),
                    nationality=resolve("nationality", fields),
                    gender=resolve("gender", fields),
                    issue_date=resolve("issue_date", fields),
                    expiry_date=resolve("expiry_date", fields),
                )
        elif doc_type in I94_TYPES:
            if summary.i94 is None:
                summary.i94 = I94Summary(
                    name=resolve("person_name", fields),
                    admission_number=resolve("admission_number", fields),
                    class_of_admission=resolve("class_of_admission", fields),
                    date_of_admission=resolve("date_of_admission", fields),
                    admit_until_date=resolve("admit_until_date", fields),
                    passport_number=resolve("passport_number", fields),
                )
        elif doc_type in I20_TYPES:
            if summary.i20 is None:
                summary.i20 = I20Summary(
                    student_name=resolve("student_name", fields),
                    sevis_id=resolve("sevis_id", fields),
                    school_name=resolve("school_name", fields),
                    program_of_study=resolve("program_of_study", fields),
                    program_level=resolve("program_level", fields),
                    major_field=resolve("major_field", fields),
                    start_date=resolve("start_date", fields),
                    end_date=resolve("end_date", fields),
                    date_of_birth=resolve("date_of_birth", fields),
                    country_of_birth=self._first(fields, "countryOfBirth", "country_of_birth"),
                    country_of_citizenship=resolve("country_of_citizenship", fields),
                    financial_support=fields.get("financialSupport"),
                    extracted_data=dict(fields),
                )
        elif doc_type in BANK_TYPES:
            summary.bank_statements.append(self._bank_statement(doc_type, fields))
        elif doc_type in ASSET_TYPES:
            summary.assets.append(AssetSummary(
                type=doc_type,
                asset_type=self._text(fields.get("assetType")),
                owner_name=self._text(fields.get("ownerName")),
                asset_value=self._text(fields.get("assetValue")),
                asset_description=self._text(fields.get("assetDescription")),
            ))
        elif doc_type in TIES_TYPES:
            summary.ties_documents.append(TiesDocumentSummary(
                document_type=resolve("document_type", fields),
                owner_name=resolve("owner_name", fields),
                property_address=resolve("property_address", fields),
                property_value=resolve("property_value", fields),
                employment_company=resolve("employment_company", fields),
                employment_position=resolve("employment_position", fields),
            ))
        elif doc_type == DocumentType.SCHOLARSHIP_DOCUMENT.value:
            summary.scholarship_documents.append(ScholarshipSummary(
                document_type=resolve("document_type", fields) or "scholarship_award_letter",
                scholarship_name=resolve("scholarship_name", fields),
                award_amount=resolve("award_amount", fields),
                institution_name=resolve("institution_name", fields),
                document_date=resolve("document_date", fields),
                extracted_data=dict(fields),
            ))
        elif doc_type == DocumentType.OTHER_FUNDING.value:
            summary.other_funding_documents.append(OtherFundingSummary(
                document_type=resolve("document_type", fields) or "other_funding",
                funding_source=resolve("funding_source", fields),
                amount=resolve("funding_amount", fields),
                institution_name=resolve("institution_name", fields),
                document_date=resolve("document_date", fields),
                extracted_data=dict(fields),
            ))

    def _bank_statement(self, doc_type: str, fields: Dict[str, Any]) -> BankStatementSummary:
        resolve = self.resolver.resolve
        balance = resolve("closing_balance", fields)
        statement = BankStatementSummary(
            type=doc_type,
            account_holder_name=resolve("account_holder", fields),
            account_number=self.resolver.resolve_structured("account_number", fields),
            bank_name=resolve("bank_name", fields),
            closing_balance=balance.replace(",", "") if balance else None,
            currency=self.resolver.resolve_structured("currency", fields) or "USD",
            statement_period=self.resolver.resolve_structured("statement_period", fields),
            opening_balance=self.resolver.resolve_structured("opening_balance", fields),
            total_deposits=self.resolver.resolve_structured("total_deposits", fields),
            total_withdrawals=self.resolver.resolve_structured("total_withdrawals", fields),
        )
        LOGGER.debug(
            f"Summarized {doc_type}",
            extra={
                "has_balance": statement.closing_balance is not None,
                "has_bank_name": statement.bank_name is not None,
                "from_raw_text": not fields.get("accountHolderName") and bool(fields.get("rawText")),
            },
        )
        return statement

    def _sponsor_summary(
        self,
        record: CanonicalApplicationRecord,
        statements: List[BankStatementSummary],
    ) -> SponsorSummary:
        sponsor_statements = [s for s in statements if s.is_sponsor]
        total = Decimal("0")
        for statement in sponsor_statements:
            amount = parse_amount(statement.closing_balance)
            if amount is not None:
                total += amount
        holder = next((s.account_holder_name for s in sponsor_statements if s.account_holder_name), None)
        return SponsorSummary(
            sponsor_name=record.financial_support.sponsor_name or holder or "",
            total_balance=format_decimal(total) if total > 0 else record.financial_support.sponsor_amount,
            statement_count=len(sponsor_statements),
        )

    @staticmethod
    def _first(fields: Dict[str, Any], *keys: str) -> Optional[str]:
        for key in keys:
            value = ApplicationDataAggregator._text(fields.get(key))
            if value:
                return value
        return None

    @staticmethod
    def _text(value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)
