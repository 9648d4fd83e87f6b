"""
Entitlement Value Objects
=========================

Immutable value objects and the stateless matching rules used to rank
candidate entitlements against a record.

Field comparison is driven by configuration: each ``FieldMapping`` names a
record field (per record kind) and an entitlement field. Field names are
resolved through explicit accessor tables, so only the fields listed below
can ever be compared.
"""

from dataclasses import dataclass
from datetime import date, datetime
from operator import attrgetter
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator

from src.config import (
    RecordKind, ScoreBand, ApprovalStatus, EntitlementStatus,
    CallTimeQualifier, VALID_CALL_TIME_QUALIFIERS, WEEKDAY_NAMES
)
from src.core import ConfigurationException
from src.entitlements.domain.entities import TargetRecord, CandidateEntitlement


# ========== Field accessor tables ==========

CASE_FIELD_ACCESSORS: Dict[str, Callable[[TargetRecord], Any]] = {
    "AccountId": attrgetter("account_id"),
    "Location__c": attrgetter("location_id"),
    "Material_Type__c": attrgetter("material"),
    "Equipment_Size__c": attrgetter("equipment_size"),
    "Schedule__c": attrgetter("service_schedule"),
    "Service_Type__c": attrgetter("service_type"),
    "Case_Type__c": attrgetter("transaction_type"),
    "Case_Sub_Type__c": attrgetter("transaction_sub_type"),
    "Case_Reason__c": attrgetter("transaction_reason"),
}

QUOTE_FIELD_ACCESSORS: Dict[str, Callable[[TargetRecord], Any]] = {
    "Account__c": attrgetter("account_id"),
    "Site__c": attrgetter("location_id"),
    "Material__c": attrgetter("material"),
    "Equipment_Size__c": attrgetter("equipment_size"),
    "Frequency__c": attrgetter("service_schedule"),
    "Service_Type__c": attrgetter("service_type"),
    "Quote_Type__c": attrgetter("transaction_type"),
    "Quote_Sub_Type__c": attrgetter("transaction_sub_type"),
    "Quote_Reason__c": attrgetter("transaction_reason"),
}

ENTITLEMENT_FIELD_ACCESSORS: Dict[str, Callable[[CandidateEntitlement], Any]] = {
    "Account__c": attrgetter("account_id"),
    "Location__c": attrgetter("location_id"),
    "Material_Type__c": attrgetter("material"),
    "Equipment_Size__c": attrgetter("equipment_size"),
    "Schedule__c": attrgetter("service_schedule"),
    "Service_Type__c": attrgetter("service_type"),
    "Case_Type__c": attrgetter("case_type"),
    "Case_Sub_Type__c": attrgetter("case_sub_type"),
    "Case_Reason__c": attrgetter("case_reason"),
}

RECORD_FIELD_ACCESSORS = {
    RecordKind.CASE: CASE_FIELD_ACCESSORS,
    RecordKind.QUOTE: QUOTE_FIELD_ACCESSORS,
}

# (customer > 0, service > 0, transaction > 0) -> priority rank
PRIORITY_RANKS: Dict[Tuple[bool, bool, bool], int] = {
    (True, True, True): 0,
    (True, True, False): 1,
    (True, False, True): 2,
    (True, False, False): 3,
    (False, True, True): 4,
    (False, True, False): 5,
    (False, False, True): 6,
    (False, False, False): 7,
}

BAND_PREFIXES = {
    "0": ScoreBand.CUSTOMER,
    "1": ScoreBand.SERVICE,
    "2": ScoreBand.SERVICE,
    "3": ScoreBand.TRANSACTION,
    "4": ScoreBand.TRANSACTION,
}


def band_for_code(code: str) -> str:
    """
    Map a priority-band code to its score category.

    Raises:
        ConfigurationException: for a code outside 0x-4x
    """
    code = (code or "").strip()
    band = BAND_PREFIXES.get(code[:1])
    if band is None or len(code) != 2 or not code.isdigit():
        raise ConfigurationException(
            f"Invalid priority band code '{code}'",
            {"allowed": "two digits, 00-49"}
        )
    return band


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def field_value(record: TargetRecord, field_key: str) -> Optional[str]:
    """
    Read a configured field off a case or quote.

    Raises:
        ConfigurationException: if the field is not known for the record kind
    """
    accessors = RECORD_FIELD_ACCESSORS.get(record.kind)
    if accessors is None:
        raise ConfigurationException(
            f"Record {record.id} has no known kind",
            {"record_id": record.id}
        )
    accessor = accessors.get(field_key)
    if accessor is None:
        raise ConfigurationException(
            f"Unknown {record.kind} field '{field_key}'",
            {"record_kind": record.kind, "field": field_key}
        )
    value = accessor(record)
    return None if is_blank(value) else str(value).strip()


def entitlement_field_value(entitlement: CandidateEntitlement, field_key: str) -> Optional[str]:
    """Read a configured field off an entitlement."""
    accessor = ENTITLEMENT_FIELD_ACCESSORS.get(field_key)
    if accessor is None:
        raise ConfigurationException(
            f"Unknown entitlement field '{field_key}'",
            {"field": field_key}
        )
    value = accessor(entitlement)
    return None if is_blank(value) else str(value).strip()


@dataclass(frozen=True)
class FieldMapping:
    """
    One configured comparison between a record field and an entitlement field.

    ``band_code`` is a two-digit code whose first digit selects the score
    category: 0 customer, 1-2 service, 3-4 transaction.
    """
    label: str
    band_code: str
    case_field: Optional[str]
    quote_field: Optional[str]
    entitlement_field: str

    @property
    def band(self) -> str:
        return band_for_code(self.band_code)

    def source_field(self, record_kind: str) -> Optional[str]:
        """Record field compared for the given record kind, if any."""
        if record_kind == RecordKind.CASE:
            return self.case_field
        if record_kind == RecordKind.QUOTE:
            return self.quote_field
        return None


@dataclass(frozen=True)
class MatchScore:
    """Per-category match counts for a (record, entitlement) pair."""
    customer_score: int = 0
    service_score: int = 0
    transaction_score: int = 0

    @property
    def priority_rank(self) -> int:
        """0 is the most specific match, 7 the least."""
        return PRIORITY_RANKS[(
            self.customer_score > 0,
            self.service_score > 0,
            self.transaction_score > 0,
        )]

    def sort_key(self) -> Tuple[int, int, int, int]:
        """Lower sorts first: rank asc, then each score desc."""
        return (
            self.priority_rank,
            -self.customer_score,
            -self.service_score,
            -self.transaction_score,
        )


class FieldMappingEntry(BaseModel):
    """Field mapping entry as it appears in the engine YAML."""
    label: str = Field(..., min_length=1, description="Human readable label")
    band: str = Field(..., description="Two-digit priority band code")
    case_field: Optional[str] = Field(None, description="Case field name")
    quote_field: Optional[str] = Field(None, description="Quote field name")
    entitlement_field: str = Field(..., min_length=1, description="Entitlement field name")

    @field_validator("band", mode="before")
    @classmethod
    def validate_band(cls, v: Any) -> str:
        """Accept ints from YAML and check the band prefix."""
        code = f"{v:02d}" if isinstance(v, int) else str(v).strip()
        try:
            band_for_code(code)
        except ConfigurationException as e:
            raise ValueError(e.message) from e
        return code

    @field_validator("case_field")
    @classmethod
    def validate_case_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in CASE_FIELD_ACCESSORS:
            raise ValueError(f"Unknown case field '{v}'")
        return v

    @field_validator("quote_field")
    @classmethod
    def validate_quote_field(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in QUOTE_FIELD_ACCESSORS:
            raise ValueError(f"Unknown quote field '{v}'")
        return v

    @field_validator("entitlement_field")
    @classmethod
    def validate_entitlement_field(cls, v: str) -> str:
        if v not in ENTITLEMENT_FIELD_ACCESSORS:
            raise ValueError(f"Unknown entitlement field '{v}'")
        return v

    def to_mapping(self) -> FieldMapping:
        return FieldMapping(
            label=self.label,
            band_code=self.band,
            case_field=self.case_field,
            quote_field=self.quote_field,
            entitlement_field=self.entitlement_field,
        )


class EntitlementMatcher:
    """
    Pure functions for filtering and ranking candidate entitlements.

    Stateless; every input arrives as an argument.
    """

    @staticmethod
    def validate_mappings(mappings: Sequence[FieldMapping]) -> List[FieldMapping]:
        """
        Check a field mapping configuration before a batch uses it.

        Raises:
            ConfigurationException: if the list is empty or any entry is malformed
        """
        if not mappings:
            raise ConfigurationException("Field mapping configuration is empty")

        for mapping in mappings:
            band_for_code(mapping.band_code)
            if mapping.entitlement_field not in ENTITLEMENT_FIELD_ACCESSORS:
                raise ConfigurationException(
                    f"Mapping '{mapping.label}' uses unknown entitlement field "
                    f"'{mapping.entitlement_field}'"
                )
            if mapping.case_field and mapping.case_field not in CASE_FIELD_ACCESSORS:
                raise ConfigurationException(
                    f"Mapping '{mapping.label}' uses unknown case field '{mapping.case_field}'"
                )
            if mapping.quote_field and mapping.quote_field not in QUOTE_FIELD_ACCESSORS:
                raise ConfigurationException(
                    f"Mapping '{mapping.label}' uses unknown quote field '{mapping.quote_field}'"
                )
        return list(mappings)

    # ========== Filter chain ==========

    @staticmethod
    def passes_status(entitlement: CandidateEntitlement) -> bool:
        """Approved and not expired."""
        return (
            entitlement.approval_status == ApprovalStatus.APPROVED
            and entitlement.status != EntitlementStatus.EXPIRED
        )

    @staticmethod
    def passes_date_range(
        record: TargetRecord,
        entitlement: CandidateEntitlement,
        today: date
    ) -> bool:
        """Started by the record's service floor and not ended before today."""
        if entitlement.start_date and entitlement.start_date > record.service_floor_date:
            return False
        if entitlement.end_date and entitlement.end_date < today:
            return False
        return True

    @staticmethod
    def passes_call_time(entitlement: CandidateEntitlement, local_created: datetime) -> bool:
        """
        Check the call-time and call-day restriction against the local
        creation time. No restriction always passes.
        """
        if entitlement.call_time_qualifier and entitlement.call_time is not None:
            if entitlement.call_time_qualifier not in VALID_CALL_TIME_QUALIFIERS:
                return False
            # call times are local wall-clock values
            created_time = local_created.time().replace(tzinfo=None)
            call_time = entitlement.call_time.replace(tzinfo=None)
            if entitlement.call_time_qualifier == CallTimeQualifier.BEFORE:
                if not created_time < call_time:
                    return False
            elif not created_time >= call_time:
                return False

        if entitlement.call_days:
            allowed = {str(day).strip().title() for day in entitlement.call_days}
            if WEEKDAY_NAMES[local_created.weekday()] not in allowed:
                return False

        return True

    @staticmethod
    def passes_account_scope(record: TargetRecord, entitlement: CandidateEntitlement) -> bool:
        """Industry standard matches any account; otherwise accounts must agree."""
        if entitlement.is_industry_standard:
            return True
        return entitlement.account_id == record.account_id

    @staticmethod
    def passes_filters(
        record: TargetRecord,
        entitlement: CandidateEntitlement,
        today: date,
        local_created: datetime
    ) -> bool:
        return (
            EntitlementMatcher.passes_status(entitlement)
            and EntitlementMatcher.passes_date_range(record, entitlement, today)
            and EntitlementMatcher.passes_call_time(entitlement, local_created)
            and EntitlementMatcher.passes_account_scope(record, entitlement)
        )

    # ========== Scoring ==========

    @staticmethod
    def score(
        record: TargetRecord,
        entitlement: CandidateEntitlement,
        mappings: Iterable[FieldMapping]
    ) -> MatchScore:
        """Count equal, non-blank mapped fields per score category."""
        counts = {ScoreBand.CUSTOMER: 0, ScoreBand.SERVICE: 0, ScoreBand.TRANSACTION: 0}

        for mapping in mappings:
            source_field = mapping.source_field(record.kind)
            if not source_field:
                continue
            source = field_value(record, source_field)
            target = entitlement_field_value(entitlement, mapping.entitlement_field)
            if source is not None and target is not None and source == target:
                counts[mapping.band] += 1

        return MatchScore(
            customer_score=counts[ScoreBand.CUSTOMER],
            service_score=counts[ScoreBand.SERVICE],
            transaction_score=counts[ScoreBand.TRANSACTION],
        )

    @staticmethod
    def select_best(
        record: TargetRecord,
        candidates: Iterable[CandidateEntitlement],
        mappings: Sequence[FieldMapping]
    ) -> Optional[Tuple[CandidateEntitlement, MatchScore]]:
        """
        Pick the best-ranked candidate for a record.

        Candidates must already have passed the filter chain. Ties on rank
        and all three scores go to the first candidate seen.
        """
        best: Optional[Tuple[CandidateEntitlement, MatchScore]] = None

        for candidate in candidates:
            match = EntitlementMatcher.score(record, candidate, mappings)
            if best is None or match.sort_key() < best[1].sort_key():
                best = (candidate, match)

        return best
