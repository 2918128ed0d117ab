from schemas.source_record import (
    SourceType,
    SourceRecord,
    Citation,
    UNSTRUCTURED_SOURCE_TYPES,
)
from schemas.chunk import UnstructuredChunk
from schemas.hotel import (
    HotelRecord,
    TravelerType,
    Season,
    Risk,
    Promotion,
    StackingRule,
)
from schemas.brief import (
    Role,
    SectionKey,
    SectionStatus,
    RetrievalMode,
    NARRATIVE_SECTIONS,
    BriefRequest,
    QueryPlan,
    QueryTerms,
    ConflictEvent,
    RetrievalBreakdown,
    TextSection,
    PromotionsSection,
    PromotionsContent,
    BriefSections,
    TrustPayload,
    BriefResponse,
)
