from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class PatternType(str, Enum):
    EXACT = "exact"
    KEYWORD = "keyword"
    REGEX = "regex"


class CategorizationSource(str, Enum):
    RULE = "rule"
    ML = "ml"
    MANUAL = "manual"


class GroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CATEGORY = "category"


class InsightType(str, Enum):
    TREND = "trend"
    ANOMALY = "anomaly"
    PATTERN = "pattern"
    RECOMMENDATION = "recommendation"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Category(BaseModel):
    id: UUID
    name: str


class Transaction(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: Optional[UUID] = None
    amount: float # negative = outflow
    category_id: Optional[UUID] = None
    merchant: str = ""
    description: str = ""
    transaction_date: datetime


class CategorizationRule(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    category_id: UUID
    pattern: str
    pattern_type: PatternType
    priority: int = 0 # higher = evaluated first
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class CreateCategorizationRuleRequest(BaseModel):
    category_id: UUID
    pattern: str
    pattern_type: str
    priority: int = 0


class UpdateCategorizationRuleRequest(BaseModel):
    pattern: Optional[str] = None
    pattern_type: Optional[str] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class CategorizationRuleResponse(BaseModel):
    id: UUID
    category_id: UUID
    category_name: str
    pattern: str
    pattern_type: PatternType
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategorizationRequest(BaseModel):
    description: str = Field(min_length=1)
    merchant: str = ""
    amount: float = 0.0
    location: str = ""


class CategorySuggestion(BaseModel):
    category_id: UUID
    category_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class CategorizationResponse(BaseModel):
    category_id: Optional[UUID] = None # None = uncategorized
    category_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    categorization_source: CategorizationSource
    matched_pattern: Optional[str] = None
    alternative_categories: list[CategorySuggestion] = Field(default_factory=list)


class CategorySpending(BaseModel):
    category_id: UUID
    category_name: str
    amount: float = 0.0
    percentage: float = 0.0
    transaction_count: int = 0


class SpendingTrend(BaseModel):
    period: str
    amount: float
    change: float # % change from previous period
    trend: str # "increasing", "decreasing", "stable"


class SpendingInsight(BaseModel):
    type: InsightType
    title: str
    description: str
    severity: Severity
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class SpendingSummary(BaseModel):
    total_spent: float = 0.0
    total_income: float = 0.0
    category_breakdown: list[CategorySpending] = Field(default_factory=list)
    top_categories: list[CategorySpending] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def net_amount(self) -> float:
        return self.total_income - self.total_spent


class SpendingAnalysisResponse(BaseModel):
    period_start: datetime
    period_end: datetime
    total_spent: float
    total_income: float
    net_amount: float
    category_breakdown: list[CategorySpending]
    top_categories: list[CategorySpending]
    spending_trends: list[SpendingTrend]
    insights: list[SpendingInsight]
