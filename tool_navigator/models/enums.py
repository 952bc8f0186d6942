"""
Enumerations shared by the ORM models, the DTOs and the query engine.

The string value of every member is the token accepted on the wire and
stored in the database.
"""

from enum import Enum


class EntryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PricingModel(str, Enum):
    FREE = "free"
    FREEMIUM = "freemium"
    PAID = "paid"
    SUBSCRIPTION = "subscription"
    TIERED = "tiered"
    CUSTOM = "custom"
    ONE_TIME = "one_time"
    TIERED_SUBSCRIPTION = "tiered_subscription"
    USAGE_BASED = "usage_based"
    PAY_AS_YOU_GO = "pay_as_you_go"
    OPEN_SOURCE = "open_source"


class TimeRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    VISITS = "visits"
    LIKES = "likes"
    QUALITY = "quality"
    CREATED = "created"
    TITLE = "title"
    # Only reachable through the monthly-hot ranking preset.
    TRENDING = "trending"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RankingType(str, Enum):
    POPULAR = "popular"
    TOP_RATED = "top-rated"
    TRENDING = "trending"
    FREE = "free"
    NEW = "new"
    MONTHLY_HOT = "monthly-hot"
    CATEGORY_LEADERS = "category-leaders"
