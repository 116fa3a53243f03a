"""Canonical enum values shared by models, services and the API layer."""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    DEVELOPER = "DEVELOPER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class MembershipStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LoanStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"


class AccessState(str, enum.Enum):
    """Where an authenticated (or anonymous) caller currently stands."""

    ANONYMOUS = "ANONYMOUS"
    AUTHENTICATED_NO_PROFILE = "AUTHENTICATED_NO_PROFILE"
    MEMBER_PENDING = "MEMBER_PENDING"
    MEMBER_REJECTED = "MEMBER_REJECTED"
    MEMBER_NO_TENANT = "MEMBER_NO_TENANT"
    MEMBER_APPROVED = "MEMBER_APPROVED"
    ADMIN_APPROVED = "ADMIN_APPROVED"
    DEVELOPER = "DEVELOPER"


class AccessArea(str, enum.Enum):
    PUBLIC = "public"
    REGISTRATION = "registration"
    PROFILE = "profile"
    ONBOARDING = "onboarding"
    LIBRARY = "library"
    ADMIN = "admin"
    DEVELOPER = "developer"


class ErrorCode(str, enum.Enum):
    AUTH_INVALID = "AUTH_INVALID"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"


class AuditAction(str, enum.Enum):
    USER_REGISTER = "USER_REGISTER"
    USER_UPDATE = "USER_UPDATE"
    SCHOOL_SELECT = "SCHOOL_SELECT"
    MEMBER_APPROVE = "MEMBER_APPROVE"
    MEMBER_REJECT = "MEMBER_REJECT"
    SCHOOL_CREATE = "SCHOOL_CREATE"
    SCHOOL_UPDATE = "SCHOOL_UPDATE"
    SCHOOL_DELETE = "SCHOOL_DELETE"
    ADMIN_ASSIGN = "ADMIN_ASSIGN"
    BOOK_CREATE = "BOOK_CREATE"
    BOOK_UPDATE = "BOOK_UPDATE"
    BOOK_DELETE = "BOOK_DELETE"
    LOAN_CREATE = "LOAN_CREATE"
    LOAN_RETURN = "LOAN_RETURN"
    UPLOAD_REJECTED = "UPLOAD_REJECTED"
