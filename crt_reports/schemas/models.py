"""
Pydantic Models for Input Validation and View Rows.
"""
import math
import re
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def first_present(record: dict, *keys, default=None):
    """First value among ``keys`` that is not None."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default


def to_number(value: Any, default: float = 0) -> float:
    """Legacy score and count cells may be blank or text; anything unreadable counts as ``default``."""
    if is_number(value):
        return value if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
        return number if math.isfinite(number) else default
    return default


def parse_upstream_date(value: Any) -> Optional[date]:
    """Parse ``2024-01-05`` or ``2024-01-05T00:00:00`` style values."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            try:
                return date.fromisoformat(value.strip()[:10])
            except ValueError:
                return None
    return None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserProfile(BaseModel):
    """Login record returned by the results service."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    Username: str
    Usertype: Optional[str] = ""
    centercity: Optional[str] = ""
    batchcode: Optional[str] = ""
    college_name: Optional[str] = None
    college_logo: Optional[str] = None


class SiteSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: str = Field("CRT Reports Dashboard", alias="companyName", min_length=2)
    logo_url: str = Field("", alias="logoUrl")
    contact_details: str = Field("contact@crtdashboard.com", alias="contactDetails")

    @field_validator("logo_url")
    @classmethod
    def validate_logo_url(cls, v):
        if v and not URL_PATTERN.match(v):
            raise ValueError("Logo URL must be empty or an http(s) URL")
        return v

    @field_validator("contact_details")
    @classmethod
    def validate_contact(cls, v):
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email.")
        return v


class BatchRow(BaseModel):
    batchcode: str
    batchname: str = ""
    studentCount: int = 0


class TestRow(BaseModel):
    testno: str
    total: Any = 0
    missed: int = 0


class TestRecord(BaseModel):
    """One attempt of one student, normalized from the student detail feed."""
    TestNo: str
    ExamId: str
    TestDate: Optional[date] = None
    Total_Score: float = 0
    TotalNoOfCorrects: int = 0
    TotalNoOfWrongs: int = 0
    TotalNoOfSkipped: int = 0

    @field_validator("TestDate", mode="before")
    @classmethod
    def parse_date(cls, v):
        return parse_upstream_date(v)

    @field_validator("Total_Score", mode="before")
    @classmethod
    def parse_score(cls, v):
        return to_number(v)

    @field_validator("TotalNoOfCorrects", "TotalNoOfWrongs", "TotalNoOfSkipped", mode="before")
    @classmethod
    def parse_count(cls, v):
        return int(to_number(v))

    @classmethod
    def from_upstream(cls, item: dict, index: int) -> "TestRecord":
        testno = item.get("testno") or f"Test-{index + 1}"
        return cls(
            TestNo=str(testno),
            ExamId=str(testno),
            TestDate=item.get("Testdate"),
            Total_Score=first_present(item, "Total_Score", "section1sco", default=0),
            TotalNoOfCorrects=first_present(item, "TotalNoofCorrects", "section1cor", default=0),
            TotalNoOfWrongs=first_present(item, "TotalNoofWrongs", "section1wro", default=0),
            TotalNoOfSkipped=0,
        )

    @property
    def answered(self) -> int:
        return self.TotalNoOfCorrects + self.TotalNoOfWrongs

    @property
    def accuracy(self) -> float:
        return self.TotalNoOfCorrects / self.answered if self.answered > 0 else 0.0


class Participant(BaseModel):
    StudentId: str = ""
    StudentName: str = "Unknown"
    Total_Score: float = 0
    TotalNoOfCorrects: int = 0
    TotalNoOfWrongs: int = 0
    TotalNoOfSkipped: int = 0

    @field_validator("Total_Score", mode="before")
    @classmethod
    def parse_score(cls, v):
        return to_number(v)

    @field_validator("TotalNoOfCorrects", "TotalNoOfWrongs", "TotalNoOfSkipped", mode="before")
    @classmethod
    def parse_count(cls, v):
        return int(to_number(v))

    @classmethod
    def from_upstream(cls, item: dict) -> "Participant":
        return cls(
            StudentId=str(item.get("studentid") or item.get("StudentId") or ""),
            StudentName=str(item.get("studname") or item.get("StudentName") or "Unknown"),
            Total_Score=first_present(item, "Total_Score", "section1sco", default=0),
            TotalNoOfCorrects=first_present(item, "TotalNoofCorrects", "section1cor", default=0),
            TotalNoOfWrongs=first_present(item, "TotalNoofWrongs", "section1wro", default=0),
            TotalNoOfSkipped=0,
        )


class TestSummary(BaseModel):
    participants: int = 0
    avgScore: float = 0


class DashboardSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    Total_Students: Optional[int] = None
    Total_Tests: Optional[int] = None
    Total_Attendes: Optional[int] = None
    Total_tests_Avg_Score: Optional[float] = None
