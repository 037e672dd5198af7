"""Search data-driven test models."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class SearchDataCase(BaseModel):
    """One row of a search dataset."""

    model_config = ConfigDict(populate_by_name=True)

    term: str = Field(default="", description="Search term")
    expect_results: bool = Field(
        default=True, alias="expectResults", description="Whether results are expected"
    )
    expected_message: Optional[str] = Field(
        default=None, alias="expectedMessage", description="Expected empty-state text"
    )


class SearchCaseExecutionResult(BaseModel):
    """Outcome of executing a dataset case on one browser."""

    term: str
    expect_results: bool
    actual_results: bool = False
    message_displayed: bool = False
    expected_message: Optional[str] = None
    notes: Optional[str] = None
    passed: bool = False


class PaginationResult(BaseModel):
    """Outcome of clicking a pagination control."""

    clicked: bool = False
    url_changed: bool = False
    signature_changed: bool = False
    before_signature: str = ""
    after_signature: str = ""

    @property
    def changed(self) -> bool:
        return self.url_changed or self.signature_changed
