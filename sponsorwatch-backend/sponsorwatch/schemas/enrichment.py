from pydantic import BaseModel, ConfigDict, Field

class SponsorExtraction(BaseModel):
    has_sponsor: bool
    sponsor_name: str
    sponsor_key: str

class CommentClassification(BaseModel):
    is_editing_mistake: bool
    is_sponsor_mention: bool
    is_question: bool
    is_positive_comment: bool


# Raw model output. The LLM answers in camelCase per the prompt.

class SponsorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_sponsor: bool = Field(default=False, alias="hasSponsor")
    sponsor_name: str = Field(default="", alias="sponsorName")
    sponsor_key: str = Field(default="", alias="sponsorKey")

class CommentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_editing_mistake: bool = Field(alias="isEditingMistake")
    is_sponsor_mention: bool = Field(alias="isSponsorMention")
    is_question: bool = Field(alias="isQuestion")
    is_positive_comment: bool = Field(alias="isPositiveComment")
