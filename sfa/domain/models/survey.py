"""SurveyResponse and SurveyAnswer models: 'survey_responses' and 'survey_answers'."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from sfa.domain.models.audit import AuditMixin
from sfa.infrastructure.database import Base


class SurveyResponse(AuditMixin, Base):
    __tablename__ = "survey_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer, nullable=False, index=True)  # survey definition
    visit_id = Column(Integer, ForeignKey("visits.id"), nullable=False, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    submitted_by = Column(Integer, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    photo_url = Column(Text, nullable=True)
    is_active = Column(String(1), nullable=False, default="Y")

    survey_answers = relationship(
        "SurveyAnswer",
        back_populates="response",
        order_by="SurveyAnswer.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<SurveyResponse {self.id} - survey {self.parent_id}>"


class SurveyAnswer(Base):
    __tablename__ = "survey_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer, ForeignKey("survey_responses.id"), nullable=False, index=True)
    field_id = Column(Integer, nullable=False)
    answer = Column(Text, nullable=True)

    response = relationship("SurveyResponse", back_populates="survey_answers")
