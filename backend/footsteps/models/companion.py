"""
Companion data models
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CompanionModel(BaseModel):
    """Accepts both snake_case and the UI's camelCase field names"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


Mood = Literal["great", "good", "neutral", "struggling", "crisis"]


class AtmosphereState(str, Enum):
    SERENE = "serene"
    STEADY = "steady"
    MISTY = "misty"
    STORMY = "stormy"


# Inputs

class HaltLog(CompanionModel):
    hunger: int = 0
    anger: int = 0
    lonely: int = 0
    tired: int = 0


class MoodEntry(CompanionModel):
    mood: Mood
    note: str = ""
    date: Optional[str] = None
    associated_activity: Optional[str] = None
    halt: Optional[HaltLog] = None


class BiometricData(CompanionModel):
    heart_rate: int = Field(..., ge=20, le=250)
    systolic_bp: Optional[int] = None
    diastolic_bp: Optional[int] = None


class CompletedLesson(CompanionModel):
    module_name: str
    rating: int = Field(default=0, ge=0, le=5)
    reflection: str = ""
    date: Optional[str] = None


class JournalEntry(CompanionModel):
    content: str
    mood: Optional[Mood] = None
    date: Optional[str] = None
    gratitude: Optional[str] = None
    triggers: Optional[str] = None
    learnings: Optional[str] = None


class SomaticRegion(CompanionModel):
    label: str
    intensity: int = Field(..., ge=0, le=3)


class ChatTurn(CompanionModel):
    role: Literal["user", "model"]
    text: str

    def to_wire(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


# Model replies (JSON mode)

class AtmosphereReply(BaseModel):
    state: AtmosphereState
    insight: str


class ContentScreening(CompanionModel):
    is_safe: bool
    feedback: str = ""


class BeaconReply(BaseModel):
    wisdom: str
    advice: str


class ShadowArchetypeReply(CompanionModel):
    name: str
    description: str
    original_intent: str
    integration_gift: str


class ArchiveReply(BaseModel):
    narrative: str
    patterns: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)


class SomaticProtocol(BaseModel):
    title: str
    instruction: str


# Results

class AtmosphereData(AtmosphereReply):
    last_updated: datetime


class BeaconMessage(BeaconReply):
    topic: str


class ShadowArchetype(ShadowArchetypeReply):
    id: str
    art_url: Optional[str] = None


class ArchiveSummary(ArchiveReply):
    last_updated: datetime


class LocalSupport(BaseModel):
    text: str
    grounding: List[Dict[str, Any]] = Field(default_factory=list)


class ReflectionRecord(CompanionModel):
    """Produced once per completed exercise"""
    rating: Optional[int] = None
    reflection_text: Optional[str] = None
    artwork_url: Optional[str] = None
