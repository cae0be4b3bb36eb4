"""Patient create/update request schemas."""

from pydantic import BaseModel, EmailStr, Field

from carecircle.models.patient import DementiaStage


class EmergencyContactInput(BaseModel):
    name: str | None = Field(None, max_length=100)
    relationship: str | None = Field(None, max_length=50)
    phone: str | None = Field(None, max_length=30)
    email: EmailStr | None = None


class PreferencesInput(BaseModel):
    language: str | None = Field(None, max_length=10)
    font_size: str | None = Field(None, max_length=20)
    high_contrast: bool | None = None
    audio_enabled: bool | None = None
    notifications_enabled: bool | None = None
    tone: str | None = Field(None, max_length=20)


class PatientCreate(BaseModel):
    """New patient entered by a caregiver.

    First and last name are checked by the service so that blank values
    raise the same ``ValidationError`` for every caller.
    """

    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr | None = None
    preferred_name: str | None = Field(None, max_length=100)
    date_of_birth: str | None = Field(None, max_length=10)
    photo_url: str | None = None
    location: str | None = Field(None, max_length=255)
    address: str | None = None
    affirmation: str | None = None
    diagnosis_date: str | None = Field(None, max_length=10)
    dementia_stage: DementiaStage | None = None
    emergency_contact: EmergencyContactInput | None = None
    preferences: PreferencesInput | None = None
    relationship: str | None = Field(None, max_length=100)


class PatientUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    preferred_name: str | None = Field(None, max_length=100)
    date_of_birth: str | None = Field(None, max_length=10)
    photo_url: str | None = None
    location: str | None = Field(None, max_length=255)
    address: str | None = None
    affirmation: str | None = None
    diagnosis_date: str | None = Field(None, max_length=10)
    dementia_stage: DementiaStage | None = None
    emergency_contact: EmergencyContactInput | None = None
    preferences: PreferencesInput | None = None
