# backend/vetclinic/db/models/__init__.py

from vetclinic.db.models.user import User
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.veterinarian import Veterinarian
from vetclinic.db.models.service import Service
from vetclinic.db.models.patient import Patient

from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.review import Review
from vetclinic.db.models.pet_diary_entry import PetDiaryEntry
from vetclinic.db.models.notification import Notification
from vetclinic.db.models.audit_log import AuditLog
