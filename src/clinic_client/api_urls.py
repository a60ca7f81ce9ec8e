import os

from dotenv import load_dotenv

load_dotenv()

BASE_URL = os.getenv("CLINIC_API_BASE_URL", "http://localhost:5000/api").rstrip("/")

LOGIN_PATH = "/auth/login"
REFRESH_TOKEN_PATH = "/auth/refresh"

CLINICS_PATH = "/clinics"
DOCTORS_PATH = "/doctors"
APPOINTMENTS_PATH = "/appointments"
UPCOMING_APPOINTMENTS_PATH = APPOINTMENTS_PATH + "/upcoming"


def clinic_path(clinic_id: str) -> str:
    return f"{CLINICS_PATH}/{clinic_id}"


def available_slots_path(clinic_id: str) -> str:
    return f"{CLINICS_PATH}/{clinic_id}/available-slots"


def appointment_path(appointment_id: str) -> str:
    return f"{APPOINTMENTS_PATH}/{appointment_id}"
