from typing import TypedDict

from src.clinic_client.client import ClinicApiClient


class UserDataDataclass(TypedDict, total=False):
    clinic_client: ClinicApiClient | None
    clinics: dict[str, str]
    email: str
    password: str
