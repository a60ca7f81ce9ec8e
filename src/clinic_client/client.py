import logging
from datetime import date
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar, cast

import httpx
from httpx import AsyncClient, Headers

from src.clinic_client.api_urls import (
    APPOINTMENTS_PATH,
    BASE_URL,
    CLINICS_PATH,
    DOCTORS_PATH,
    LOGIN_PATH,
    REFRESH_TOKEN_PATH,
    UPCOMING_APPOINTMENTS_PATH,
    appointment_path,
    available_slots_path,
    clinic_path,
)
from src.clinic_client.exceptions import AuthenticationError, ClinicApiError, IncorrectLoginError
from src.clinic_client.types import AppointmentItem, AvailableSlotsData, Clinic, Doctor, NewAppointment

logger = logging.getLogger(__name__)

R = TypeVar("R")
MAX_RETRY_ATTEMPTS = 3
DOCTORS_PAGE_SIZE = 100


def with_login_retry(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
    @wraps(func)
    async def wrapper(self: "ClinicApiClient", *args: Any, **kwargs: Any) -> R:
        attempts = 0

        while attempts < MAX_RETRY_ATTEMPTS:
            if self._token is None:
                logger.warning("Attempt %s to sign in.", attempts + 1)
                await self.log_in()

            try:
                return await func(self, *args, **kwargs)
            except httpx.HTTPStatusError as e:
                if e.response.status_code == httpx.codes.UNAUTHORIZED:
                    logger.warning("Received 401 Unauthorized. Attempt %s to re-authenticate.", attempts + 1)
                    await self.do_refresh_token()
                else:
                    raise
            finally:
                attempts += 1

        raise AuthenticationError(f"Failed to sign in after {MAX_RETRY_ATTEMPTS} attempts.")

    return wrapper


def unwrap_envelope(response: httpx.Response) -> Any:
    """Return the ``data`` member of a ``{success, data, error}`` response.

    A 401 is raised as ``httpx.HTTPStatusError`` so that ``with_login_retry`` can
    re-authenticate. Every other failure becomes a ``ClinicApiError`` carrying the
    server supplied ``error`` text, if there is one.
    """
    if response.status_code == httpx.codes.UNAUTHORIZED:
        response.raise_for_status()

    try:
        body = response.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        if response.is_error:
            raise ClinicApiError(None, response.status_code)
        raise ClinicApiError("Unexpected response payload", response.status_code)

    if response.is_error or not body.get("success", False):
        raise ClinicApiError(body.get("error"), response.status_code)

    return body.get("data")


class ClinicApiClient:
    def __init__(
        self,
        email: str,
        password: str,
        base_url: str = BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.email = email
        self.password = password
        self.base_url = base_url
        self.transport = transport
        self._token: None | str = None
        self.refresh_token: None | str = None
        self.user: None | dict[str, str] = None

    @property
    def token(self) -> str:
        return "Bearer " + (self._token or "")

    @property
    def headers(self) -> Headers:
        return Headers({"authorization": self.token})

    def _http(self, authorized: bool = True) -> AsyncClient:
        return AsyncClient(
            base_url=self.base_url,
            headers=self.headers if authorized else None,
            transport=self.transport,
        )

    async def log_in(self) -> None:
        async with self._http(authorized=False) as client:
            response = await client.post(LOGIN_PATH, json={"email": self.email, "password": self.password})

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise IncorrectLoginError("Invalid credentials")

        try:
            data = unwrap_envelope(response)
        except ClinicApiError as err:
            raise IncorrectLoginError(err.message) from err

        self._token = data["accessToken"]
        self.refresh_token = data["refreshToken"]
        self.user = data.get("user")

        logger.info("Successfully logged in as %s", self.email)

    async def do_refresh_token(self) -> None:
        self._token = None
        if self.refresh_token is None:
            return

        async with self._http(authorized=False) as client:
            response = await client.post(REFRESH_TOKEN_PATH, json={"refreshToken": self.refresh_token})

        if response.status_code != httpx.codes.OK:
            logger.info("Refresh token rejected, a full sign in is needed")
            self.refresh_token = None
            return

        self._token = response.json()["data"]["accessToken"]

    @with_login_retry
    async def get_clinics(self, page: int = 1, limit: int = 10, specialty: str | None = None) -> list[Clinic]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if specialty:
            params["specialty"] = specialty

        async with self._http() as client:
            response = await client.get(CLINICS_PATH, params=params)

        return cast(list[Clinic], unwrap_envelope(response) or [])

    @with_login_retry
    async def get_clinic(self, clinic_id: str) -> Clinic:
        async with self._http() as client:
            response = await client.get(clinic_path(clinic_id))

        return cast(Clinic, unwrap_envelope(response))

    @with_login_retry
    async def get_doctors(self, clinic_id: str) -> list[Doctor]:
        async with self._http() as client:
            response = await client.get(DOCTORS_PATH, params={"clinicId": clinic_id, "limit": DOCTORS_PAGE_SIZE})

        return cast(list[Doctor], unwrap_envelope(response) or [])

    @with_login_retry
    async def get_available_slots(self, clinic_id: str, day: date | str, doctor_id: str) -> AvailableSlotsData:
        search_date = day.strftime("%Y-%m-%d") if isinstance(day, date) else day

        async with self._http() as client:
            response = await client.get(
                available_slots_path(clinic_id),
                params={"date": search_date, "doctorId": doctor_id},
            )

        data = unwrap_envelope(response) or {}
        return cast(AvailableSlotsData, {**data, "availableSlots": data.get("availableSlots") or []})

    @with_login_retry
    async def create_appointment(self, appointment: NewAppointment) -> AppointmentItem:
        async with self._http() as client:
            response = await client.post(APPOINTMENTS_PATH, json=appointment)

        return cast(AppointmentItem, unwrap_envelope(response))

    @with_login_retry
    async def get_upcoming_appointments(self) -> list[AppointmentItem]:
        async with self._http() as client:
            response = await client.get(UPCOMING_APPOINTMENTS_PATH)

        return cast(list[AppointmentItem], unwrap_envelope(response) or [])

    @with_login_retry
    async def cancel_appointment(self, appointment_id: str, reason: str = "") -> None:
        async with self._http() as client:
            response = await client.request("DELETE", appointment_path(appointment_id), json={"reason": reason})

        unwrap_envelope(response)
