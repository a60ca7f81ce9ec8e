import json
from datetime import date
from typing import Any, Callable

import httpx
import pytest

from src.clinic_client.client import MAX_RETRY_ATTEMPTS, ClinicApiClient
from src.clinic_client.exceptions import AuthenticationError, ClinicApiError, IncorrectLoginError

BASE_URL = "http://clinic.test/api"

LOGIN_DATA = {
    "accessToken": "access-1",
    "refreshToken": "refresh-1",
    "user": {"_id": "user-1", "email": "patient@example.com"},
}


def envelope(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"success": True, "data": data})


def error_envelope(error: str | None, status_code: int) -> httpx.Response:
    return httpx.Response(status_code, json={"success": False, "error": error})


class Recorder:
    def __init__(self, routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes[(request.method, request.url.path)](request)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.method == method and request.url.path == path]


def make_client(recorder: Recorder) -> ClinicApiClient:
    return ClinicApiClient(
        "patient@example.com", "secret", base_url=BASE_URL, transport=httpx.MockTransport(recorder)
    )


def login_ok(request: httpx.Request) -> httpx.Response:
    return envelope(LOGIN_DATA)


class TestLogIn:
    async def test_log_in_stores_tokens(self) -> None:
        recorder = Recorder({("POST", "/api/auth/login"): login_ok})
        client = make_client(recorder)

        await client.log_in()

        assert client.token == "Bearer access-1"
        assert client.refresh_token == "refresh-1"
        assert client.user == LOGIN_DATA["user"]
        assert json.loads(recorder.requests[0].content) == {"email": "patient@example.com", "password": "secret"}

    async def test_rejected_credentials(self) -> None:
        recorder = Recorder(
            {("POST", "/api/auth/login"): lambda request: error_envelope("Email hoặc mật khẩu không đúng", 401)}
        )
        client = make_client(recorder)

        with pytest.raises(IncorrectLoginError):
            await client.log_in()

        assert client.refresh_token is None

    async def test_login_error_envelope_keeps_server_message(self) -> None:
        recorder = Recorder({("POST", "/api/auth/login"): lambda request: error_envelope("Tài khoản bị khóa", 403)})
        client = make_client(recorder)

        with pytest.raises(IncorrectLoginError, match="Tài khoản bị khóa"):
            await client.log_in()


class TestRequests:
    async def test_requests_sign_in_first_and_send_bearer_token(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("GET", "/api/clinics/clinic-1"): lambda request: envelope({"_id": "clinic-1", "name": "An Bình"}),
            }
        )
        client = make_client(recorder)

        clinic = await client.get_clinic("clinic-1")

        assert clinic["name"] == "An Bình"
        assert recorder.calls("GET", "/api/clinics/clinic-1")[0].headers["authorization"] == "Bearer access-1"

    async def test_get_doctors_filters_by_clinic(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("GET", "/api/doctors"): lambda request: envelope([{"_id": "doctor-a", "fullName": "BS. A"}]),
            }
        )
        client = make_client(recorder)

        doctors = await client.get_doctors("clinic-1")

        assert [doctor["_id"] for doctor in doctors] == ["doctor-a"]
        params = recorder.calls("GET", "/api/doctors")[0].url.params
        assert params["clinicId"] == "clinic-1"
        assert params["limit"] == "100"

    async def test_get_available_slots_query(self) -> None:
        slots = {"availableSlots": [{"doctor": {"id": "doctor-a"}, "slots": [{"time": "08:00", "available": True}]}]}
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("GET", "/api/clinics/clinic-1/available-slots"): lambda request: envelope(slots),
            }
        )
        client = make_client(recorder)

        response = await client.get_available_slots("clinic-1", date(2026, 10, 19), "doctor-a")

        assert response == slots
        params = recorder.calls("GET", "/api/clinics/clinic-1/available-slots")[0].url.params
        assert params["date"] == "2026-10-19"
        assert params["doctorId"] == "doctor-a"

    async def test_missing_available_slots_becomes_empty_list(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("GET", "/api/clinics/clinic-1/available-slots"): lambda request: envelope({"availableSlots": None}),
            }
        )
        client = make_client(recorder)

        response = await client.get_available_slots("clinic-1", "2026-10-19", "doctor-a")

        assert response["availableSlots"] == []

    async def test_create_appointment_posts_payload(self) -> None:
        appointment = {
            "clinicId": "clinic-1",
            "doctorId": "doctor-a",
            "appointmentDate": "2026-10-19",
            "timeSlot": "09:00",
            "type": "consultation",
            "reason": "",
        }
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("POST", "/api/appointments"): lambda request: envelope(
                    {"_id": "appointment-1", **json.loads(request.content), "status": "scheduled"}, 201
                ),
            }
        )
        client = make_client(recorder)

        created = await client.create_appointment(appointment)  # type: ignore[arg-type]

        assert created["_id"] == "appointment-1"
        assert json.loads(recorder.calls("POST", "/api/appointments")[0].content) == appointment

    async def test_error_envelope_raises_with_server_message(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("POST", "/api/appointments"): lambda request: error_envelope("Khung giờ đã được đặt", 400),
            }
        )
        client = make_client(recorder)

        with pytest.raises(ClinicApiError) as exc_info:
            await client.create_appointment({})  # type: ignore[typeddict-item]

        assert exc_info.value.message == "Khung giờ đã được đặt"
        assert exc_info.value.status_code == 400

    async def test_non_json_error_has_no_message(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("GET", "/api/appointments/upcoming"): lambda request: httpx.Response(502, text="Bad Gateway"),
            }
        )
        client = make_client(recorder)

        with pytest.raises(ClinicApiError) as exc_info:
            await client.get_upcoming_appointments()

        assert exc_info.value.message is None
        assert exc_info.value.status_code == 502

    async def test_cancel_appointment_sends_reason(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("DELETE", "/api/appointments/appointment-1"): lambda request: envelope(None),
            }
        )
        client = make_client(recorder)

        await client.cancel_appointment("appointment-1", "Bận việc")

        request = recorder.calls("DELETE", "/api/appointments/appointment-1")[0]
        assert json.loads(request.content) == {"reason": "Bận việc"}


class TestLoginRetry:
    async def test_unauthorized_response_refreshes_token_and_retries(self) -> None:
        responses = iter([httpx.Response(401, json={"success": False}), envelope([])])
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("POST", "/api/auth/refresh"): lambda request: envelope({"accessToken": "access-2"}),
                ("GET", "/api/appointments/upcoming"): lambda request: next(responses),
            }
        )
        client = make_client(recorder)

        assert await client.get_upcoming_appointments() == []

        assert len(recorder.calls("POST", "/api/auth/login")) == 1
        assert json.loads(recorder.calls("POST", "/api/auth/refresh")[0].content) == {"refreshToken": "refresh-1"}
        retried = recorder.calls("GET", "/api/appointments/upcoming")[1]
        assert retried.headers["authorization"] == "Bearer access-2"

    async def test_rejected_refresh_falls_back_to_full_sign_in(self) -> None:
        responses = iter([httpx.Response(401, json={"success": False}), envelope([])])
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("POST", "/api/auth/refresh"): lambda request: error_envelope("Refresh token expired", 401),
                ("GET", "/api/appointments/upcoming"): lambda request: next(responses),
            }
        )
        client = make_client(recorder)

        assert await client.get_upcoming_appointments() == []

        assert len(recorder.calls("POST", "/api/auth/login")) == 2

    async def test_gives_up_after_max_attempts(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("POST", "/api/auth/refresh"): lambda request: error_envelope(None, 401),
                ("GET", "/api/appointments/upcoming"): lambda request: httpx.Response(401),
            }
        )
        client = make_client(recorder)

        with pytest.raises(AuthenticationError):
            await client.get_upcoming_appointments()

        assert len(recorder.calls("GET", "/api/appointments/upcoming")) == MAX_RETRY_ATTEMPTS

    async def test_other_status_errors_are_not_retried(self) -> None:
        recorder = Recorder(
            {
                ("POST", "/api/auth/login"): login_ok,
                ("GET", "/api/clinics"): lambda request: error_envelope("Lỗi máy chủ", 500),
            }
        )
        client = make_client(recorder)

        with pytest.raises(ClinicApiError):
            await client.get_clinics()

        assert len(recorder.calls("GET", "/api/clinics")) == 1
