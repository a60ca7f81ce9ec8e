from typing import Literal, NotRequired, TypedDict

AppointmentType = Literal["consultation", "checkup", "follow-up"]
AppointmentStatus = Literal["scheduled", "confirmed", "in_progress", "completed", "cancelled"]


class Clinic(TypedDict):
    _id: str
    name: str
    address: NotRequired[str]
    phone: NotRequired[str]
    specialty: NotRequired[list[str]]
    image: NotRequired[str]


class Doctor(TypedDict):
    _id: str
    fullName: str
    specialty: NotRequired[str]
    experience: NotRequired[int]
    consultationFee: NotRequired[int]
    avatar: NotRequired[str]
    workingDays: NotRequired[list[int]]
    clinicId: NotRequired[str | dict[str, str]]


class SlotItem(TypedDict):
    time: str
    available: bool


class SlotDoctor(TypedDict):
    id: str
    fullName: NotRequired[str]
    specialty: NotRequired[str]


class DoctorSlots(TypedDict):
    doctor: SlotDoctor
    slots: list[SlotItem]


class AvailableSlotsData(TypedDict):
    date: NotRequired[str]
    availableSlots: list[DoctorSlots]


class NewAppointment(TypedDict):
    clinicId: str
    doctorId: str
    appointmentDate: str
    timeSlot: str
    type: AppointmentType
    reason: str


class AppointmentClinic(TypedDict):
    _id: str
    name: str
    address: NotRequired[str]


class AppointmentDoctor(TypedDict):
    _id: str
    fullName: str
    specialty: NotRequired[str]


class AppointmentItem(TypedDict):
    _id: str
    clinicId: AppointmentClinic
    doctorId: AppointmentDoctor
    appointmentDate: str
    timeSlot: str
    type: AppointmentType
    status: AppointmentStatus
    reason: NotRequired[str]
