CLINICS_ROUTE = "/clinics"
APPOINTMENTS_ROUTE = "/appointments"

LOAD_CLINIC_FAILED = "Không thể tải thông tin phòng khám"
LOAD_SLOTS_FAILED = "Không thể tải khung giờ khám, vui lòng thử lại"
SLOTS_FOR_OTHER_DOCTOR = "Không tìm thấy lịch của bác sĩ đã chọn, vui lòng chọn lại ngày"
DOCTOR_SELECTED = "Đã chọn {doctor_name}"
DOCTOR_REQUIRED = "Vui lòng chọn bác sĩ trước khi đặt lịch"
DATE_AND_SLOT_REQUIRED = "Vui lòng chọn ngày và khung giờ khám"
BOOKING_SUCCEEDED = "Đặt lịch khám thành công!"
BOOKING_SUCCEEDED_TITLE = "Chúc mừng"
BOOKING_FAILED = "Không thể đặt lịch. Vui lòng thử lại."
NO_DOCTORS = "Không có bác sĩ nào khả dụng"
NO_SLOTS = "Không có khung giờ khả dụng cho ngày này"

APPOINTMENT_TYPE_LABELS = {
    "consultation": ("Tư vấn", "Khám và tư vấn bệnh"),
    "checkup": ("Khám tổng quát", "Kiểm tra sức khỏe định kỳ"),
    "follow-up": ("Tái khám", "Khám lại theo lịch hẹn"),
}

STEP_LABELS = {
    1: "Chọn bác sĩ",
    2: "Chọn thời gian",
    3: "Xác nhận",
}
