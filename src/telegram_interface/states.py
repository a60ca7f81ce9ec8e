PROVIDE_EMAIL, PROVIDE_PASSWORD = range(2)

SELECT_CLINIC, SELECT_DOCTOR, SELECT_DATE_TIME, CONFIRM_BOOKING = range(10, 14)
